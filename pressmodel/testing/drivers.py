"""
Driver implementations for different backend environments.

This is the third layer in Dave Farley's 4-layer testing architecture.
Drivers know how to translate DSL operations into actual backend calls.
"""

from abc import ABC, abstractmethod
from typing import Type, Optional, Any

from pressmodel.backends.base import Backend
from pressmodel.backends.memory import InMemoryBackend
from pressmodel.testing.recording import RecordingBackend

from .dsl import (
    CreateOperation,
    GetOperation,
    UpdateOperation,
    DeleteOperation,
    RestoreOperation,
    QueryOperation,
    OperationResult,
)


class DriverInterface(ABC):
    """Abstract interface for all ORM test drivers."""

    # Storage the driver points models at
    backend: Backend

    @abstractmethod
    def execute_create(self, operation: CreateOperation) -> OperationResult:
        """Execute a create operation."""
        pass

    @abstractmethod
    def execute_get(self, operation: GetOperation) -> OperationResult:
        """Execute a get operation."""
        pass

    @abstractmethod
    def execute_update(self, operation: UpdateOperation) -> OperationResult:
        """Execute an update operation."""
        pass

    @abstractmethod
    def execute_delete(self, operation: DeleteOperation) -> OperationResult:
        """Execute a delete operation."""
        pass

    @abstractmethod
    def execute_restore(self, operation: RestoreOperation) -> OperationResult:
        """Execute a restore operation."""
        pass

    @abstractmethod
    def execute_query(self, operation: QueryOperation) -> OperationResult:
        """Execute a query operation."""
        pass

    @abstractmethod
    def count(self, model_class: Type, **filters: Any) -> int:
        """Count instances matching filters."""
        pass

    @abstractmethod
    def exists(self, model_class: Type, **filters: Any) -> bool:
        """Check if instances exist matching filters."""
        pass

    @abstractmethod
    def clear(self, model_class: Optional[Type] = None) -> None:
        """Clear storage for testing."""
        pass

    @abstractmethod
    def get_backend_name(self) -> str:
        """Get the name of the backend being tested."""
        pass

    @abstractmethod
    def setup_backend(self, model_class: Type) -> None:
        """Set up backend for a model class."""
        pass


class InMemoryDriver(DriverInterface):
    """
    Driver that tests against the InMemory backend.

    This is the reference implementation and tests the ORM core functionality
    without external dependencies.
    """

    def __init__(self):
        """Initialize with InMemory backend."""
        self.backend = self.create_backend()

    def create_backend(self) -> InMemoryBackend:
        return InMemoryBackend()

    def execute_create(self, operation: CreateOperation) -> OperationResult:
        """Execute a create operation."""
        try:
            # Set backend for model
            self.setup_backend(operation.model_class)

            # Create instance
            instance = operation.model_class(**operation.data)
            instance.save(meta=operation.meta or None)

            return OperationResult(
                success=True,
                instance=instance,
                data=instance.to_dict()
            )
        except Exception as e:
            return OperationResult(success=False, error=e)

    def execute_get(self, operation: GetOperation) -> OperationResult:
        """Execute a get operation."""
        try:
            # Set backend for model
            self.setup_backend(operation.model_class)

            # Get instance
            instance = operation.model_class.find_by(**operation.filters)

            return OperationResult(
                success=True,
                instance=instance,
                data=instance.to_dict() if instance else None
            )
        except Exception as e:
            return OperationResult(success=False, error=e)

    def execute_update(self, operation: UpdateOperation) -> OperationResult:
        """Execute an update operation."""
        try:
            # Set backend for model
            self.setup_backend(operation.model_class)

            # Apply changes and save
            operation.instance.save(operation.changes)

            return OperationResult(
                success=True,
                instance=operation.instance,
                data=operation.instance.to_dict()
            )
        except Exception as e:
            return OperationResult(success=False, error=e)

    def execute_delete(self, operation: DeleteOperation) -> OperationResult:
        """Execute a delete operation."""
        try:
            # Set backend for model
            self.setup_backend(operation.model_class)

            # Delete
            success = operation.instance.delete(force=operation.force)

            return OperationResult(
                success=success,
                data={"deleted": success}
            )
        except Exception as e:
            return OperationResult(success=False, error=e)

    def execute_restore(self, operation: RestoreOperation) -> OperationResult:
        """Execute a restore operation."""
        try:
            self.setup_backend(operation.model_class)
            success = operation.instance.restore()

            return OperationResult(
                success=success,
                instance=operation.instance,
                data={"restored": success}
            )
        except Exception as e:
            return OperationResult(success=False, error=e)

    def execute_query(self, operation: QueryOperation) -> OperationResult:
        """Execute a query operation."""
        try:
            # Set backend for model
            self.setup_backend(operation.model_class)

            # Build query
            query = operation.model_class.query()
            if operation.filters:
                query = query.where(**operation.filters)
            if operation.meta_filters:
                query = query.where_meta(**operation.meta_filters)
            if operation.with_trashed:
                query = query.with_trashed()

            # Apply ordering
            if operation.order_by:
                query = query.order_by(*operation.order_by)

            # Apply limit/offset
            if operation.limit:
                query = query.limit(operation.limit)
            if operation.offset:
                query = query.offset(operation.offset)

            # Execute
            instances = query.all()

            return OperationResult(
                success=True,
                data=instances
            )
        except Exception as e:
            return OperationResult(success=False, error=e)

    def count(self, model_class: Type, **filters: Any) -> int:
        """Count instances matching filters."""
        self.setup_backend(model_class)
        result: int = model_class.where(**filters).count()
        return result

    def exists(self, model_class: Type, **filters: Any) -> bool:
        """Check if instances exist matching filters."""
        self.setup_backend(model_class)
        result: bool = model_class.where(**filters).exists()
        return result

    def clear(self, model_class: Optional[Type] = None) -> None:
        """Clear storage for testing."""
        self.backend.clear(model_class)

    def get_backend_name(self) -> str:
        """Get the name of the backend being tested."""
        return "memory"

    def setup_backend(self, model_class: Type) -> None:
        """Set up backend for a model class."""
        model_class.model_backend = self.backend


class RecordingDriver(InMemoryDriver):
    """
    Driver that tests against the call-recording backend.

    Same behaviour as the InMemory driver; tests can inspect
    driver.backend.calls to see what reached storage.
    """

    backend: RecordingBackend

    def create_backend(self) -> RecordingBackend:
        return RecordingBackend()

    def get_backend_name(self) -> str:
        """Get the name of the backend being tested."""
        return "recording"
