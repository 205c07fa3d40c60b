"""
Exceptions raised by pressmodel.

Every error surfaces synchronously to the caller of save(), delete() or a
query method. Nothing here is retried internally.
"""
from typing import Any, Dict, List, Optional


class PressModelError(Exception):
    """Base exception for pressmodel errors."""

    pass


class UnknownAttribute(PressModelError, AttributeError):
    """Raised when a fixed-schema model is given a field it does not declare."""

    def __init__(self, model_type: str, name: str):
        super().__init__(f"{model_type} has no attribute '{name}'")
        # AttributeError.__init__ resets name
        self.model_type = model_type
        self.name = name


class ValidationError(PressModelError):
    """Raised at save time when required fields are missing or invalid."""

    def __init__(self, message: str = "Validation failed", errors: Optional[List[Dict[str, Any]]] = None):
        self.message = message
        self.errors = errors or []
        super().__init__(self.message)

    @classmethod
    def from_pydantic(cls, error: Any, message: Optional[str] = None) -> "ValidationError":
        """Wrap a pydantic ValidationError, keeping one {"field", "msg"} entry per failure."""
        errors = [
            {"field": ".".join(str(part) for part in item.get("loc", ())), "msg": item.get("msg", "")}
            for item in error.errors()
        ]
        return cls(message or str(error), errors)


class BackendError(PressModelError):
    """Base exception for storage adapter errors."""

    pass


class PersistenceError(BackendError):
    """The storage adapter rejected a create, update or delete."""

    pass


class DuplicateKeyError(PersistenceError):
    """A record with the same identity already exists."""

    pass


class NotFound(BackendError):
    """The operation targets an identity that does not exist."""

    pass


class MetaPersistenceError(BackendError):
    """The storage adapter rejected a meta write or delete."""

    pass


class OperationVetoed(PressModelError):
    """A before-event callback rejected the pending operation."""

    def __init__(self, event: str, model: Any = None, message: Optional[str] = None):
        self.event = event
        self.model = model
        name = type(model).__name__ if model is not None else "model"
        super().__init__(message or f"'{event}' vetoed for {name}")


class ScopeNotFound(PressModelError, AttributeError):
    """No local scope matches the requested name."""

    def __init__(self, model_type: str, name: str):
        super().__init__(f"{model_type} has no scope '{name}'")
        self.model_type = model_type
        self.name = name


class AmbiguousTaxonomy(PressModelError):
    """Terms were assigned without a taxonomy and none could be inferred."""

    pass
