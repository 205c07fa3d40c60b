"""
Base storage adapter interface for pressmodel.

Defines the capability set the model core calls into. Backends own
persistence, retries and batching; the core only sequences the calls.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from pressmodel.models.base import Model
    from pressmodel.query.base import CompiledQuery


@dataclass
class Record:
    """A stored record as returned by a backend."""

    identity: int
    attributes: dict[str, Any] = field(default_factory=dict)
    trashed: bool = False


class Backend(ABC):
    """
    Abstract base class for storage adapters.

    Every method takes the model class so one backend instance can serve
    several model types; records are grouped by model_class.storage_table().

    Errors:
        PersistenceError: create/update/delete rejected
        NotFound: the identity does not exist
        MetaPersistenceError: meta write/delete rejected
    """

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Backend identifier (e.g., 'memory')."""
        raise NotImplementedError

    # === Records ===

    @abstractmethod
    def create(self, model_class: type["Model"], attributes: dict[str, Any]) -> int:
        """
        Create a new record.

        Args:
            model_class: The model class being created
            attributes: Canonical field values

        Returns:
            The new record's identity

        Raises:
            PersistenceError: If the write is rejected
            DuplicateKeyError: If an explicit identity is already taken
        """
        pass

    @abstractmethod
    def update(self, model_class: type["Model"], identity: int, attributes: dict[str, Any]) -> None:
        """
        Apply changed attributes to an existing record.

        Args:
            model_class: The model class being updated
            identity: Record identity
            attributes: Dirty canonical fields only

        Raises:
            NotFound: If the record doesn't exist
            PersistenceError: If the write is rejected
        """
        pass

    @abstractmethod
    def delete(self, model_class: type["Model"], identity: int, permanent: bool = True) -> bool:
        """
        Delete a record.

        Args:
            model_class: The model class being deleted
            identity: Record identity
            permanent: Remove the record (and its meta and term links) when
                True; mark it trashed when False

        Returns:
            True when the record was deleted or trashed

        Raises:
            NotFound: If the record doesn't exist
        """
        pass

    @abstractmethod
    def restore(self, model_class: type["Model"], identity: int) -> None:
        """
        Clear the trashed mark on a record.

        Raises:
            NotFound: If the record doesn't exist
        """
        pass

    @abstractmethod
    def get(self, model_class: type["Model"], identity: int) -> Optional[Record]:
        """
        Fetch a record by identity, trashed or not.

        Returns:
            The record, or None if not found
        """
        pass

    @abstractmethod
    def query(self, model_class: type["Model"], query: "CompiledQuery") -> list[Record]:
        """
        Run a compiled query.

        Args:
            model_class: The model class being queried
            query: Scope-applied query

        Returns:
            Matching records in result order
        """
        pass

    def count(self, model_class: type["Model"], query: "CompiledQuery") -> int:
        """
        Count records matching a compiled query.

        Default implementation runs the query. Backends should override with
        a native count.
        """
        return len(self.query(model_class, query))

    # === Meta ===

    @abstractmethod
    def get_meta(self, model_class: type["Model"], identity: int, key: str) -> Any:
        """
        Read one meta value.

        Returns:
            The stored value (type preserved), or None if the key is unset

        Raises:
            NotFound: If the record doesn't exist
        """
        pass

    @abstractmethod
    def all_meta(self, model_class: type["Model"], identity: int) -> dict[str, Any]:
        """Read every meta value of a record."""
        pass

    @abstractmethod
    def set_meta(self, model_class: type["Model"], identity: int, key: str, value: Any) -> None:
        """
        Write one meta value.

        Raises:
            NotFound: If the record doesn't exist
            MetaPersistenceError: If the write is rejected
        """
        pass

    @abstractmethod
    def delete_meta(self, model_class: type["Model"], identity: int, key: str) -> None:
        """
        Remove one meta key. Removing an unset key is not an error.

        Raises:
            NotFound: If the record doesn't exist
            MetaPersistenceError: If the delete is rejected
        """
        pass

    # === Term relationships ===

    @abstractmethod
    def get_terms(self, model_class: type["Model"], identity: int, taxonomy: str) -> list[int]:
        """
        Term identities associated with a record in one taxonomy.

        Raises:
            NotFound: If the record doesn't exist
        """
        pass

    @abstractmethod
    def set_terms(
        self,
        model_class: type["Model"],
        identity: int,
        taxonomy: str,
        term_ids: list[int],
    ) -> None:
        """
        Replace the full association set for one taxonomy.

        Raises:
            NotFound: If the record doesn't exist
        """
        pass

    # === Lifecycle ===

    def initialize(self) -> None:
        """
        Initialize the backend (create tables, indexes, etc.).

        Optional method for backends that need setup.
        """
        pass

    def close(self) -> None:
        """
        Close connections and cleanup resources.

        Optional method for backends with persistent connections.
        """
        pass
