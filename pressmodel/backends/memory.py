"""
In-memory backend for pressmodel.

Simple dict-based storage for testing and examples without requiring
external services.
"""

import logging
from copy import deepcopy
from typing import Any, Optional, TYPE_CHECKING

from pressmodel.backends.base import Backend, Record
from pressmodel.exceptions import DuplicateKeyError, NotFound, PersistenceError
from pressmodel.models.fields import is_unique
from pressmodel.query.base import TRASHED_MODES

if TYPE_CHECKING:
    from pressmodel.models.base import Model
    from pressmodel.query.base import CompiledQuery

logger = logging.getLogger(__name__)


def _sort_key(value: Any) -> tuple[bool, Any]:
    # None sorts before every value
    return (value is not None, value)


class _Table:
    """Rows, meta, term links and the identity sequence of one table."""

    def __init__(self) -> None:
        self.rows: dict[int, dict[str, Any]] = {}
        self.trashed: set[int] = set()
        self.meta: dict[int, dict[str, Any]] = {}
        self.terms: dict[int, dict[str, list[int]]] = {}
        self.last_id = 0

    def next_id(self) -> int:
        self.last_id += 1
        while self.last_id in self.rows:
            self.last_id += 1
        return self.last_id


class InMemoryBackend(Backend):
    """
    In-memory storage backend using Python dicts.

    Stores all data in memory. Data is lost when the process ends.
    Identities are auto-incrementing integers per table.

    Example:
        >>> backend = InMemoryBackend()
        >>> class Post(Model, model_backend=backend):
        ...     ID: Optional[int] = Field(None, primary_key=True, aliases=("id",))
        ...     post_title: str = Field("", aliases=("title",))
        >>>
        >>> post = Post.create(title="Hello")
        >>> post.id
        1
    """

    def __init__(self) -> None:
        # Storage: {table: _Table}
        self._tables: dict[str, _Table] = {}

    @property
    def backend_name(self) -> str:
        """Backend identifier."""
        return 'memory'

    def _table(self, model_class: type["Model"]) -> _Table:
        """Get storage for a model class."""
        name = model_class.storage_table()
        if name not in self._tables:
            self._tables[name] = _Table()
        return self._tables[name]

    def _existing(self, model_class: type["Model"], identity: int) -> _Table:
        table = self._table(model_class)
        if identity not in table.rows:
            raise NotFound(f"{model_class.storage_table()} record {identity} not found")
        return table

    # === Records ===

    def create(self, model_class: type["Model"], attributes: dict[str, Any]) -> int:
        """Create a new record in memory."""
        table = self._table(model_class)
        key_name = model_class.key_name()

        identity = attributes.get(key_name)
        if identity is None:
            identity = table.next_id()
        elif not isinstance(identity, int):
            raise PersistenceError(f"Identity must be an integer, got {identity!r}")
        elif identity in table.rows:
            raise DuplicateKeyError(f"Record with key {identity} already exists")
        else:
            table.last_id = max(table.last_id, identity)

        self._check_unique(model_class, table, attributes, identity)
        row = deepcopy(attributes)
        row[key_name] = identity
        table.rows[identity] = row
        logger.debug(f"Created {model_class.storage_table()} record {identity}")
        return identity

    def update(self, model_class: type["Model"], identity: int, attributes: dict[str, Any]) -> None:
        """Merge changed attributes into an existing record."""
        table = self._existing(model_class, identity)
        key_name = model_class.key_name()

        if key_name in attributes and attributes[key_name] != identity:
            raise PersistenceError(
                f"Cannot change identity of {model_class.storage_table()} record {identity}"
            )

        self._check_unique(model_class, table, attributes, identity)
        table.rows[identity].update(deepcopy(attributes))
        logger.debug(f"Updated {model_class.storage_table()} record {identity}: {sorted(attributes)}")

    def _check_unique(self, model_class: type["Model"], table: _Table, attributes: dict[str, Any], identity: int) -> None:
        """Reject values of unique fields already held by another record."""
        for name, field_info in model_class.model_fields.items():
            if not is_unique(field_info) or attributes.get(name) in (None, ""):
                continue
            value = attributes[name]
            for other_id, row in table.rows.items():
                if other_id != identity and row.get(name) == value:
                    raise DuplicateKeyError(f"{model_class.storage_table()}.{name} '{value}' already exists")

    def delete(self, model_class: type["Model"], identity: int, permanent: bool = True) -> bool:
        """Trash or remove a record."""
        table = self._existing(model_class, identity)

        if not permanent:
            table.trashed.add(identity)
            return True

        del table.rows[identity]
        table.trashed.discard(identity)
        table.meta.pop(identity, None)
        table.terms.pop(identity, None)
        return True

    def restore(self, model_class: type["Model"], identity: int) -> None:
        """Clear the trashed mark."""
        table = self._existing(model_class, identity)
        table.trashed.discard(identity)

    def get(self, model_class: type["Model"], identity: int) -> Optional[Record]:
        """Get a single record by identity."""
        table = self._table(model_class)
        row = table.rows.get(identity)
        if row is None:
            return None
        return Record(identity, deepcopy(row), identity in table.trashed)

    def query(self, model_class: type["Model"], query: "CompiledQuery") -> list[Record]:
        """Execute a compiled query against memory."""
        if query.trashed not in TRASHED_MODES:
            raise ValueError(f"Unknown trashed mode '{query.trashed}'")

        table = self._table(model_class)
        results = []
        for identity, row in table.rows.items():
            trashed = identity in table.trashed
            if query.trashed == "exclude" and trashed:
                continue
            if query.trashed == "only" and not trashed:
                continue
            if not query.matches(row, table.meta.get(identity)):
                continue
            results.append(Record(identity, deepcopy(row), trashed))

        # Apply ordering, last key first so earlier keys win
        for order_field in reversed(query.order_by):
            reverse = order_field.startswith("-")
            name = order_field[1:] if reverse else order_field
            results.sort(
                key=lambda record: _sort_key(record.attributes.get(name)),
                reverse=reverse,
            )

        offset = query.offset or 0
        if offset:
            results = results[offset:]
        if query.limit is not None:
            results = results[:query.limit]
        return results

    # === Meta ===

    def get_meta(self, model_class: type["Model"], identity: int, key: str) -> Any:
        table = self._existing(model_class, identity)
        return deepcopy(table.meta.get(identity, {}).get(key))

    def all_meta(self, model_class: type["Model"], identity: int) -> dict[str, Any]:
        table = self._existing(model_class, identity)
        return deepcopy(table.meta.get(identity, {}))

    def set_meta(self, model_class: type["Model"], identity: int, key: str, value: Any) -> None:
        table = self._existing(model_class, identity)
        table.meta.setdefault(identity, {})[key] = deepcopy(value)

    def delete_meta(self, model_class: type["Model"], identity: int, key: str) -> None:
        table = self._existing(model_class, identity)
        table.meta.get(identity, {}).pop(key, None)

    # === Term relationships ===

    def get_terms(self, model_class: type["Model"], identity: int, taxonomy: str) -> list[int]:
        table = self._existing(model_class, identity)
        return list(table.terms.get(identity, {}).get(taxonomy, []))

    def set_terms(
        self,
        model_class: type["Model"],
        identity: int,
        taxonomy: str,
        term_ids: list[int],
    ) -> None:
        table = self._existing(model_class, identity)
        # Keep first occurrence order, drop duplicates
        table.terms.setdefault(identity, {})[taxonomy] = list(dict.fromkeys(term_ids))

    # === Testing helpers ===

    def clear(self, model_class: Optional[type["Model"]] = None) -> None:
        """
        Clear storage.

        Args:
            model_class: Optional model class to clear. If None, clears all.
        """
        if model_class:
            self._tables.pop(model_class.storage_table(), None)
        else:
            self._tables.clear()

    def is_trashed(self, model_class: type["Model"], identity: int) -> bool:
        return identity in self._existing(model_class, identity).trashed
