"""
Meta buffer and accessor.

Meta is auxiliary key/value data stored beside a record. Before the owning
model has an identity, mutations are buffered and applied in order when
save() flushes them; afterwards they write through to storage.
"""

import logging
from typing import Any, TYPE_CHECKING

from pressmodel.exceptions import BackendError, MetaPersistenceError, NotFound

if TYPE_CHECKING:
    from pressmodel.models.base import Model

logger = logging.getLogger(__name__)

SET = "set"
DELETE = "delete"

_MISSING = object()


class MetaBuffer:
    """
    Pending meta mutations for one model instance.

    Example:
        >>> post = Post(title="Draft")
        >>> post.meta.views = 10      # buffered
        >>> post.save()               # created, then set_meta(id, "views", 10)
        >>> post.meta.views = 11      # written through immediately
    """

    def __init__(self, owner: "Model"):
        self._owner = owner
        # (operation, key, value) in registration order
        self._pending: list[tuple[str, str, Any]] = []

    def _discard(self, key: str) -> bool:
        """Drop pending mutations for a key. Returns True if a set was dropped."""
        dropped_set = any(op == SET and pending_key == key for op, pending_key, _ in self._pending)
        self._pending = [entry for entry in self._pending if entry[1] != key]
        return dropped_set

    def get(self, key: str, default: Any = None) -> Any:
        """
        Read a meta value.

        Pending mutations win over stored values, so a value set through
        save(meta=...) that has not been flushed yet is still visible.
        """
        for op, pending_key, value in reversed(self._pending):
            if pending_key == key:
                return value if op == SET else default

        identity = self._owner._stored_identity()
        if identity is None:
            return default

        model_class = type(self._owner)
        value = model_class._get_backend().get_meta(model_class, identity, key)
        return default if value is None else value

    def set(self, key: str, value: Any) -> None:
        """Buffer a value before the first save; write through afterwards."""
        identity = self._owner._stored_identity()
        if identity is None:
            self.defer(key, value)
            return
        self._discard(key)
        self._apply(identity, SET, key, value)

    def defer(self, key: str, value: Any) -> None:
        """Buffer a value until the next flush, regardless of persistence."""
        self._discard(key)
        self._pending.append((SET, key, value))

    def delete(self, key: str) -> None:
        """
        Remove a meta key.

        Before the first save, a delete cancels a pending set for the same
        key, so neither reaches storage.
        """
        identity = self._owner._stored_identity()
        if identity is None:
            if not self._discard(key):
                self._pending.append((DELETE, key, None))
            return
        self._discard(key)
        self._apply(identity, DELETE, key, None)

    def flush(self, identity: Any) -> int:
        """
        Apply pending mutations against an identity, in order.

        Each mutation leaves the buffer only once storage accepted it, so a
        failure keeps the remainder for the next save().

        Returns:
            Number of mutations applied

        Raises:
            MetaPersistenceError: If storage rejects a mutation
        """
        applied = 0
        while self._pending:
            op, key, value = self._pending[0]
            self._apply(identity, op, key, value)
            self._pending.pop(0)
            applied += 1
        if applied:
            logger.debug(f"Flushed {applied} meta mutations for {type(self._owner).__name__} {identity}")
        return applied

    def _apply(self, identity: Any, op: str, key: str, value: Any) -> None:
        model_class = type(self._owner)
        backend = model_class._get_backend()
        try:
            if op == SET:
                backend.set_meta(model_class, identity, key, value)
            else:
                backend.delete_meta(model_class, identity, key)
        except (MetaPersistenceError, NotFound):
            raise
        except BackendError as e:
            raise MetaPersistenceError(
                f"Failed to {op} meta '{key}' for {model_class.__name__} {identity}: {e}"
            ) from e

    def all(self) -> dict[str, Any]:
        """Stored meta with pending mutations applied on top."""
        values: dict[str, Any] = {}
        identity = self._owner._stored_identity()
        if identity is not None:
            model_class = type(self._owner)
            values = model_class._get_backend().all_meta(model_class, identity)
        for op, key, value in self._pending:
            if op == SET:
                values[key] = value
            else:
                values.pop(key, None)
        return values

    def pending(self) -> list[tuple[str, str, Any]]:
        return list(self._pending)

    def clear(self) -> None:
        self._pending.clear()

    def __len__(self) -> int:
        return len(self._pending)


class MetaAccessor:
    """
    Public meta interface of a model: post.meta.

    Supports method, attribute and item syntax:
        >>> post.meta.set("views", 10)
        >>> post.meta.views = 10
        >>> post.meta["views"] = 10
        >>> del post.meta.views
    """

    __slots__ = ("_buffer",)

    def __init__(self, buffer: MetaBuffer):
        object.__setattr__(self, "_buffer", buffer)

    def get(self, key: str, default: Any = None) -> Any:
        return self._buffer.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._buffer.set(key, value)

    def delete(self, key: str) -> None:
        self._buffer.delete(key)

    def all(self) -> dict[str, Any]:
        return self._buffer.all()

    def pending(self) -> list[tuple[str, str, Any]]:
        return self._buffer.pending()

    def __getattr__(self, key: str) -> Any:
        if key.startswith("_"):
            raise AttributeError(key)
        return self._buffer.get(key)

    def __setattr__(self, key: str, value: Any) -> None:
        self._buffer.set(key, value)

    def __delattr__(self, key: str) -> None:
        self._buffer.delete(key)

    def __getitem__(self, key: str) -> Any:
        return self._buffer.get(key)

    def __setitem__(self, key: str, value: Any) -> None:
        self._buffer.set(key, value)

    def __delitem__(self, key: str) -> None:
        self._buffer.delete(key)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self._buffer.get(key, _MISSING) is not _MISSING

    def __repr__(self) -> str:
        return f"<MetaAccessor pending={self._buffer.pending()!r}>"
