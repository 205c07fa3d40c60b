"""
Alias table and attribute store.

Declared fields live in the pydantic instance dict; unknown names accepted by
open-schema types live in the pydantic extra dict. Both are addressed by
canonical name, with aliases resolved first.
"""

from typing import Any, Iterable, Mapping, Optional, TYPE_CHECKING

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from pressmodel.exceptions import UnknownAttribute, ValidationError

if TYPE_CHECKING:
    from pressmodel.models.base import Model


class AliasTable:
    """
    Mapping from alias names to canonical field names.

    Unknown names resolve to themselves.

    Example:
        >>> table = AliasTable({"title": "post_title", "id": "ID"})
        >>> table.resolve("title")
        'post_title'
        >>> table.resolve("post_status")
        'post_status'
    """

    def __init__(self, aliases: Optional[Mapping[str, str]] = None):
        self._aliases: dict[str, str] = dict(aliases or {})

    def resolve(self, name: str) -> str:
        return self._aliases.get(name, name)

    def resolve_keys(self, data: Mapping[str, Any]) -> dict[str, Any]:
        """Rewrite the keys of a mapping to canonical names."""
        return {self.resolve(name): value for name, value in data.items()}

    def aliases_for(self, canonical: str) -> tuple[str, ...]:
        return tuple(alias for alias, target in self._aliases.items() if target == canonical)

    def merged(self, aliases: Mapping[str, str]) -> "AliasTable":
        """New table with extra aliases layered on top of this one."""
        combined = dict(self._aliases)
        combined.update(aliases)
        return AliasTable(combined)

    def as_dict(self) -> dict[str, str]:
        return dict(self._aliases)

    def __contains__(self, name: object) -> bool:
        return name in self._aliases

    def __len__(self) -> int:
        return len(self._aliases)

    def __repr__(self) -> str:
        return f"AliasTable({self._aliases!r})"


class AttributeStore:
    """
    Canonical attribute access and dirty tracking for one model instance.

    Every write marks the canonical name dirty, including writes of a value
    equal to the current one.
    """

    def __init__(self, model: "Model"):
        self._model = model
        # Insertion-ordered set of dirty canonical names
        self._dirty: dict[str, None] = {}

    @property
    def _fields(self) -> dict[str, Any]:
        return type(self._model).model_fields

    def canonical(self, name: str) -> str:
        return type(self._model).alias_map.resolve(name)

    def has(self, name: str) -> bool:
        key = self.canonical(name)
        if key in self._fields:
            return True
        return key in (self._model.__pydantic_extra__ or {})

    def get(self, name: str, default: Any = None) -> Any:
        """Read a value by alias or canonical name."""
        key = self.canonical(name)
        if key in self._fields:
            return self._model.__dict__.get(key, default)
        return (self._model.__pydantic_extra__ or {}).get(key, default)

    def set(self, name: str, value: Any) -> str:
        """
        Write a value by alias or canonical name and mark it dirty.

        Declared fields are validated against their annotation.

        Returns:
            The canonical name written

        Raises:
            UnknownAttribute: If the type has a fixed schema and does not
                declare the field
            ValidationError: If the value fails field validation
        """
        model_class = type(self._model)
        key = self.canonical(name)

        if key in self._fields:
            try:
                BaseModel.__setattr__(self._model, key, value)
            except PydanticValidationError as e:
                raise ValidationError.from_pydantic(e, f"Invalid value for {model_class.__name__}.{key}") from e
        elif model_class.is_fixed_schema():
            raise UnknownAttribute(model_class.model_type, name)
        else:
            self._model.__pydantic_extra__[key] = value  # type: ignore[index]

        self._dirty[key] = None
        return key

    def set_raw(self, name: str, value: Any) -> None:
        """Write without validation or dirty tracking (identities from storage)."""
        key = self.canonical(name)
        if key in self._fields:
            self._model.__dict__[key] = value
        elif self._model.__pydantic_extra__ is not None:
            self._model.__pydantic_extra__[key] = value

    # === Dirty tracking ===

    def is_dirty(self, name: Optional[str] = None) -> bool:
        if name is None:
            return bool(self._dirty)
        return self.canonical(name) in self._dirty

    def dirty_attributes(self) -> list[str]:
        """Canonical names changed since the last save, in change order."""
        return list(self._dirty)

    def dirty_payload(self) -> dict[str, Any]:
        """Minimal update payload: dirty canonical names and their values."""
        return {key: self.get(key) for key in self._dirty}

    def mark_dirty(self, *names: str) -> None:
        for name in names:
            self._dirty[self.canonical(name)] = None

    def mark_clean(self, names: Optional[Iterable[str]] = None) -> None:
        if names is None:
            self._dirty.clear()
            return
        for name in names:
            self._dirty.pop(self.canonical(name), None)

    # === Snapshots ===

    def snapshot(self) -> tuple[dict[str, Any], Optional[dict[str, Any]], dict[str, None]]:
        """Shallow copy of the values and dirty set, for rollback."""
        extra = self._model.__pydantic_extra__
        return (
            dict(self._model.__dict__),
            dict(extra) if extra is not None else None,
            dict(self._dirty),
        )

    def restore(self, state: tuple[dict[str, Any], Optional[dict[str, Any]], dict[str, None]]) -> None:
        """Put back values captured by snapshot()."""
        values, extra, dirty = state
        self._model.__dict__.clear()
        self._model.__dict__.update(values)
        if extra is not None and self._model.__pydantic_extra__ is not None:
            self._model.__pydantic_extra__.clear()
            self._model.__pydantic_extra__.update(extra)
        self._dirty = dict(dirty)
