"""
Field definitions for pressmodel.

Extends Pydantic's field system with ORM-specific metadata: the identity
field, required-at-save fields and alias names.
"""

from typing import Any, Optional, Callable
from pydantic import Field as PydanticField
from pydantic.fields import FieldInfo
from pydantic_core import PydanticUndefined


def Field(
    default: Any = PydanticUndefined,
    *,
    # Standard Pydantic validation
    default_factory: Optional[Callable[[], Any]] = None,
    title: Optional[str] = None,
    description: Optional[str] = None,
    examples: Optional[list[Any]] = None,
    gt: Optional[float] = None,
    ge: Optional[float] = None,
    lt: Optional[float] = None,
    le: Optional[float] = None,
    min_length: Optional[int] = None,
    max_length: Optional[int] = None,
    pattern: Optional[str] = None,
    # ORM-specific options
    primary_key: bool = False,
    required: bool = False,  # Must be non-empty when saved
    aliases: tuple[str, ...] = (),  # Alternative read/write names
    unique: bool = False,
    **extra: Any,
) -> Any:
    """
    Define a model field with validation and ORM metadata.

    Args:
        default: Default value for the field
        default_factory: Factory function for default values
        title: Human-readable title
        description: Field description
        examples: Example values
        gt: Greater than validation
        ge: Greater than or equal validation
        lt: Less than validation
        le: Less than or equal validation
        min_length: Minimum string/list length
        max_length: Maximum string/list length
        pattern: Regex pattern for string validation
        primary_key: Whether this is the identity field
        required: Whether the field must be non-empty at save time
        aliases: Names that read and write this field
        unique: Whether values must be unique
        **extra: Additional Pydantic field arguments

    Returns:
        FieldInfo object with ORM metadata

    Example:
        >>> class Post(Model):
        ...     ID: Optional[int] = Field(None, primary_key=True, aliases=("id",))
        ...     post_title: str = Field("", required=True, aliases=("title",))
        ...     post_name: str = Field("", aliases=("slug",), max_length=200)
    """
    # Build ORM-specific metadata
    json_schema_extra = extra.pop("json_schema_extra", {})
    json_schema_extra.update({
        "orm": {
            "primary_key": primary_key,
            "required": required,
            "aliases": list(aliases),
            "unique": unique,
        }
    })

    return PydanticField(  # type: ignore[call-overload]
        default=default,
        default_factory=default_factory,
        title=title,
        description=description,
        examples=examples,
        gt=gt,
        ge=ge,
        lt=lt,
        le=le,
        min_length=min_length,
        max_length=max_length,
        pattern=pattern,
        json_schema_extra=json_schema_extra,
        **extra,
    )


def get_field_orm_metadata(field_info: FieldInfo) -> dict[str, Any]:
    """
    Extract ORM metadata from a FieldInfo object.

    Args:
        field_info: Pydantic FieldInfo instance

    Returns:
        Dictionary of ORM metadata

    Example:
        >>> field = Field(primary_key=True)
        >>> metadata = get_field_orm_metadata(field)
        >>> assert metadata["primary_key"] is True
    """
    if hasattr(field_info, "json_schema_extra") and field_info.json_schema_extra:
        extra = field_info.json_schema_extra
        if isinstance(extra, dict):
            orm_data = extra.get("orm", {})
            if isinstance(orm_data, dict):
                return orm_data
    return {}


def is_primary_key(field_info: FieldInfo) -> bool:
    """Check if a field is the identity field."""
    return bool(get_field_orm_metadata(field_info).get("primary_key", False))


def is_required(field_info: FieldInfo) -> bool:
    """Check if a field must be non-empty at save time."""
    return bool(get_field_orm_metadata(field_info).get("required", False))


def is_unique(field_info: FieldInfo) -> bool:
    """Check if a field has a unique constraint."""
    return bool(get_field_orm_metadata(field_info).get("unique", False))


def aliases_of(field_info: FieldInfo) -> tuple[str, ...]:
    """Alias names declared on a field."""
    return tuple(get_field_orm_metadata(field_info).get("aliases", ()))
