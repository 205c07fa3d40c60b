"""
Process-wide settings for pressmodel.

Per-type configuration lives on the model class (model_backend, model_type,
table, aliases, model_config). This module holds the defaults shared by every
type.

Example:
    >>> from pressmodel import configure
    >>> from pressmodel.backends import InMemoryBackend
    >>> configure(default_backend=InMemoryBackend())
"""

from typing import Any, Optional, TYPE_CHECKING
from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from pressmodel.backends.base import Backend


class OrmSettings(BaseModel):
    """Settings shared by every model type."""

    model_config = ConfigDict(
        validate_assignment=True,
        arbitrary_types_allowed=True,
        extra="forbid",
    )

    # Backend used by types that do not declare model_backend
    default_backend: Optional[Any] = None

    # Prefix for local scope methods: Post.published() -> Post.scope_published
    scope_prefix: str = "scope_"

    # Propagate after-event callback failures instead of logging them
    strict_after_events: bool = False


_settings = OrmSettings()


def get_settings() -> OrmSettings:
    """Return the active settings."""
    return _settings


def configure(**options: Any) -> OrmSettings:
    """
    Update the active settings.

    Args:
        **options: Settings fields to change

    Returns:
        The active settings

    Raises:
        pydantic.ValidationError: If an option is unknown or has the wrong type
    """
    for name, value in options.items():
        if name not in OrmSettings.model_fields:
            raise ValueError(f"Unknown setting '{name}'")
        setattr(_settings, name, value)
    return _settings


def reset_settings() -> OrmSettings:
    """Restore every setting to its default."""
    global _settings
    _settings = OrmSettings()
    return _settings


def default_backend() -> Optional["Backend"]:
    """Return the configured default backend, if any."""
    return _settings.default_backend
