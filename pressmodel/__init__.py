"""
pressmodel - ActiveRecord-style content models for Python.

Attribute aliasing, deferred meta storage, lifecycle events and composable
query scopes on top of Pydantic models, with pluggable storage backends.
"""

from pressmodel.config import configure, get_settings, reset_settings
from pressmodel.exceptions import (
    PressModelError,
    UnknownAttribute,
    ValidationError,
    BackendError,
    PersistenceError,
    DuplicateKeyError,
    NotFound,
    MetaPersistenceError,
    OperationVetoed,
    ScopeNotFound,
    AmbiguousTaxonomy,
)
from pressmodel.hooks import on, global_scope
from pressmodel.models import Model, Field
from pressmodel.mixins import SoftDeletes, TimestampMixin
from pressmodel.query import QueryBuilder
from pressmodel.registry import registry, boot_models, get_registry

__version__ = "0.1.0"

__all__ = [
    "Model",
    "Field",
    "on",
    "global_scope",
    "SoftDeletes",
    "TimestampMixin",
    "QueryBuilder",
    "registry",
    "get_registry",
    "boot_models",
    "configure",
    "get_settings",
    "reset_settings",
    "PressModelError",
    "UnknownAttribute",
    "ValidationError",
    "BackendError",
    "PersistenceError",
    "DuplicateKeyError",
    "NotFound",
    "MetaPersistenceError",
    "OperationVetoed",
    "ScopeNotFound",
    "AmbiguousTaxonomy",
]
