"""
Hook decorators for lifecycle callbacks and global scopes.

Decorated functions are collected when a model type boots, from the class
that defines them (including capability mixins), and registered with the
process-wide registry.
"""

from typing import Any, Callable, TypeVar

from pressmodel.events import EVENTS

F = TypeVar('F', bound=Callable[..., Any])


def _unwrap(func: Any) -> Any:
    """Return the function behind a classmethod/staticmethod wrapper."""
    return getattr(func, '__func__', func)


def on(*events: str) -> Callable[[F], F]:
    """
    Mark a method as a lifecycle callback for one or more events.

    The method is called with the model instance. Returning False from a
    before-event ('creating', 'updating', 'deleting', ...) vetoes the
    operation.

    Example:
        >>> class Post(Model):
        ...     @on("creating")
        ...     def fill_slug(self):
        ...         if not self.slug:
        ...             self.slug = slugify(self.title)
    """
    unknown = [event for event in events if event not in EVENTS]
    if unknown:
        raise ValueError(f"Unknown lifecycle events: {', '.join(unknown)}")

    def decorator(func: F) -> F:
        target = _unwrap(func)
        existing = getattr(target, '_lifecycle_events', ())
        setattr(target, '_lifecycle_events', tuple(existing) + events)  # type: ignore[attr-defined]
        return func
    return decorator


def global_scope(name: str) -> Callable[[F], F]:
    """
    Mark a function as a global scope applied to every query.

    The function receives the query builder, like a query_method receives
    its query, and returns the modified builder.

    Example:
        >>> class SoftDeletes:
        ...     @global_scope("soft_deletes")
        ...     def exclude_trashed(query):
        ...         return query.exclude_trashed()
    """
    def decorator(func: F) -> F:
        setattr(_unwrap(func), '_global_scope_name', name)  # type: ignore[attr-defined]
        return func
    return decorator


def lifecycle_events_of(attr: Any) -> tuple[str, ...]:
    """Events an attribute was marked for with @on."""
    return tuple(getattr(_unwrap(attr), '_lifecycle_events', ()))


def global_scope_name_of(attr: Any) -> Any:
    """Scope name an attribute was marked with by @global_scope, or None."""
    return getattr(_unwrap(attr), '_global_scope_name', None)
