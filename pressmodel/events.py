"""
Lifecycle dispatcher.

Holds callbacks keyed by (model type, event name) and fires them around
create, update, delete, trash and restore. Before-events can veto the pending
operation; after-events are observational only.
"""

import logging
from typing import Any, Callable, Optional

from pressmodel.config import get_settings
from pressmodel.exceptions import OperationVetoed

logger = logging.getLogger(__name__)

# before -> after
EVENT_PAIRS = {
    "saving": "saved",
    "creating": "created",
    "updating": "updated",
    "deleting": "deleted",
    "trashing": "trashed",
    "restoring": "restored",
}

BEFORE_EVENTS = frozenset(EVENT_PAIRS)
AFTER_EVENTS = frozenset(EVENT_PAIRS.values())
EVENTS = BEFORE_EVENTS | AFTER_EVENTS

Callback = Callable[[Any], Any]


class LifecycleDispatcher:
    """
    Ordered lifecycle callbacks per model type.

    Callbacks registered on a supertype also fire for its subtypes, before
    the subtype's own callbacks.

    Example:
        >>> dispatcher = LifecycleDispatcher()
        >>> dispatcher.register(Post, "creating", lambda post: post.title != "")
        >>> dispatcher.fire(Post, "creating", post)
    """

    def __init__(self) -> None:
        self._callbacks: dict[tuple[type, str], list[Callback]] = {}

    def register(self, model_class: type, event: str, callback: Callback) -> Callback:
        """
        Append a callback for an event.

        Args:
            model_class: Model type (or capability mixin) the callback belongs to
            event: Event name, e.g. 'creating'
            callback: Called with the model instance

        Returns:
            The callback, so this can be used as a decorator

        Raises:
            ValueError: If the event name is unknown
        """
        if event not in EVENTS:
            raise ValueError(f"Unknown lifecycle event '{event}'")
        self._callbacks.setdefault((model_class, event), []).append(callback)
        return callback

    def listeners(self, model_class: type, event: str) -> list[Callback]:
        """Callbacks for an event in firing order (supertypes first)."""
        listeners: list[Callback] = []
        for klass in reversed(model_class.__mro__):
            listeners.extend(self._callbacks.get((klass, event), ()))
        return listeners

    def has_listeners(self, model_class: type, event: str) -> bool:
        return bool(self.listeners(model_class, event))

    def fire(self, model_class: type, event: str, instance: Any) -> None:
        """
        Invoke the callbacks for an event synchronously, in registration order.

        A before-event callback rejects the operation by returning False or by
        raising OperationVetoed. Failures in after-event callbacks are logged,
        since the operation has already been committed.

        Raises:
            OperationVetoed: If a before-event callback rejects the operation
        """
        listeners = self.listeners(model_class, event)
        if not listeners:
            return

        logger.debug(f"Firing '{event}' for {model_class.__name__} ({len(listeners)} callbacks)")

        if event in BEFORE_EVENTS:
            for callback in listeners:
                if callback(instance) is False:
                    raise OperationVetoed(event, instance)
            return

        for callback in listeners:
            try:
                callback(instance)
            except Exception as e:
                if get_settings().strict_after_events:
                    raise
                logger.warning(
                    f"'{event}' callback {getattr(callback, '__name__', callback)!r} "
                    f"failed for {model_class.__name__}: {e}",
                    exc_info=True,
                )

    def forget(self, model_class: Optional[type] = None) -> None:
        """Drop callbacks for one model type, or for every type."""
        if model_class is None:
            self._callbacks.clear()
            return
        for key in [key for key in self._callbacks if key[0] is model_class]:
            del self._callbacks[key]
