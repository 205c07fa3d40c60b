"""
Process-wide registry service.

Owns the lifecycle dispatcher, the scope registry and the booted flags for
every model type. Boot runs once per type per process, supertypes first; it
is expected to finish before concurrent request handling starts.
"""

import logging

from pressmodel.events import LifecycleDispatcher
from pressmodel.scopes import ScopeRegistry
from pressmodel.hooks import lifecycle_events_of, global_scope_name_of

logger = logging.getLogger(__name__)


def _is_bootable(klass: type) -> bool:
    """Framework base classes (object, pydantic) carry nothing to boot."""
    module = getattr(klass, '__module__', '') or ''
    return klass is not object and not module.startswith(('pydantic', 'builtins', 'typing'))


class Registry:
    """
    Registry of lifecycle callbacks, scopes and booted model types.

    Example:
        >>> registry = Registry()
        >>> registry.boot(Post)  # boots Model, capability mixins, then Post
        >>> registry.is_booted(Post)
        True
        >>> registry.reset()  # teardown
    """

    def __init__(self) -> None:
        self.events = LifecycleDispatcher()
        self.scopes = ScopeRegistry()
        self._booted: set[type] = set()

    def is_booted(self, model_class: type) -> bool:
        return model_class in self._booted

    def boot(self, model_class: type) -> None:
        """
        Boot a model type and everything it inherits from, once.

        Walks the MRO supertype-first. For each class not yet booted, the
        @on callbacks and @global_scope functions defined directly on it are
        registered, then its own boot() classmethod runs.
        """
        if model_class in self._booted:
            return

        for klass in reversed(model_class.__mro__):
            if klass in self._booted or not _is_bootable(klass):
                continue
            self._boot_class(klass)

    def _boot_class(self, klass: type) -> None:
        # Mark first so boot() implementations that touch the model don't recurse
        self._booted.add(klass)
        logger.debug(f"Booting {klass.__module__}.{klass.__qualname__}")

        for attr_name, attr in list(vars(klass).items()):
            if attr_name.startswith('__'):
                continue
            for event in lifecycle_events_of(attr):
                self.events.register(klass, event, getattr(attr, '__func__', attr))
            scope_name = global_scope_name_of(attr)
            if scope_name is not None:
                self.scopes.add_global_scope(klass, scope_name, getattr(attr, '__func__', attr))

        boot = vars(klass).get('boot')
        if boot is not None and hasattr(boot, '__get__'):
            boot.__get__(None, klass)()

    def forget(self, model_class: type) -> None:
        """Drop everything registered for a single type and mark it unbooted."""
        self.events.forget(model_class)
        self.scopes.forget(model_class)
        self._booted.discard(model_class)

    def reset(self) -> None:
        """Teardown: drop every callback, scope and booted flag."""
        self.events.forget()
        self.scopes.forget()
        self._booted.clear()


registry = Registry()


def get_registry() -> Registry:
    """Return the process-wide registry."""
    return registry


def boot_models(*model_classes: type) -> None:
    """Boot model types up front, before serving requests."""
    for model_class in model_classes:
        registry.boot(model_class)
