"""
Scope registry.

Global scopes are named query modifiers applied to every query built for a
model type and its subtypes. Local scopes are opt-in modifiers declared as
prefixed methods on the model class (scope_published, scope_of_type) and
invoked by their bare name.
"""

from typing import Any, Callable, Optional

from pressmodel.config import get_settings
from pressmodel.exceptions import ScopeNotFound

ScopeFn = Callable[..., Any]


class ScopeRegistry:
    """
    Global and local scopes per model type.

    Example:
        >>> scopes = ScopeRegistry()
        >>> scopes.add_global_scope(Post, "published", lambda q: q.where(status="publish"))
        >>> scopes.global_scopes(Post)
        [('published', <function <lambda>>)]
    """

    def __init__(self) -> None:
        self._global: dict[type, dict[str, ScopeFn]] = {}
        self._local: dict[type, dict[str, ScopeFn]] = {}

    # === Global scopes ===

    def add_global_scope(self, model_class: type, name: str, predicate: ScopeFn) -> None:
        """
        Register a query modifier applied to every query for model_class.

        Re-registering a name replaces the previous predicate in place, so the
        scope keeps its original position in the application order.

        Args:
            model_class: Model type the scope belongs to
            name: Unique scope name, used for exclusion and removal
            predicate: Called with the query builder; returns the modified
                builder (or None to keep the same builder)
        """
        if not callable(predicate):
            raise TypeError(f"Global scope '{name}' must be callable")
        self._global.setdefault(model_class, {})[name] = predicate

    def remove_global_scope(self, model_class: type, name: str) -> bool:
        """
        Deregister a global scope process-wide.

        To skip a scope for a single query use
        QueryBuilder.without_global_scope() instead.

        Returns:
            True if a scope was removed
        """
        return self._global.get(model_class, {}).pop(name, None) is not None

    def global_scopes(self, model_class: type) -> list[tuple[str, ScopeFn]]:
        """
        Global scopes for a model type in application order.

        Supertype scopes come first. A subtype registering a scope under a
        supertype's name overrides it.
        """
        merged: dict[str, ScopeFn] = {}
        for klass in reversed(model_class.__mro__):
            merged.update(self._global.get(klass, {}))
        return list(merged.items())

    def has_global_scope(self, model_class: type, name: str) -> bool:
        return any(scope_name == name for scope_name, _ in self.global_scopes(model_class))

    # === Local scopes ===

    def add_local_scope(self, model_class: type, name: str, scope: ScopeFn) -> None:
        """Register a local scope without declaring a prefixed method."""
        self._local.setdefault(model_class, {})[name] = scope

    def resolve_local_scope(self, model_class: type, method_name: str) -> ScopeFn:
        """
        Map a scope name to a callable taking (query, *args).

        Looks for a registered local scope first, then for a method named
        with the configured prefix ('scope_' + method_name) anywhere in the
        model's MRO.

        Raises:
            ScopeNotFound: If no matching scope exists
        """
        for klass in model_class.__mro__:
            scope = self._local.get(klass, {}).get(method_name)
            if scope is not None:
                return scope

        attr_name = get_settings().scope_prefix + method_name
        # Look in class dicts directly; getattr on the model class would
        # recurse into scope resolution for missing names.
        for klass in model_class.__mro__:
            if attr_name in klass.__dict__:
                return getattr(model_class, attr_name)

        raise ScopeNotFound(model_class.__name__, method_name)

    def has_local_scope(self, model_class: type, method_name: str) -> bool:
        try:
            self.resolve_local_scope(model_class, method_name)
        except ScopeNotFound:
            return False
        return True

    def forget(self, model_class: Optional[type] = None) -> None:
        """Drop scopes for one model type, or for every type."""
        if model_class is None:
            self._global.clear()
            self._local.clear()
            return
        self._global.pop(model_class, None)
        self._local.pop(model_class, None)
