"""
Query builder for pressmodel.

Provides a fluent, backend-agnostic interface. Nothing runs until results
are requested; at that point the builder is compiled (global scopes first,
then chained local scopes) and handed to the model's storage adapter.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Optional, TYPE_CHECKING

from pressmodel.query.expressions import build_lookup, matches_filters, parse_field_lookup
from pressmodel.registry import registry

if TYPE_CHECKING:
    from pressmodel.models.base import Model

logger = logging.getLogger(__name__)

# Name of the global scope installed by SoftDeletes
TRASHED_SCOPE = "soft_deletes"

TRASHED_MODES = ("include", "exclude", "only")

FilterList = tuple[tuple[str, dict[str, Any]], ...]


@dataclass(frozen=True)
class CompiledQuery:
    """
    Final, scope-applied query handed to the storage adapter.

    A record matches when it satisfies filters and every group in
    scope_filters (likewise for meta).

    Attributes:
        table: Storage collection name
        filters: Caller's (kind, conditions) on canonical attributes; kind
            is "and", "or" or "not"
        meta_filters: Caller's (kind, conditions) on meta keys
        scope_filters: One filter list per scope that added attribute
            conditions
        scope_meta_filters: One filter list per scope that added meta
            conditions
        trashed: "include", "exclude" or "only"
        order_by: Canonical field names, "-" prefix for descending
        limit: Maximum number of records
        offset: Number of records to skip
        scopes: Names of the scopes that were applied, in order
    """

    table: str
    filters: FilterList = ()
    meta_filters: FilterList = ()
    scope_filters: tuple[FilterList, ...] = ()
    scope_meta_filters: tuple[FilterList, ...] = ()
    trashed: str = "include"
    order_by: tuple[str, ...] = ()
    limit: Optional[int] = None
    offset: Optional[int] = None
    scopes: tuple[str, ...] = field(default=())

    def matches(self, attributes: dict[str, Any], meta: Optional[dict[str, Any]] = None) -> bool:
        """Evaluate the attribute and meta constraints against one record."""
        if not all(matches_filters(attributes, group) for group in (self.filters, *self.scope_filters)):
            return False
        meta_groups = (self.meta_filters, *self.scope_meta_filters)
        if not any(meta_groups):
            return True
        return all(matches_filters(meta or {}, group) for group in meta_groups)

    def conditions(self) -> dict[str, Any]:
        """All ANDed attribute conditions merged into one dict, scopes first."""
        return _merge_and(self.scope_filters, self.filters)

    def meta_conditions(self) -> dict[str, Any]:
        """All ANDed meta conditions merged into one dict, scopes first."""
        return _merge_and(self.scope_meta_filters, self.meta_filters)


def _merge_and(groups: tuple[FilterList, ...], filters: FilterList) -> dict[str, Any]:
    merged: dict[str, Any] = {}
    for filter_list in (*groups, filters):
        for kind, conditions in filter_list:
            if kind == "and":
                merged.update(conditions)
    return merged


class QueryBuilder:
    """
    Fluent query builder bound to a model type.

    Example:
        >>> Post.query().where(status="publish").order_by("-date").limit(10).get()
        >>> Post.query().of_type("video").get()   # local scope
        >>> Post.query().without_global_scope("post_type").count()
    """

    def __init__(self, model_class: type["Model"]):
        """
        Initialize query builder.

        Args:
            model_class: The model class being queried
        """
        self.model_class = model_class
        self._filters: list[tuple[str, dict[str, Any]]] = []  # (kind, conditions)
        self._meta_filters: list[tuple[str, dict[str, Any]]] = []
        self._limit: Optional[int] = None
        self._offset: Optional[int] = None
        self._order_by: list[str] = []
        self._trashed = "include"
        self._excluded_scopes: set[str] = set()
        self._exclude_all_scopes = False
        self._local_scopes: list[tuple[str, Callable[..., Any], tuple, dict]] = []
        self._compiling = False

    # === Conditions ===

    def _resolve(self, conditions: dict[str, Any]) -> dict[str, Any]:
        """Resolve aliases in the field part of each lookup."""
        aliases = self.model_class.alias_map
        resolved = {}
        for field_lookup, value in conditions.items():
            name, operator = parse_field_lookup(field_lookup)
            resolved[build_lookup(aliases.resolve(name), operator)] = value
        return resolved

    def where(self, **conditions: Any) -> "QueryBuilder":
        """
        Add AND conditions. Alias names are accepted.

        Example:
            >>> Post.query().where(title="Hello", author__in=[1, 2])
        """
        return self.and_(**conditions)

    def and_(self, **conditions: Any) -> "QueryBuilder":
        """
        Add AND conditions to the query.

        Example:
            >>> query = User.where(role="editor").and_(display_name="Alice")
            >>> # Equivalent to: role = 'editor' AND display_name = 'Alice'
        """
        if conditions:
            self._filters.append(("and", self._resolve(conditions)))
        return self

    def or_(self, **conditions: Any) -> "QueryBuilder":
        """
        Add OR conditions to the query.

        Example:
            >>> query = User.where(role="admin").or_(role="editor")
        """
        if conditions:
            self._filters.append(("or", self._resolve(conditions)))
        return self

    def not_(self, **conditions: Any) -> "QueryBuilder":
        """
        Add NOT conditions to the query.

        Example:
            >>> query = Post.query().not_(status="draft")
        """
        if conditions:
            self._filters.append(("not", self._resolve(conditions)))
        return self

    def where_meta(self, **conditions: Any) -> "QueryBuilder":
        """
        Constrain on meta values.

        Example:
            >>> Post.query().where_meta(type="video", views__gte=100)
        """
        if conditions:
            self._meta_filters.append(("and", dict(conditions)))
        return self

    def where_meta_not(self, **conditions: Any) -> "QueryBuilder":
        """Exclude records whose meta matches the conditions."""
        if conditions:
            self._meta_filters.append(("not", dict(conditions)))
        return self

    # === Shaping ===

    def limit(self, n: int) -> "QueryBuilder":
        self._limit = n
        return self

    def offset(self, n: int) -> "QueryBuilder":
        self._offset = n
        return self

    def order_by(self, *fields: str) -> "QueryBuilder":
        """
        Order results by fields. Use "-" prefix for descending order.

        Example:
            >>> query.order_by("-date", "title")
        """
        aliases = self.model_class.alias_map
        for name in fields:
            descending = name.startswith("-")
            canonical = aliases.resolve(name[1:] if descending else name)
            self._order_by.append(f"-{canonical}" if descending else canonical)
        return self

    # === Trash and scope control ===

    def exclude_trashed(self) -> "QueryBuilder":
        """Leave trashed records out (installed by the SoftDeletes scope)."""
        self._trashed = "exclude"
        return self

    def with_trashed(self) -> "QueryBuilder":
        """Include trashed records alongside live ones."""
        self._excluded_scopes.add(TRASHED_SCOPE)
        self._trashed = "include"
        return self

    def only_trashed(self) -> "QueryBuilder":
        """Return only trashed records."""
        self._excluded_scopes.add(TRASHED_SCOPE)
        self._trashed = "only"
        return self

    def without_global_scope(self, name: str) -> "QueryBuilder":
        """Skip one named global scope for this query only."""
        self._excluded_scopes.add(name)
        return self

    def without_global_scopes(self, *names: str) -> "QueryBuilder":
        """Skip the named global scopes, or all of them when no name is given."""
        if names:
            self._excluded_scopes.update(names)
        else:
            self._exclude_all_scopes = True
        return self

    def scope(self, name: str, *args: Any, **kwargs: Any) -> "QueryBuilder":
        """
        Apply a local scope by name.

        Equivalent to attribute-style invocation: query.scope("of_type", "video")
        is query.of_type("video").

        Raises:
            ScopeNotFound: If the model has no such scope
        """
        scope_fn = registry.scopes.resolve_local_scope(self.model_class, name)
        if self._compiling:
            result = scope_fn(self, *args, **kwargs)
            return self if result is None else result
        self._local_scopes.append((name, scope_fn, args, kwargs))
        return self

    def __getattr__(self, name: str) -> Any:
        """
        Dispatch local scopes declared on the model.

        Post.query().published() resolves to Post.scope_published(query).
        """
        if name.startswith('_'):
            raise AttributeError(f"'{type(self).__name__}' object has no attribute '{name}'")

        # Raises ScopeNotFound (an AttributeError) for unknown names
        registry.scopes.resolve_local_scope(self.model_class, name)

        def bound_scope(*args: Any, **kwargs: Any) -> "QueryBuilder":
            return self.scope(name, *args, **kwargs)
        return bound_scope

    # === Compilation ===

    def _clone(self) -> "QueryBuilder":
        clone = QueryBuilder(self.model_class)
        clone._filters = list(self._filters)
        clone._meta_filters = list(self._meta_filters)
        clone._limit = self._limit
        clone._offset = self._offset
        clone._order_by = list(self._order_by)
        clone._trashed = self._trashed
        clone._excluded_scopes = set(self._excluded_scopes)
        clone._exclude_all_scopes = self._exclude_all_scopes
        clone._local_scopes = list(self._local_scopes)
        return clone

    def compile(self) -> CompiledQuery:
        """
        Apply scopes and freeze the query.

        Global scopes run first, in registration order, skipping any excluded
        for this query. Local scopes then run in the order they were chained.
        The conditions each scope adds are kept apart from the caller's own
        filters and ANDed with them, so or_() cannot widen a scope.
        The builder itself is left untouched.
        """
        registry.boot(self.model_class)

        query = self._clone()
        local_scopes = query._local_scopes
        query._local_scopes = []
        query._compiling = True

        scopes: list[tuple[str, Callable[..., Any], tuple, dict]] = []
        if not self._exclude_all_scopes:
            scopes.extend(
                (name, scope_fn, (), {})
                for name, scope_fn in registry.scopes.global_scopes(self.model_class)
                if name not in self._excluded_scopes
            )
        scopes.extend(local_scopes)

        applied: list[str] = []
        scope_filters: list[FilterList] = []
        scope_meta_filters: list[FilterList] = []
        for name, scope_fn, args, kwargs in scopes:
            filters_start = len(query._filters)
            meta_start = len(query._meta_filters)
            result = scope_fn(query, *args, **kwargs)
            query = query if result is None else result

            added = tuple(query._filters[filters_start:])
            added_meta = tuple(query._meta_filters[meta_start:])
            del query._filters[filters_start:]
            del query._meta_filters[meta_start:]
            if added:
                scope_filters.append(added)
            if added_meta:
                scope_meta_filters.append(added_meta)
            applied.append(name)

        compiled = CompiledQuery(
            table=self.model_class.storage_table(),
            filters=tuple(query._filters),
            meta_filters=tuple(query._meta_filters),
            scope_filters=tuple(scope_filters),
            scope_meta_filters=tuple(scope_meta_filters),
            trashed=query._trashed,
            order_by=tuple(query._order_by),
            limit=query._limit,
            offset=query._offset,
            scopes=tuple(applied),
        )
        logger.debug(f"Compiled query for {self.model_class.__name__}: {compiled}")
        return compiled

    # === Execution ===

    def get(self) -> list["Model"]:
        """
        Execute the query and return all results.

        Example:
            >>> posts = Post.published().get()
        """
        compiled = self.compile()
        backend = self.model_class._get_backend()
        records = backend.query(self.model_class, compiled)
        return [self.model_class._from_record(record) for record in records]

    def all(self) -> list["Model"]:
        """Alias of get()."""
        return self.get()

    def first(self) -> Optional["Model"]:
        """Execute the query and return the first result, or None."""
        results = self._clone().limit(1).get()
        return results[0] if results else None

    def last(self) -> Optional["Model"]:
        """
        Execute the query and return the last result.

        Reverses the ordering when there is one; otherwise fetches everything
        and takes the last element.
        """
        if not self._order_by:
            results = self.get()
            return results[-1] if results else None

        reversed_query = self._clone()
        reversed_query._order_by = [
            name[1:] if name.startswith("-") else f"-{name}"
            for name in self._order_by
        ]
        return reversed_query.first()

    def count(self) -> int:
        """Count matching records."""
        backend = self.model_class._get_backend()
        return backend.count(self.model_class, self.compile())

    def exists(self) -> bool:
        """Check whether any record matches."""
        return self.count() > 0

    def __iter__(self) -> Iterator["Model"]:
        return iter(self.get())

    def __len__(self) -> int:
        return self.count()

    def __bool__(self) -> bool:
        return self.exists()

    def __repr__(self) -> str:
        return (
            f"<QueryBuilder {self.model_class.__name__} filters={self._filters} "
            f"meta={self._meta_filters} scopes={[s[0] for s in self._local_scopes]}>"
        )
