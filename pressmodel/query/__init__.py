"""Query building for pressmodel."""

from pressmodel.query.base import QueryBuilder, CompiledQuery, TRASHED_SCOPE
from pressmodel.query.expressions import parse_field_lookup, OPERATORS

__all__ = ["QueryBuilder", "CompiledQuery", "TRASHED_SCOPE", "parse_field_lookup", "OPERATORS"]
