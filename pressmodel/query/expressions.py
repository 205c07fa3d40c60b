"""
Lookup parsing and evaluation.

Filter conditions use Django-style lookups: "field" for equality,
"field__op" for other operators.
"""

from typing import Any


# Supported operators and their meanings
OPERATORS = {
    "eq": "equals",
    "ne": "not equals",
    "gt": "greater than",
    "gte": "greater than or equal",
    "lt": "less than",
    "lte": "less than or equal",
    "in": "in list",
    "contains": "contains",
    "startswith": "starts with",
    "endswith": "ends with",
    "exists": "key present (meta) or value not None",
}


def parse_field_lookup(field_lookup: str) -> tuple[str, str]:
    """
    Parse a field lookup string into field name and operator.

    Args:
        field_lookup: Field lookup string (e.g., "age__gte")

    Returns:
        Tuple of (field_name, operator)

    Example:
        >>> parse_field_lookup("age__gte")
        ('age', 'gte')
        >>> parse_field_lookup("name")
        ('name', 'eq')
        >>> parse_field_lookup("post__name")  # not an operator
        ('post__name', 'eq')
    """
    if "__" in field_lookup:
        field, operator = field_lookup.rsplit("__", 1)
        if operator in OPERATORS:
            return field, operator
    return field_lookup, "eq"


def build_lookup(field: str, operator: str) -> str:
    """Inverse of parse_field_lookup."""
    return field if operator == "eq" else f"{field}__{operator}"


def evaluate(record_value: Any, operator: str, value: Any, present: bool = True) -> bool:
    """
    Evaluate one lookup against a stored value.

    Args:
        record_value: Value stored on the record (None if absent)
        operator: Operator name from OPERATORS
        value: Value from the filter condition
        present: Whether the key exists on the record at all

    Raises:
        ValueError: If the operator is unknown
    """
    if operator == "eq":
        return present and record_value == value
    if operator == "ne":
        return record_value != value
    if operator == "exists":
        return (present and record_value is not None) == bool(value)
    if operator in ("gt", "gte", "lt", "lte"):
        if record_value is None:
            return False
        try:
            if operator == "gt":
                return record_value > value
            if operator == "gte":
                return record_value >= value
            if operator == "lt":
                return record_value < value
            return record_value <= value
        except TypeError:
            return False
    if operator == "in":
        return present and record_value in value
    if operator == "contains":
        return bool(record_value) and value in record_value
    if operator == "startswith":
        return bool(record_value) and str(record_value).startswith(str(value))
    if operator == "endswith":
        return bool(record_value) and str(record_value).endswith(str(value))
    raise ValueError(f"Unknown lookup operator '{operator}'")


def matches_conditions(values: dict[str, Any], conditions: dict[str, Any]) -> bool:
    """Check that every lookup in conditions holds for values (AND)."""
    for field_lookup, value in conditions.items():
        field, operator = parse_field_lookup(field_lookup)
        if not evaluate(values.get(field), operator, value, present=field in values):
            return False
    return True


def matches_filters(values: dict[str, Any], filters: Any) -> bool:
    """
    Evaluate a list of (kind, conditions) filters against values.

    "and" and "not" entries are ANDed within a group; each "or" entry starts
    a new group, and groups are ORed together.

    Example:
        >>> matches_filters({"role": "admin"}, [("and", {"role": "editor"}), ("or", {"role": "admin"})])
        True
    """
    if not filters:
        return True

    # Group filters by OR boundaries
    groups: list[list[tuple[str, dict[str, Any]]]] = []
    current: list[tuple[str, dict[str, Any]]] = []
    for kind, conditions in filters:
        if kind == "or" and current:
            groups.append(current)
            current = []
        current.append((kind, conditions))
    if current:
        groups.append(current)

    for group in groups:
        group_matches = True
        for kind, conditions in group:
            matched = matches_conditions(values, conditions)
            if kind == "not" and matched:
                group_matches = False
                break
            if kind != "not" and not matched:
                group_matches = False
                break
        if group_matches:
            return True
    return False
