from typing import Any, List, Optional, Sequence


def in_clause_string_values(terms: Sequence[str]) -> str:
    """
    Quote each term as an SQL string literal and join them, ready to go
    inside ``in (...)``.

    >>> in_clause_string_values(["a", "o'neil"])
    "'a', 'o''neil'"
    """
    return ", ".join("'{}'".format(term.replace("'", "''")) for term in terms)


def args(*values: Any) -> List[Any]:
    """Pack positional values into a statement argument list."""
    return list(values)


def nil_if_zero(value: int) -> Optional[int]:
    """Map 0 to NULL, for optional foreign keys and counters."""
    if value == 0:
        return None
    return value
