"""Regex classification of SQL statements."""

import re
from collections.abc import Sequence
from enum import IntEnum
from typing import Optional, Union

from procbind.config import DEFAULT_SQL_TYPES
from procbind.exceptions import UnsupportedStatementError

__all__ = ("PASS_THROUGH_CODE", "StatementKind", "classify_sql", "compile_sql_types", "is_pass_through")

PASS_THROUGH_CODE = 520


class StatementKind(IntEnum):
    """Statement kinds, numbered by their position in the pattern list."""

    PACKAGE_NAME = 0
    PACKAGE_CALL = 1
    PASS_THROUGH = 2


def compile_sql_types(
    patterns: "Optional[Sequence[Union[str, re.Pattern[str]]]]" = None,
) -> "tuple[re.Pattern[str], ...]":
    return tuple(
        p if isinstance(p, re.Pattern) else re.compile(p, re.IGNORECASE | re.DOTALL)
        for p in (patterns or DEFAULT_SQL_TYPES)
    )


def classify_sql(sql: str, patterns: "Optional[Sequence[Union[str, re.Pattern[str]]]]" = None) -> StatementKind:
    """Classify SQL text by the first matching pattern.

    Args:
        sql: The SQL text.
        patterns: Patterns indexed by :class:`StatementKind`. Defaults to the built-in set.

    Raises:
        UnsupportedStatementError: When no pattern matches.

    Returns:
        The statement kind.
    """
    text = sql.strip()
    for index, pattern in enumerate(compile_sql_types(patterns)):
        if pattern.search(text):
            try:
                return StatementKind(index)
            except ValueError:
                break
    msg = "Unrecognized SQL statement"
    raise UnsupportedStatementError(msg, sql=sql)


def is_pass_through(kind: "Union[StatementKind, int]") -> bool:
    return kind == StatementKind.PASS_THROUGH
