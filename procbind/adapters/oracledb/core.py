"""OracleDB adapter helpers.

Wire type mapping, value coercion for typed binds and translation of
``oracledb.Error`` into procbind exceptions.
"""

import re
from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Final, Optional

import oracledb

from procbind.core.types import DriverError, WireType
from procbind.exceptions import DatabaseConnectionError, DatabaseError
from procbind.utils.text import strip_control_characters

if TYPE_CHECKING:
    from collections.abc import Generator

    from procbind.core.types import ResolvedType

__all__ = (
    "DATE_FORMATS",
    "WIRE_TYPE_MAP",
    "coerce_element",
    "driver_error_from_exception",
    "parse_date",
    "raise_oracledb_exception",
    "to_db_type",
    "wrap_oracle_errors",
)

WIRE_TYPE_MAP: "Final[dict[WireType, Any]]" = {
    WireType.CHR: oracledb.DB_TYPE_VARCHAR,
    WireType.STR: oracledb.DB_TYPE_VARCHAR,
    WireType.VCS: oracledb.DB_TYPE_VARCHAR,
    WireType.AVC: oracledb.DB_TYPE_VARCHAR,
    WireType.LVC: oracledb.DB_TYPE_LONG,
    WireType.AFC: oracledb.DB_TYPE_CHAR,
    WireType.NUM: oracledb.DB_TYPE_NUMBER,
    WireType.INT: oracledb.DB_TYPE_NUMBER,
    WireType.FLT: oracledb.DB_TYPE_NUMBER,
    WireType.ODT: oracledb.DB_TYPE_DATE,
    WireType.RSET: oracledb.DB_TYPE_CURSOR,
    WireType.NTY: oracledb.DB_TYPE_OBJECT,
}

DATE_FORMATS: Final[tuple[str, ...]] = (
    "%m/%d/%Y",
    "%m/%d/%y",
    "%d-%b-%Y",
    "%d-%b-%y",
    "%Y/%m/%d",
    "%d.%m.%Y",
    "%d.%m.%y",
    "%Y.%m.%d",
    "%Y-%b-%d",
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y-%m-%d %H:%M:%S.%f",
)

# Tried once separators are unified, for mixed separators and day-first dates.
_FALLBACK_DATE_FORMATS: Final[tuple[str, ...]] = (
    "%m/%d/%Y",
    "%m/%d/%y",
    "%Y/%m/%d",
    "%Y/%b/%d",
    "%d/%b/%Y",
    "%d/%b/%y",
    "%d/%m/%Y",
    "%d/%m/%y",
    "%y/%m/%d",
)
_DATE_SEPARATORS: Final["re.Pattern[str]"] = re.compile(r"[.-]")

_CONNECTION_ERROR_CODES: Final[frozenset[int]] = frozenset({1017, 12154, 12505, 12514, 12541, 12545})


def to_db_type(wire_type: "Optional[ResolvedType]") -> Any:
    """Return the ``oracledb.DB_TYPE_*`` for a wire type, or None if there is none."""
    if wire_type is None or isinstance(wire_type, tuple):
        return None
    try:
        return WIRE_TYPE_MAP.get(WireType(wire_type))
    except ValueError:
        return None


def parse_date(value: str) -> datetime:
    """Parse a date string in ISO format or one of :data:`DATE_FORMATS`.

    Dates that fit none of them are retried with every separator read as
    ``/``, month-first before day-first.

    Raises:
        ValueError: When no format matches.
    """
    text = value.strip()
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    unified = _DATE_SEPARATORS.sub("/", text)
    for fmt in _FALLBACK_DATE_FORMATS:
        try:
            return datetime.strptime(unified, fmt)
        except ValueError:
            continue
    msg = f"Unrecognized date {value!r}"
    raise ValueError(msg)


def coerce_element(wire_type: "Optional[ResolvedType]", value: Any) -> Any:
    """Convert a value to the Python type python-oracledb expects for a wire type.

    Args:
        wire_type: The resolved wire type.
        value: The shaped value.

    Raises:
        ValueError: When a string cannot be converted.

    Returns:
        The converted value; None stays None.
    """
    if value is None or wire_type is None or isinstance(wire_type, tuple):
        return value
    try:
        wire = WireType(wire_type)
    except ValueError:
        return value

    if wire is WireType.INT:
        if isinstance(value, str):
            return int(Decimal(value.strip()))
        return int(value)
    if wire is WireType.NUM:
        return value if isinstance(value, Decimal) else Decimal(str(value).strip().replace(",", ""))
    if wire is WireType.FLT:
        return float(value.strip().replace(" ", "+")) if isinstance(value, str) else float(value)
    if wire is WireType.ODT:
        if isinstance(value, (date, datetime)):
            return value
        return parse_date(str(value))
    if wire in {WireType.CHR, WireType.STR, WireType.VCS, WireType.AVC, WireType.AFC, WireType.LVC}:
        return value if isinstance(value, str) else str(value)
    return value


def _error_parts(error: Exception) -> "tuple[Optional[int], str]":
    error_obj = error.args[0] if getattr(error, "args", None) else None
    try:
        code = error_obj.code  # type: ignore[union-attr]
    except AttributeError:
        code = None
    try:
        message = error_obj.message  # type: ignore[union-attr]
    except AttributeError:
        message = str(error)
    return (code or None), strip_control_characters(message)


def driver_error_from_exception(error: Exception, sql: "Optional[str]" = None) -> DriverError:
    """Build the error record a bind primitive leaves on a statement handle."""
    code, message = _error_parts(error)
    return DriverError(code, message, sql)


def raise_oracledb_exception(
    error: Exception,
    error_class: "type[DatabaseError]" = DatabaseError,
    description: str = "database error",
    code: "Optional[int]" = None,
) -> None:
    """Raise a procbind exception for an Oracle error.

    Connection failures (bad credentials, unknown service, listener down) are
    raised as :class:`DatabaseConnectionError` whatever ``error_class`` is.

    Args:
        error: The ``oracledb.Error``.
        error_class: Exception class to raise.
        description: Short description used in the message.
        code: Override for the exception's numeric code.

    Raises:
        DatabaseError: Always.
    """
    error_code, message = _error_parts(error)
    if error_code in _CONNECTION_ERROR_CODES:
        error_class = DatabaseConnectionError
    msg = f"Oracle {description}: {message}"
    raise error_class(msg, driver_code=error_code, code=code) from error


@contextmanager
def wrap_oracle_errors(
    error_class: "type[DatabaseError]" = DatabaseError,
    description: str = "database error",
    code: "Optional[int]" = None,
) -> "Generator[None, None, None]":
    """Translate ``oracledb.Error`` raised inside the block.

    Args:
        error_class: Exception class to raise.
        description: Short description used in the message.
        code: Override for the exception's numeric code.
    """
    try:
        yield
    except oracledb.Error as exc:
        raise_oracledb_exception(exc, error_class, description, code)
