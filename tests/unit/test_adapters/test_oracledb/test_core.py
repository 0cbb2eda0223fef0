"""Unit tests for OracleDB adapter helpers."""

import re
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from unittest.mock import MagicMock

import oracledb
import pytest

from procbind.adapters.oracledb.core import (
    coerce_element,
    driver_error_from_exception,
    parse_date,
    raise_oracledb_exception,
    to_db_type,
    wrap_oracle_errors,
)
from procbind.config import DEFAULT_TYPE_PATTERNS
from procbind.core.types import CollectionType, WireType
from procbind.exceptions import CommitError, DatabaseConnectionError, StatementError


def _oracle_error(code: int, message: str) -> oracledb.DatabaseError:
    return oracledb.DatabaseError(MagicMock(code=code, message=message))


@pytest.mark.parametrize(
    ("wire_type", "expected"),
    [
        (WireType.CHR, oracledb.DB_TYPE_VARCHAR),
        (WireType.INT, oracledb.DB_TYPE_NUMBER),
        (WireType.FLT, oracledb.DB_TYPE_NUMBER),
        (WireType.ODT, oracledb.DB_TYPE_DATE),
        (WireType.RSET, oracledb.DB_TYPE_CURSOR),
        (1, oracledb.DB_TYPE_VARCHAR),
        (999, None),
        (None, None),
        (CollectionType("APP", "URL_LIST"), None),
    ],
)
def test_to_db_type(wire_type: Any, expected: Any) -> None:
    assert to_db_type(wire_type) is expected


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("2023-01-15", datetime(2023, 1, 15)),
        ("2023-01-15 10:30:00", datetime(2023, 1, 15, 10, 30)),
        ("12/31/2020", datetime(2020, 12, 31)),
        ("15-JAN-2023", datetime(2023, 1, 15)),
        ("2023/01/15", datetime(2023, 1, 15)),
        ("2024.01.15", datetime(2024, 1, 15)),
        ("15.01.2024", datetime(2024, 1, 15)),
        ("13/01/2024", datetime(2024, 1, 13)),
        ("2024-Jan-15", datetime(2024, 1, 15)),
        ("15-jan-24", datetime(2024, 1, 15)),
        ("15/Jan/2024", datetime(2024, 1, 15)),
        ("2024/1-5", datetime(2024, 1, 5)),
        ("1/5/24", datetime(2024, 1, 5)),
        ("2024-01-15T10:30", datetime(2024, 1, 15, 10, 30)),
        ("2024-01-15 10:30:00.1234", datetime(2024, 1, 15, 10, 30, 0, 123400)),
    ],
)
def test_parse_date(text: str, expected: datetime) -> None:
    assert parse_date(text) == expected


@pytest.mark.parametrize(
    "text",
    ["2024.01.15", "13/01/2024", "31-12-99", "2024-Feb-29", "7.4.2024", "2024-01-15T10:30:00.5", "09/Sep/2023"],
)
def test_parse_date_accepts_inferred_dates(text: str) -> None:
    """Test values the default date pattern infers as dates can be bound as dates."""
    assert re.search(DEFAULT_TYPE_PATTERNS["date"], text)
    assert isinstance(parse_date(text), datetime)


def test_parse_date_invalid() -> None:
    with pytest.raises(ValueError, match="Unrecognized date"):
        parse_date("someday")


@pytest.mark.parametrize(
    ("wire_type", "value", "expected"),
    [
        (WireType.INT, "42", 42),
        (WireType.INT, " 7 ", 7),
        (WireType.INT, True, 1),
        (WireType.NUM, "1,234.50", Decimal("1234.50")),
        (WireType.NUM, 3, Decimal("3")),
        (WireType.FLT, "1.5e 10", 1.5e10),
        (WireType.FLT, 2, 2.0),
        (WireType.ODT, "2020-01-01", datetime(2020, 1, 1)),
        (WireType.ODT, date(2020, 1, 1), date(2020, 1, 1)),
        (WireType.CHR, 12, "12"),
        (WireType.CHR, None, None),
        (None, "x", "x"),
        (999, "x", "x"),
    ],
)
def test_coerce_element(wire_type: Any, value: Any, expected: Any) -> None:
    assert coerce_element(wire_type, value) == expected


def test_coerce_element_invalid() -> None:
    with pytest.raises(ValueError):
        coerce_element(WireType.FLT, "abc")


def test_driver_error_from_exception() -> None:
    """Test Oracle error objects give their code and a sanitized message."""
    error = driver_error_from_exception(_oracle_error(1036, "ORA-01036: illegal\nvariable"), "BEGIN x.y; END;")
    assert error.code == 1036
    assert error.message == "ORA-01036: illegalvariable"
    assert error.sql_text == "BEGIN x.y; END;"


def test_driver_error_from_plain_exception() -> None:
    error = driver_error_from_exception(ValueError("bad value"))
    assert error.code is None
    assert error.message == "bad value"


def test_raise_oracledb_exception() -> None:
    with pytest.raises(StatementError, match="Oracle execute failed: ORA-00900") as exc_info:
        raise_oracledb_exception(_oracle_error(900, "ORA-00900: invalid SQL"), StatementError, "execute failed")
    assert exc_info.value.driver_code == 900
    assert isinstance(exc_info.value.__cause__, oracledb.DatabaseError)


def test_connection_errors_are_promoted() -> None:
    """Test logon and listener failures surface as connection errors."""
    with pytest.raises(DatabaseConnectionError):
        raise_oracledb_exception(_oracle_error(1017, "ORA-01017: invalid username/password"), StatementError)


def test_wrap_oracle_errors() -> None:
    with pytest.raises(CommitError) as exc_info, wrap_oracle_errors(CommitError, "commit failed", code=599):
        raise _oracle_error(2091, "ORA-02091: transaction rolled back")
    assert exc_info.value.code == 599


def test_wrap_oracle_errors_leaves_other_errors() -> None:
    with pytest.raises(KeyError), wrap_oracle_errors(CommitError):
        raise KeyError("x")
