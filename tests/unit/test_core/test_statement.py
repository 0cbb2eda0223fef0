"""Unit tests for SQL statement classification."""

import pytest

from procbind.core.statement import PASS_THROUGH_CODE, StatementKind, classify_sql, compile_sql_types, is_pass_through
from procbind.exceptions import UnsupportedStatementError


@pytest.mark.parametrize(
    "sql",
    [
        "BEGIN :return_outvar := app.url_pkg.puturl(:url, :shorturl); END;",
        "BEGIN app.url_pkg.puturl(:url, :shorturl); END;",
        "begin url_pkg.refresh; end;",
        "BEGIN url_pkg.geturls(:rc); END;",
        "BEGIN app.pkg.proc(p_url => :url, p_id => :id); END;",
        "  BEGIN\n  app.pkg.proc(:a);\nEND;  ",
    ],
)
def test_package_call(sql: str) -> None:
    """Test complete package calls are recognized."""
    assert classify_sql(sql) is StatementKind.PACKAGE_CALL


@pytest.mark.parametrize(
    "sql",
    [
        "SELECT id, name FROM users",
        "UPDATE users SET name = :name",
        "DELETE FROM users WHERE id = :id",
        "insert into users (id) values (:id)",
    ],
)
def test_pass_through(sql: str) -> None:
    """Test plain CRUD statements are recognized as pass-through."""
    kind = classify_sql(sql)
    assert kind is StatementKind.PASS_THROUGH
    assert is_pass_through(kind)


@pytest.mark.parametrize(
    "sql",
    ["app.url_pkg.puturl", "BEGIN puturl(:url); END;", "DROP TABLE users", ""],
)
def test_unrecognized(sql: str) -> None:
    """Test anything else is rejected, including a bare package name."""
    with pytest.raises(UnsupportedStatementError) as exc_info:
        classify_sql(sql)
    assert exc_info.value.code == 519


def test_custom_patterns() -> None:
    """Test classification uses the injected pattern list."""
    patterns = [r"(?!)", r"^CALL\s+\w+", r"^SELECT"]
    assert classify_sql("CALL proc", patterns) is StatementKind.PACKAGE_CALL
    assert classify_sql("SELECT 1", patterns) is StatementKind.PASS_THROUGH


def test_first_match_wins() -> None:
    """Test the lowest matching index is returned."""
    assert classify_sql("anything", [r"(?!)", r".", r"."]) is StatementKind.PACKAGE_CALL


def test_extra_patterns_are_ignored() -> None:
    """Test a match past the known kinds is treated as unrecognized."""
    with pytest.raises(UnsupportedStatementError):
        classify_sql("MERGE INTO t", [r"(?!)", r"(?!)", r"(?!)", r"^MERGE"])


def test_compile_sql_types_keeps_compiled() -> None:
    """Test precompiled patterns pass through untouched."""
    compiled = compile_sql_types([r"^a"])
    assert compile_sql_types(compiled) == compiled
    assert compiled[0].search("A")


def test_is_pass_through_accepts_ints() -> None:
    """Test raw integer kinds are understood."""
    assert is_pass_through(2)
    assert not is_pass_through(1)
    assert PASS_THROUGH_CODE == 520
