"""Unit tests for the python-oracledb bind driver."""

from decimal import Decimal
from unittest.mock import MagicMock

import oracledb
import pytest

from procbind.adapters.oracledb.driver import OracleBindDriver, OracleStatement
from procbind.core.types import ArrayLength, WireType
from procbind.exceptions import StatementError
from procbind.protocols import BindDriverProtocol, CollectionProtocol

SQL = "BEGIN :return_outvar := app.url_pkg.puturl(:url, :shorturl); END;"


@pytest.fixture
def driver() -> OracleBindDriver:
    return OracleBindDriver()


@pytest.fixture
def statement() -> OracleStatement:
    connection = MagicMock()
    return OracleStatement(connection, connection.cursor.return_value, SQL)


def test_parse(driver: OracleBindDriver) -> None:
    connection = MagicMock()
    statement = driver.parse(connection, SQL)
    assert statement.cursor is connection.cursor.return_value
    assert statement.sql == SQL
    assert statement.binds == {}


def test_parse_failure(driver: OracleBindDriver) -> None:
    connection = MagicMock()
    connection.cursor.side_effect = oracledb.InterfaceError(MagicMock(code=None, message="DPY-1001: not connected"))
    with pytest.raises(StatementError, match="not connected"):
        driver.parse(connection, SQL)


def test_bind_scalar_plain(driver: OracleBindDriver, statement: OracleStatement) -> None:
    """Test untyped scalars are bound as plain values."""
    assert driver.bind_scalar(statement, ":url", "http://x")
    assert statement.binds == {"url": "http://x"}
    statement.cursor.var.assert_not_called()
    assert driver.last_error(statement) is None


def test_bind_scalar_typed(driver: OracleBindDriver, statement: OracleStatement) -> None:
    """Test typed scalars get a sized variable."""
    var = statement.cursor.var.return_value
    assert driver.bind_scalar(statement, ":return_outvar", None, length=8, wire_type=WireType.CHR)
    statement.cursor.var.assert_called_once_with(oracledb.DB_TYPE_VARCHAR, size=8)
    var.setvalue.assert_not_called()
    assert driver.bound_variable(statement, ":return_outvar") is var


def test_bind_scalar_typed_value(driver: OracleBindDriver, statement: OracleStatement) -> None:
    var = statement.cursor.var.return_value
    assert driver.bind_scalar(statement, ":amount", "1,234.5", wire_type=WireType.NUM)
    statement.cursor.var.assert_called_once_with(oracledb.DB_TYPE_NUMBER, size=0)
    var.setvalue.assert_called_once_with(0, Decimal("1234.5"))


def test_bind_scalar_untyped_compound_binds_string(driver: OracleBindDriver, statement: OracleStatement) -> None:
    """Test a sized value without a type is bound as VARCHAR text."""
    var = statement.cursor.var.return_value
    assert driver.bind_scalar(statement, ":code", 42, length=10)
    statement.cursor.var.assert_called_once_with(oracledb.DB_TYPE_VARCHAR, size=10)
    var.setvalue.assert_called_once_with(0, "42")


def test_bind_scalar_unmapped_type_binds_string(driver: OracleBindDriver, statement: OracleStatement) -> None:
    var = statement.cursor.var.return_value
    assert driver.bind_scalar(statement, ":amount", Decimal("1.5"), length=5, wire_type=999)
    statement.cursor.var.assert_called_once_with(oracledb.DB_TYPE_VARCHAR, size=5)
    var.setvalue.assert_called_once_with(0, "1.5")


def test_bind_scalar_cursor(driver: OracleBindDriver, statement: OracleStatement) -> None:
    """Test REF CURSOR binds get a fresh cursor."""
    assert driver.bind_scalar(statement, ":rc", None, wire_type=WireType.RSET)
    assert statement.binds["rc"] is statement.connection.cursor.return_value


def test_bind_scalar_conversion_error(driver: OracleBindDriver, statement: OracleStatement) -> None:
    """Test conversion errors are recorded instead of raised."""
    assert not driver.bind_scalar(statement, ":count", "abc", wire_type=WireType.INT)
    error = driver.last_error(statement)
    assert error is not None
    assert error.sql_text == SQL
    assert "count" not in statement.binds


def test_bind_scalar_driver_error(driver: OracleBindDriver, statement: OracleStatement) -> None:
    statement.cursor.var.side_effect = oracledb.DatabaseError(MagicMock(code=1036, message="ORA-01036: illegal"))
    assert not driver.bind_scalar(statement, ":x", "a", length=5, wire_type=WireType.CHR)
    assert driver.last_error(statement).code == 1036


def test_error_resets_on_next_bind(driver: OracleBindDriver, statement: OracleStatement) -> None:
    driver.bind_scalar(statement, ":count", "abc", wire_type=WireType.INT)
    driver.bind_scalar(statement, ":url", "x")
    assert driver.last_error(statement) is None


def test_bind_array_numbers(driver: OracleBindDriver, statement: OracleStatement) -> None:
    var = statement.cursor.arrayvar.return_value
    assert driver.bind_array(statement, ":ids", ["1", "2", "3"], ArrayLength(3, -1), WireType.INT)
    statement.cursor.arrayvar.assert_called_once_with(oracledb.DB_TYPE_NUMBER, 3, 0)
    var.setvalue.assert_called_once_with(0, [1, 2, 3])
    assert statement.binds["ids"] is var


def test_bind_array_strings_sized_to_longest(driver: OracleBindDriver, statement: OracleStatement) -> None:
    """Test string items are sized to the longest value when no item length is given."""
    assert driver.bind_array(statement, ":names", ["a", "abcd", None], ArrayLength(3, -1), WireType.CHR)
    statement.cursor.arrayvar.assert_called_once_with(oracledb.DB_TYPE_VARCHAR, 3, 4)


def test_bind_array_explicit_item_length(driver: OracleBindDriver, statement: OracleStatement) -> None:
    assert driver.bind_array(statement, ":names", ["a"], ArrayLength(1, 50), WireType.CHR)
    statement.cursor.arrayvar.assert_called_once_with(oracledb.DB_TYPE_VARCHAR, 1, 50)


def test_bind_array_unmapped_type_binds_strings(driver: OracleBindDriver, statement: OracleStatement) -> None:
    assert driver.bind_array(statement, ":codes", [7, None, 123], ArrayLength(3, -1), 999)
    statement.cursor.arrayvar.assert_called_once_with(oracledb.DB_TYPE_VARCHAR, 3, 3)
    statement.cursor.arrayvar.return_value.setvalue.assert_called_once_with(0, ["7", None, "123"])


def test_bind_array_empty(driver: OracleBindDriver, statement: OracleStatement) -> None:
    assert driver.bind_array(statement, ":names", [], ArrayLength(1, 1), WireType.CHR)
    statement.cursor.arrayvar.assert_called_once_with(oracledb.DB_TYPE_VARCHAR, 1, 1)
    statement.cursor.arrayvar.return_value.setvalue.assert_called_once_with(0, [])


def test_bind_array_conversion_error(driver: OracleBindDriver, statement: OracleStatement) -> None:
    assert not driver.bind_array(statement, ":ids", ["1", "x"], ArrayLength(2, -1), WireType.INT)
    assert driver.last_error(statement) is not None


def test_new_collection(driver: OracleBindDriver, statement: OracleStatement) -> None:
    collection = driver.new_collection(statement, "url_list", "app")
    statement.connection.gettype.assert_called_once_with("APP.URL_LIST")
    assert collection is statement.connection.gettype.return_value.newobject.return_value


def test_new_collection_unknown_type(driver: OracleBindDriver, statement: OracleStatement) -> None:
    statement.connection.gettype.side_effect = oracledb.DatabaseError(
        MagicMock(code=4043, message="ORA-04043: object APP.NOPE does not exist")
    )
    assert driver.new_collection(statement, "NOPE", "APP") is None
    assert driver.last_error(statement).code == 4043


def test_bind_named_collection(driver: OracleBindDriver, statement: OracleStatement) -> None:
    collection = MagicMock()
    assert driver.bind_named_collection(statement, ":urls", collection)
    statement.cursor.var.assert_called_once_with(collection.type)
    statement.cursor.var.return_value.setvalue.assert_called_once_with(0, collection)


def test_execute(driver: OracleBindDriver, statement: OracleStatement) -> None:
    driver.bind_scalar(statement, ":url", "x")
    driver.execute(statement)
    statement.cursor.execute.assert_called_once_with(SQL, {"url": "x"})


def test_execute_failure(driver: OracleBindDriver, statement: OracleStatement) -> None:
    statement.cursor.execute.side_effect = oracledb.DatabaseError(MagicMock(code=6550, message="ORA-06550: PLS-00201"))
    with pytest.raises(StatementError) as exc_info:
        driver.execute(statement)
    assert exc_info.value.driver_code == 6550
    assert exc_info.value.code == 513


def test_close(driver: OracleBindDriver, statement: OracleStatement) -> None:
    driver.close(statement)
    statement.cursor.close.assert_called_once_with()


def test_close_failure_code(driver: OracleBindDriver, statement: OracleStatement) -> None:
    error = MagicMock(code=None, message="DPY-1006: cursor closed")
    statement.cursor.close.side_effect = oracledb.InterfaceError(error)
    with pytest.raises(StatementError) as exc_info:
        driver.close(statement)
    assert exc_info.value.code == 526


def test_driver_satisfies_protocols(driver: OracleBindDriver, statement: OracleStatement) -> None:
    """Test the driver and the collections it creates match the binding core's protocols."""
    assert isinstance(driver, BindDriverProtocol)
    statement.connection.gettype.return_value.newobject.return_value = []
    assert isinstance(driver.new_collection(statement, "URL_LIST", "APP"), CollectionProtocol)
