"""Bind primitives over python-oracledb.

python-oracledb binds by passing a mapping of placeholder names to values or
variables to ``cursor.execute``. :class:`OracleStatement` collects that
mapping while the binding core issues its bind calls one by one.
"""

from decimal import InvalidOperation
from typing import TYPE_CHECKING, Any, Optional

import oracledb

from procbind.adapters.oracledb.core import (
    coerce_element,
    driver_error_from_exception,
    to_db_type,
    wrap_oracle_errors,
)
from procbind.core.types import WireType
from procbind.exceptions import StatementError
from procbind.utils.logging import get_logger

if TYPE_CHECKING:
    from oracledb import Connection, Cursor

    from procbind.core.types import ArrayLength, DriverError, ResolvedType

__all__ = ("FREE_STATEMENT_CODE", "OracleBindDriver", "OracleStatement")

logger = get_logger("adapters.oracledb")

FREE_STATEMENT_CODE = 526

_BIND_ERRORS = (oracledb.Error, ValueError, TypeError, InvalidOperation)


def _bind_name(placeholder: str) -> str:
    return placeholder.lstrip(":")


def _bind_type(wire_type: "Optional[ResolvedType]") -> "tuple[Any, Optional[ResolvedType]]":
    """Return the DB type to bind with and the wire type values are coerced for.

    Types without a mapping bind as VARCHAR, with values converted to strings.
    """
    db_type = to_db_type(wire_type)
    if db_type is None:
        return oracledb.DB_TYPE_VARCHAR, WireType.CHR
    return db_type, wire_type


class OracleStatement:
    """A parsed statement: the SQL, its cursor and the binds collected so far."""

    __slots__ = ("binds", "connection", "cursor", "error", "sql")

    def __init__(self, connection: "Connection", cursor: "Cursor", sql: str) -> None:
        self.connection = connection
        self.cursor = cursor
        self.sql = sql
        self.binds: dict[str, Any] = {}
        self.error: Optional[DriverError] = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(sql={self.sql!r}, binds={sorted(self.binds)!r})"


class OracleBindDriver:
    """Bind-by-name primitives for python-oracledb.

    Bind methods never raise for driver or conversion errors. They record a
    :class:`~procbind.core.types.DriverError` on the statement and return
    False, leaving it to the caller to check :meth:`last_error`.
    """

    __slots__ = ()

    def parse(self, connection: "Connection", sql: str) -> OracleStatement:
        """Open a cursor for ``sql``.

        Raises:
            StatementError: When the cursor cannot be opened.
        """
        with wrap_oracle_errors(StatementError, "parse failed"):
            cursor = connection.cursor()
        logger.debug("Parsed statement: %s", sql)
        return OracleStatement(connection, cursor, sql)

    def bind_scalar(
        self,
        statement: OracleStatement,
        placeholder: str,
        value: Any,
        length: "Optional[int]" = None,
        wire_type: "Optional[ResolvedType]" = None,
    ) -> bool:
        """Bind a scalar by name.

        Without a length or type the value is bound as is and python-oracledb
        picks the type. Otherwise a variable of the mapped type is created,
        sized to ``length`` when one is given.
        """
        statement.error = None
        name = _bind_name(placeholder)
        try:
            if length is None and wire_type is None:
                statement.binds[name] = value
                return True
            if wire_type == WireType.RSET:
                statement.binds[name] = value if value is not None else statement.connection.cursor()
                return True
            db_type, coerce_type = _bind_type(wire_type)
            var = statement.cursor.var(db_type, size=length if length and length > 0 else 0)
            if value is not None:
                var.setvalue(0, coerce_element(coerce_type, value))
        except _BIND_ERRORS as exc:
            statement.error = driver_error_from_exception(exc, statement.sql)
            return False
        statement.binds[name] = var
        return True

    def bind_array(
        self,
        statement: OracleStatement,
        placeholder: str,
        values: "list[Any]",
        length: "ArrayLength",
        wire_type: "ResolvedType",
    ) -> bool:
        """Bind a PL/SQL index-by table by name.

        An item length of ``-1`` sizes string items to the longest value.
        """
        statement.error = None
        name = _bind_name(placeholder)
        try:
            db_type, coerce_type = _bind_type(wire_type)
            coerced = [coerce_element(coerce_type, value) for value in values]
            size = length.max_item_length
            if size < 0:
                size = 0
                if db_type in {oracledb.DB_TYPE_VARCHAR, oracledb.DB_TYPE_CHAR}:
                    size = max((len(str(v)) for v in coerced if v is not None), default=1) or 1
            var = statement.cursor.arrayvar(db_type, length.max_table_length, size)
            var.setvalue(0, coerced)
        except _BIND_ERRORS as exc:
            statement.error = driver_error_from_exception(exc, statement.sql)
            return False
        statement.binds[name] = var
        return True

    def new_collection(self, statement: OracleStatement, type_name: str, schema: "Optional[str]" = None) -> Any:
        """Create an empty object of a schema-level collection type.

        Returns:
            The collection, or None when the type cannot be described.
        """
        statement.error = None
        qualified = f"{schema}.{type_name}" if schema else type_name
        try:
            return statement.connection.gettype(qualified.upper()).newobject()
        except oracledb.Error as exc:
            statement.error = driver_error_from_exception(exc, statement.sql)
            return None

    def bind_named_collection(self, statement: OracleStatement, placeholder: str, collection: Any) -> bool:
        statement.error = None
        name = _bind_name(placeholder)
        try:
            var = statement.cursor.var(collection.type)
            var.setvalue(0, collection)
        except _BIND_ERRORS as exc:
            statement.error = driver_error_from_exception(exc, statement.sql)
            return False
        statement.binds[name] = var
        return True

    def bound_variable(self, statement: OracleStatement, placeholder: str) -> Any:
        return statement.binds.get(_bind_name(placeholder))

    def last_error(self, statement: OracleStatement) -> "Optional[DriverError]":
        return statement.error

    def execute(self, statement: OracleStatement) -> None:
        """Execute the statement with every collected bind.

        Raises:
            StatementError: When execution fails.
        """
        logger.debug("Executing %s with binds %s", statement.sql, sorted(statement.binds))
        with wrap_oracle_errors(StatementError, "execute failed"):
            statement.cursor.execute(statement.sql, statement.binds)

    def close(self, statement: OracleStatement) -> None:
        """Free the statement cursor.

        Raises:
            StatementError: When the cursor cannot be closed.
        """
        with wrap_oracle_errors(StatementError, "free statement failed", FREE_STATEMENT_CODE):
            statement.cursor.close()
