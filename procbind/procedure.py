"""Stored procedure execution.

:class:`ProcedureRunner` wires the connection, statement, bindings, OUT
cursor and result collaborators together from one :class:`DatabaseConfig`
and runs a call end to end.
"""

from typing import TYPE_CHECKING, Any, Optional, Union

from procbind.adapters.oracledb.connection import OracleConnection
from procbind.adapters.oracledb.cursor import OutCursorBinder
from procbind.adapters.oracledb.driver import OracleBindDriver
from procbind.adapters.oracledb.result import ResultFetcher
from procbind.core.bindings import BindingOrchestrator
from procbind.core.statement import StatementKind, classify_sql
from procbind.core.types import BindMode
from procbind.exceptions import NoStatementHandleError, ProcBindError, UnsupportedStatementError
from procbind.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Mapping

    from oracledb import Connection

    from procbind.adapters.oracledb.connection import ConnectFlavor
    from procbind.adapters.oracledb.driver import OracleStatement
    from procbind.config import DatabaseConfig

__all__ = ("ProcedureRunner",)

logger = get_logger("procedure")


class ProcedureRunner:
    """Run one stored procedure call.

    Example:
        >>> runner = ProcedureRunner.from_config(config)
        >>> runner.run({"url": "http://x"}, outvar="return_outvar")
    """

    __slots__ = ("_bindings", "_config", "_connection", "_cursor_binder", "_driver", "_fetcher", "_kind", "_statement")

    def __init__(
        self,
        config: "DatabaseConfig",
        connection: OracleConnection,
        driver: OracleBindDriver,
        bindings: BindingOrchestrator,
        cursor_binder: OutCursorBinder,
        fetcher: ResultFetcher,
    ) -> None:
        self._config = config
        self._connection = connection
        self._driver = driver
        self._bindings = bindings
        self._cursor_binder = cursor_binder
        self._fetcher = fetcher
        self._statement: Optional[OracleStatement] = None
        self._kind: Optional[StatementKind] = None

    @classmethod
    def from_config(cls, config: "DatabaseConfig", driver: "Optional[OracleBindDriver]" = None) -> "ProcedureRunner":
        """Build the full collaborator graph from configuration.

        Args:
            config: Configuration, already merged with the procedure's SQL elements.
            driver: Bind driver; defaults to :class:`OracleBindDriver`.

        Returns:
            The runner.
        """
        driver = driver or OracleBindDriver()
        return cls(
            config,
            connection=OracleConnection(config.connection),
            driver=driver,
            bindings=BindingOrchestrator.from_config(driver, config.bindings),
            cursor_binder=OutCursorBinder(config.cursor),
            fetcher=ResultFetcher(config.result),
        )

    @property
    def config(self) -> "DatabaseConfig":
        return self._config

    @property
    def bindings(self) -> BindingOrchestrator:
        return self._bindings

    @property
    def connection(self) -> OracleConnection:
        return self._connection

    @property
    def statement(self) -> "Optional[OracleStatement]":
        return self._statement

    @property
    def sql_kind(self) -> "Optional[StatementKind]":
        return self._kind

    @property
    def row_count(self) -> int:
        return self._fetcher.row_count

    def connect(self, flavor: "Optional[Union[ConnectFlavor, int]]" = None) -> "Connection":
        return self._connection.connect(flavor)

    def parse(self) -> "OracleStatement":
        """Parse the configured SQL on the open connection.

        Raises:
            UnsupportedStatementError: When no SQL is configured.
        """
        sql = self._config.statement.sql
        if not sql:
            msg = "No SQL configured for this procedure"
            raise UnsupportedStatementError(msg)
        self._statement = self._driver.parse(self._connection.connection, sql)
        return self._statement

    def classify(self) -> StatementKind:
        self._kind = classify_sql(self._require_statement().sql, self._config.statement.sql_types)
        logger.debug("Classified statement as %s", self._kind.name)
        return self._kind

    def bind(self, parameters: "Optional[Mapping[str, Any]]" = None) -> "dict[str, bool]":
        statement = self._require_statement()
        kind = self._kind if self._kind is not None else self.classify()
        return self._bindings.bind(kind, parameters, statement)

    def bind_cursors(self) -> "dict[str, Any]":
        return self._cursor_binder.bind(self._require_statement())

    def execute(self) -> None:
        self._driver.execute(self._require_statement())

    def result(self, outvar: "Optional[str]" = None) -> Any:
        """Return the outcome of the call.

        Args:
            outvar: Name of the OUT parameter to return.

        Returns:
            The named OUT value; otherwise the rows of the OUT cursor(s);
            otherwise every OUT parameter value by name.
        """
        if outvar:
            return self._bindings.value_of(outvar)
        resource = self._cursor_binder.resource
        if resource is not None:
            return self._fetcher.fetch_all(resource)
        return {
            name: bound.read() for name, bound in self._bindings.bound.items() if bound.mode is BindMode.OUT_OR_RETURN
        }

    def commit(self) -> None:
        self._connection.commit()

    def cleanup(self) -> None:
        """Close OUT cursors, the statement and the connection.

        Each close runs even when an earlier one fails. The last failure is raised,
        chained to any earlier one.
        """
        statement, self._statement = self._statement, None
        self._kind = None
        try:
            self._cursor_binder.close()
        finally:
            try:
                if statement is not None:
                    self._driver.close(statement)
            finally:
                self._connection.close()

    def run(self, parameters: "Optional[Mapping[str, Any]]" = None, outvar: "Optional[str]" = None) -> Any:
        """Connect, bind, execute, fetch and commit.

        Nothing is committed unless every bind and the execution succeed.
        Resources are released whatever happens.

        Args:
            parameters: Parameters merged over the configured ``bind_vars``.
            outvar: Name of the OUT parameter to return instead of cursor rows.

        Returns:
            See :meth:`result`.
        """
        self.connect()
        try:
            self.parse()
            self.classify()
            self.bind(parameters)
            self.bind_cursors()
            self.execute()
            result = self.result(outvar)
            self.commit()
        except BaseException:
            try:
                self.cleanup()
            except ProcBindError:
                logger.warning("Cleanup failed after an aborted call", exc_info=True)
            raise
        self.cleanup()
        return result

    def _require_statement(self) -> "OracleStatement":
        if self._statement is None:
            msg = "No statement; call parse() first"
            raise NoStatementHandleError(msg)
        return self._statement
