"""Connection lifecycle for python-oracledb."""

from enum import IntEnum
from typing import TYPE_CHECKING, Any, Optional, Union

import oracledb

from procbind.adapters.oracledb.core import wrap_oracle_errors
from procbind.exceptions import CommitError, DatabaseConnectionError
from procbind.utils.logging import get_logger

if TYPE_CHECKING:
    from oracledb import Connection

    from procbind.config import ConnectionConfig

__all__ = ("INVALID_DSN_CODE", "ConnectFlavor", "OracleConnection", "clear_persistent_connections")

logger = get_logger("adapters.oracledb.connection")

INVALID_DSN_CODE = 515

_persistent_connections: "dict[tuple[str, str], Connection]" = {}


class ConnectFlavor(IntEnum):
    """How a connection is obtained.

    ``STANDARD`` reuses this object's open connection, ``NEW`` always opens
    a fresh one and ``PERSISTENT`` shares one connection per user and DSN
    across the process.
    """

    STANDARD = 0
    NEW = 1
    PERSISTENT = 2


def clear_persistent_connections() -> None:
    """Close and forget every persistent connection."""
    while _persistent_connections:
        _, connection = _persistent_connections.popitem()
        with wrap_oracle_errors(DatabaseConnectionError, "close failed"):
            connection.close()


class OracleConnection:
    """A single database connection built from a :class:`ConnectionConfig`."""

    __slots__ = ("_config", "_connection", "_flavor")

    def __init__(self, config: "ConnectionConfig") -> None:
        self._config = config
        self._connection: Optional[Connection] = None
        self._flavor = ConnectFlavor(config.connect_flavor)

    @property
    def connection(self) -> "Connection":
        """The open connection.

        Raises:
            DatabaseConnectionError: When not connected.
        """
        if self._connection is None:
            msg = "Not connected; call connect() first"
            raise DatabaseConnectionError(msg)
        return self._connection

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    @property
    def flavor(self) -> ConnectFlavor:
        return self._flavor

    def validate_dsn(self) -> str:
        """Check the configured DSN against the connect string pattern.

        Raises:
            DatabaseConnectionError: When the DSN does not match.

        Returns:
            The DSN.
        """
        dsn = self._config.dsn
        if not dsn or not self._config.dsn_pattern.search(dsn):
            msg = f"Invalid connect string: {dsn!r}"
            raise DatabaseConnectionError(msg, code=INVALID_DSN_CODE)
        return dsn

    def connect(self, flavor: "Optional[Union[ConnectFlavor, int]]" = None) -> "Connection":
        """Open (or reuse) a connection.

        Args:
            flavor: Connect flavor; defaults to the configured one.

        Raises:
            DatabaseConnectionError: When the DSN is invalid or connecting fails.

        Returns:
            The connection.
        """
        self._flavor = ConnectFlavor(self._config.connect_flavor if flavor is None else flavor)
        dsn = self.validate_dsn()

        if self._flavor is ConnectFlavor.STANDARD and self._connection is not None:
            return self._connection

        if self._flavor is ConnectFlavor.PERSISTENT:
            key = (self._config.user, dsn)
            connection = _persistent_connections.get(key)
            if connection is None or not connection.is_healthy():
                connection = self._open(dsn)
                _persistent_connections[key] = connection
            else:
                logger.debug("Reusing persistent connection to %s as %s", dsn, self._config.user)
        else:
            connection = self._open(dsn)

        self._connection = connection
        return connection

    def _open(self, dsn: str) -> "Connection":
        with wrap_oracle_errors(DatabaseConnectionError, "connect failed"):
            connection = oracledb.connect(user=self._config.user, password=self._config.password, dsn=dsn)
        logger.info("Connected to %s as %s (%s)", dsn, self._config.user, self._flavor.name)
        return connection

    def commit(self) -> None:
        """Commit the current transaction.

        Raises:
            CommitError: When the commit fails.
        """
        connection = self.connection
        with wrap_oracle_errors(CommitError, "commit failed"):
            connection.commit()
        logger.info("Committed transaction")

    def close(self) -> None:
        """Close the connection. Persistent connections stay open for reuse."""
        connection, self._connection = self._connection, None
        if connection is None or self._flavor is ConnectFlavor.PERSISTENT:
            return
        with wrap_oracle_errors(DatabaseConnectionError, "close failed"):
            connection.close()
        logger.debug("Closed connection")

    def __enter__(self) -> "OracleConnection":
        self.connect()
        return self

    def __exit__(self, *_: Any) -> None:
        self.close()
