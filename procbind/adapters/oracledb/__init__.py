from procbind.adapters.oracledb.connection import ConnectFlavor, OracleConnection, clear_persistent_connections
from procbind.adapters.oracledb.cursor import OutCursorBinder
from procbind.adapters.oracledb.driver import OracleBindDriver, OracleStatement
from procbind.adapters.oracledb.result import ResultFetcher

__all__ = (
    "ConnectFlavor",
    "OracleBindDriver",
    "OracleConnection",
    "OracleStatement",
    "OutCursorBinder",
    "ResultFetcher",
    "clear_persistent_connections",
)
