"""REF CURSOR OUT parameters."""

from collections.abc import Sequence
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Union

from procbind.adapters.oracledb.core import wrap_oracle_errors
from procbind.exceptions import CursorError
from procbind.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Mapping

    from oracledb import Connection, Cursor

    from procbind.adapters.oracledb.driver import OracleStatement
    from procbind.config import CursorConfig

__all__ = ("OutCursorBinder",)

logger = get_logger("adapters.oracledb.cursor")


class OutCursorBinder:
    """Create and bind the cursors a procedure returns through OUT parameters.

    Cursors are bound directly as bind values; python-oracledb opens them when
    the statement executes.
    """

    __slots__ = ("_config", "_cursors")

    def __init__(self, config: "CursorConfig") -> None:
        self._config = config
        self._cursors: dict[str, Cursor] = {}

    @property
    def names(self) -> "tuple[str, ...]":
        out_cursor = self._config.out_cursor
        if not out_cursor:
            return ()
        if isinstance(out_cursor, str):
            return (out_cursor.lstrip(":"),)
        if isinstance(out_cursor, Sequence):
            return tuple(name.lstrip(":") for name in out_cursor)
        msg = f"out_cursor must be a name or a list of names, got {out_cursor!r}"
        raise CursorError(msg)

    @property
    def cursors(self) -> "Mapping[str, Cursor]":
        return MappingProxyType(self._cursors)

    @property
    def resource(self) -> "Union[Cursor, Mapping[str, Cursor], None]":
        """The bound cursor, all bound cursors by name, or None if there are none."""
        if not self._cursors:
            return None
        if len(self._cursors) == 1 and isinstance(self._config.out_cursor, str):
            return next(iter(self._cursors.values()))
        return self.cursors

    def create(self, connection: "Connection") -> "Mapping[str, Cursor]":
        """Open one cursor per configured name.

        Raises:
            CursorError: When a cursor cannot be opened.
        """
        with wrap_oracle_errors(CursorError, "cursor creation failed"):
            self._cursors = {name: connection.cursor() for name in self.names}
        return self.cursors

    def bind(self, statement: "OracleStatement") -> "dict[str, Any]":
        """Bind the cursors to the statement, creating them first if needed.

        Returns:
            The cursors bound, by name.
        """
        if not self.names:
            return {}
        if not self._cursors:
            self.create(statement.connection)
        for name, cursor in self._cursors.items():
            statement.binds[name] = cursor
            logger.debug("Bound OUT cursor :%s", name)
        return dict(self._cursors)

    def close(self) -> None:
        """Close every cursor and forget them.

        Raises:
            CursorError: When a cursor cannot be closed.
        """
        cursors, self._cursors = self._cursors, {}
        for cursor in cursors.values():
            with wrap_oracle_errors(CursorError, "cursor close failed"):
                cursor.close()
