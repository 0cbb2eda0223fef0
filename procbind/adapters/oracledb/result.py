"""Row fetching from statements and OUT cursors."""

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Union

from procbind.adapters.oracledb.core import wrap_oracle_errors
from procbind.exceptions import ResultFetchError
from procbind.utils.logging import get_logger

if TYPE_CHECKING:
    from oracledb import Cursor

    from procbind.config import ResultConfig

__all__ = ("ResultFetcher",)

logger = get_logger("adapters.oracledb.result")

Rows = list[dict[str, Any]]


class ResultFetcher:
    """Fetch every row of a cursor as a dict keyed by column name."""

    __slots__ = ("_config", "row_count")

    def __init__(self, config: "ResultConfig") -> None:
        self._config = config
        self.row_count = 0

    def fetch_all(self, resource: "Union[Cursor, Mapping[str, Cursor]]") -> "Union[Rows, dict[str, Rows]]":
        """Fetch rows from one cursor or from several cursors by name.

        Args:
            resource: A cursor, or a mapping of OUT cursor names to cursors.

        Raises:
            ResultFetchError: When fetching fails.

        Returns:
            The rows, or the rows of each cursor by name. ``row_count`` is the
            total number of rows returned.
        """
        if isinstance(resource, Mapping):
            results = {name: self._fetch(cursor) for name, cursor in resource.items()}
            self.row_count = sum(len(rows) for rows in results.values())
            return results
        rows = self._fetch(resource)
        self.row_count = len(rows)
        return rows

    def _fetch(self, cursor: "Cursor") -> Rows:
        with wrap_oracle_errors(ResultFetchError, "fetch failed"):
            description = cursor.description
            if not description:
                return []
            raw_rows = cursor.fetchall()

        columns = [d[0].lower() if self._config.lowercase_columns else d[0] for d in description]
        skip = max(self._config.skip, 0)
        raw_rows = raw_rows[skip:]
        if self._config.max_rows >= 0:
            raw_rows = raw_rows[: self._config.max_rows]
        logger.debug("Fetched %d row(s)", len(raw_rows))
        return [dict(zip(columns, row)) for row in raw_rows]
