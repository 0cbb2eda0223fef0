"""Configuration for procbind collaborators.

Each collaborator reads one section. Sections start from library defaults and
are overridden per procedure by the model's SQL elements (``sql``,
``bind_vars``, ``out_cursor``) through :func:`merge_config_section`.
"""

import re
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Final, Optional, Union

from procbind.exceptions import ImproperConfigurationError

__all__ = (
    "DEFAULT_ALLOWED_BIND_TYPES",
    "DEFAULT_DSN_PATTERN",
    "DEFAULT_SQL_TYPES",
    "DEFAULT_TYPE_PATTERNS",
    "TYPE_CATEGORIES",
    "AllowedBindTypes",
    "BindingConfig",
    "ConnectionConfig",
    "CursorConfig",
    "DatabaseConfig",
    "ResultConfig",
    "StatementConfig",
    "TypePatterns",
    "merge_config_section",
)

TYPE_CATEGORIES: Final[tuple[str, ...]] = ("float", "num", "int", "date")

DEFAULT_TYPE_PATTERNS: Final[dict[str, str]] = {
    # Exponent sign may arrive as a space when "+" was decoded from a query string.
    "float": r"^[-+]?(?:\d*\.\d+(?:[eE][-+ ]?\d+)?|\d+\.?[eE][-+ ]?\d+)$",
    "num": r"^[-+]?(?:\d{1,3}(?:,\d{3})+(?:\.\d+)?|\d+\.)$",
    "int": r"^[-+]?\d+$",
    "date": r"^(?:\d{1,4}[/.-](?:\d{1,2}|[A-Za-z]{3})[/.-]\d{2,4}|\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?)$",  # noqa: E501
}

DEFAULT_ALLOWED_BIND_TYPES: Final[dict[str, tuple[str, ...]]] = {
    "in_arrays": ("SQLT_INT", "SQLT_FLT", "SQLT_CHR", "SQLT_ODT"),
    # SQLT_CHR binds every OUT type correctly; SQLT_NUM is accepted but unused.
    "outvars": ("SQLT_CHR", "SQLT_NUM"),
}

DEFAULT_DSN_PATTERN: Final[str] = (
    r"\(DESCRIPTION\s?=\s?\(ADDRESS_LIST\s?=\s?\(ADDRESS\s?=\s?\(PROTOCOL\s?=\s?\w{3}\)\(HOST\s?=\s?(?:[\w-]+\.)*[\w-]+\)"  # noqa: E501
    r"\(PORT\s?=\s?\d{4,5}\)\)\)\(CONNECT_DATA\s?=\s?\((?:SERVICE_NAME|SID)\s?=\s?[\w.]{2,128}\)\)\)"
    r"|^(?:[\w-]+\.)*[\w-]+(?::\d{4,5})?/[\w.]{2,128}$"
)

DEFAULT_SQL_TYPES: Final[tuple[str, ...]] = (
    # 0: fully qualified package name only; reserved and never matched.
    r"(?!)",
    # 1: verbose (complete) package call
    r"^BEGIN\s+(?::\w+\s*:=\s*)?(?:\w+\.){1,2}\w+"
    r"(?:\(\s*(?::?\w+(?:\s*=>\s*:?\w+)?(?:\s*,\s*:?\w+(?:\s*=>\s*:?\w+)?)*)?\s*\))?\s*;\s*END\s*;$",
    # 2: pass-thru CRUD query
    r"^(?:SELECT(?:(?:\s\w+)+,?).+FROM(?:\s\w+)|UPDATE\s\w+(?:\s\w+)?\s?SET|DELETE\sFROM(?:\s\w+)|INSERT\sINTO(?:\s\w+))",  # noqa: E501
)


def _compile(pattern: str, flags: int = 0) -> "re.Pattern[str]":
    try:
        return re.compile(pattern, flags)
    except re.error as exc:
        msg = f"Invalid regular expression {pattern!r}: {exc}"
        raise ImproperConfigurationError(msg) from exc


def merge_config_section(section: "Mapping[str, Any]", overrides: "Optional[Mapping[str, Any]]") -> "dict[str, Any]":
    """Merge model-specific overrides into a configuration section.

    Only keys already present in the section are taken from ``overrides``;
    everything else in ``overrides`` belongs to another section.

    Args:
        section: The section defaults.
        overrides: The model's SQL elements.

    Returns:
        The merged section.
    """
    merged = dict(section)
    if not overrides:
        return merged
    for key in section:
        if key in overrides:
            merged[key] = overrides[key]
    return merged


class TypePatterns:
    """Ordered regular expressions used to infer the type of sample values.

    Matching stops at the first category whose pattern matches, so the order
    of the mapping is significant.
    """

    __slots__ = ("_patterns",)

    def __init__(self, patterns: "Optional[Mapping[str, str]]" = None) -> None:
        """Initialize type patterns.

        Args:
            patterns: Mapping of category (``float``, ``num``, ``int``, ``date``) to regex.
                Defaults to :data:`DEFAULT_TYPE_PATTERNS`.

        Raises:
            ImproperConfigurationError: On unknown categories or invalid regexes.
        """
        source = DEFAULT_TYPE_PATTERNS if patterns is None else patterns
        unknown = set(source) - set(TYPE_CATEGORIES)
        if unknown:
            msg = f"Unknown type pattern categories: {', '.join(sorted(unknown))}"
            raise ImproperConfigurationError(msg)
        self._patterns: dict[str, re.Pattern[str]] = {
            category: _compile(pattern, re.IGNORECASE) for category, pattern in source.items()
        }

    @property
    def categories(self) -> "tuple[str, ...]":
        return tuple(self._patterns)

    def pattern(self, category: str) -> "Optional[re.Pattern[str]]":
        return self._patterns.get(category)

    def match(self, text: str) -> "Optional[str]":
        """Return the first category matching ``text``.

        Args:
            text: The sample value.

        Returns:
            The category name, or None when no pattern matches.
        """
        for category, pattern in self._patterns.items():
            if pattern.search(text):
                return category
        return None


class AllowedBindTypes:
    """Allow-list of symbolic bind types, split by usage."""

    __slots__ = ("in_arrays", "outvars")

    def __init__(self, in_arrays: "Optional[Iterable[str]]" = None, outvars: "Optional[Iterable[str]]" = None) -> None:
        self.in_arrays = tuple(
            t.upper() for t in (DEFAULT_ALLOWED_BIND_TYPES["in_arrays"] if in_arrays is None else in_arrays)
        )
        self.outvars = tuple(t.upper() for t in (DEFAULT_ALLOWED_BIND_TYPES["outvars"] if outvars is None else outvars))

    @classmethod
    def from_mapping(cls, mapping: "Optional[Mapping[str, Iterable[str]]]") -> "AllowedBindTypes":
        if not mapping:
            return cls()
        return cls(in_arrays=mapping.get("in_arrays"), outvars=mapping.get("outvars"))

    def is_allowed(self, symbol: str) -> bool:
        return symbol in self.in_arrays or symbol in self.outvars


class BindingConfig:
    """Configuration for the binding layer."""

    __slots__ = (
        "allowed_bind_types",
        "bind_vars",
        "function_return_params",
        "out_params",
        "repair_exponent_spaces",
        "type_patterns",
    )

    def __init__(
        self,
        out_params: "Sequence[str]" = ("_outvar",),
        function_return_params: "Sequence[str]" = ("_return",),
        type_patterns: "Optional[Union[TypePatterns, Mapping[str, str]]]" = None,
        allowed_bind_types: "Optional[Union[AllowedBindTypes, Mapping[str, Iterable[str]]]]" = None,
        bind_vars: "Optional[Mapping[str, Any]]" = None,
        repair_exponent_spaces: bool = True,
    ) -> None:
        """Initialize binding configuration.

        Args:
            out_params: Name fragments identifying OUT parameters.
            function_return_params: Name fragments identifying function return parameters.
            type_patterns: Patterns used for type inference.
            allowed_bind_types: Allow-list of explicit bind types.
            bind_vars: Parameters staged before any call.
            repair_exponent_spaces: Restore ``+`` in exponents decoded as spaces.
        """
        self.out_params = tuple(out_params or ())
        self.function_return_params = tuple(function_return_params or ())
        self.type_patterns = (
            type_patterns if isinstance(type_patterns, TypePatterns) else TypePatterns(type_patterns)
        )
        self.allowed_bind_types = (
            allowed_bind_types
            if isinstance(allowed_bind_types, AllowedBindTypes)
            else AllowedBindTypes.from_mapping(allowed_bind_types)
        )
        self.bind_vars: dict[str, Any] = dict(bind_vars or {})
        self.repair_exponent_spaces = repair_exponent_spaces

    @property
    def out_suffixes(self) -> "tuple[str, ...]":
        return self.out_params + self.function_return_params

    @classmethod
    def from_mapping(cls, mapping: "Optional[Mapping[str, Any]]") -> "BindingConfig":
        data = dict(mapping or {})
        return cls(
            out_params=data.get("out_params", ("_outvar",)),
            function_return_params=data.get("function_return_params", ("_return",)),
            type_patterns=data.get("type_regexes", data.get("type_patterns")),
            allowed_bind_types=data.get("allowed_bind_types"),
            bind_vars=data.get("bind_vars"),
            repair_exponent_spaces=data.get("repair_exponent_spaces", True),
        )


class ConnectionConfig:
    """Connection credentials and connect behaviour."""

    __slots__ = ("connect_flavor", "dsn", "dsn_pattern", "password", "user")

    def __init__(
        self,
        user: str = "",
        password: str = "",
        dsn: str = "",
        connect_flavor: int = 0,
        dsn_pattern: str = DEFAULT_DSN_PATTERN,
    ) -> None:
        self.user = user
        self.password = password
        self.dsn = dsn
        self.connect_flavor = connect_flavor
        self.dsn_pattern = _compile(dsn_pattern, re.IGNORECASE)

    @classmethod
    def from_mapping(cls, mapping: "Optional[Mapping[str, Any]]") -> "ConnectionConfig":
        data = dict(mapping or {})
        return cls(
            user=data.get("user", ""),
            password=data.get("password", data.get("pw", "")),
            dsn=data.get("dsn", data.get("cnx_str", "")),
            connect_flavor=data.get("connect_flavor", 0),
            dsn_pattern=data.get("dsn_pattern", data.get("cnx_regex", DEFAULT_DSN_PATTERN)),
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(user={self.user!r}, dsn={self.dsn!r}, connect_flavor={self.connect_flavor!r})"


class StatementConfig:
    """SQL text and the patterns that classify it."""

    __slots__ = ("sql", "sql_types")

    def __init__(self, sql: str = "", sql_types: "Optional[Sequence[str]]" = None) -> None:
        self.sql = sql
        self.sql_types: tuple[re.Pattern[str], ...] = tuple(
            _compile(pattern, re.IGNORECASE | re.DOTALL) for pattern in (sql_types or DEFAULT_SQL_TYPES)
        )

    @classmethod
    def from_mapping(cls, mapping: "Optional[Mapping[str, Any]]") -> "StatementConfig":
        data = dict(mapping or {})
        return cls(sql=data.get("sql", ""), sql_types=data.get("sql_types", data.get("sqltypes")))


class CursorConfig:
    """OUT cursor placeholder names; None when the call returns no cursor."""

    __slots__ = ("out_cursor",)

    def __init__(self, out_cursor: "Optional[Union[str, Sequence[str]]]" = None) -> None:
        self.out_cursor = out_cursor or None

    @classmethod
    def from_mapping(cls, mapping: "Optional[Mapping[str, Any]]") -> "CursorConfig":
        return cls(out_cursor=(mapping or {}).get("out_cursor"))


class ResultConfig:
    """Parameters applied when fetching rows."""

    __slots__ = ("lowercase_columns", "max_rows", "skip")

    def __init__(self, skip: int = 0, max_rows: int = -1, lowercase_columns: bool = True) -> None:
        self.skip = skip
        self.max_rows = max_rows
        self.lowercase_columns = lowercase_columns

    @classmethod
    def from_mapping(cls, mapping: "Optional[Mapping[str, Any]]") -> "ResultConfig":
        data = dict(mapping or {})
        fetch_params = dict(data.get("fetch_all_params") or {})
        return cls(
            skip=data.get("skip", fetch_params.get("skip", 0)),
            max_rows=data.get("max_rows", fetch_params.get("maxrows", -1)),
            lowercase_columns=data.get("lowercase_columns", True),
        )


class DatabaseConfig:
    """All configuration sections for one stored-procedure call."""

    __slots__ = ("_raw", "bindings", "connection", "cursor", "result", "statement")

    def __init__(
        self,
        connection: "Optional[ConnectionConfig]" = None,
        statement: "Optional[StatementConfig]" = None,
        cursor: "Optional[CursorConfig]" = None,
        result: "Optional[ResultConfig]" = None,
        bindings: "Optional[BindingConfig]" = None,
    ) -> None:
        self.connection = connection or ConnectionConfig()
        self.statement = statement or StatementConfig()
        self.cursor = cursor or CursorConfig()
        self.result = result or ResultConfig()
        self.bindings = bindings or BindingConfig()
        self._raw: dict[str, dict[str, Any]] = {}

    @classmethod
    def from_mapping(cls, mapping: "Mapping[str, Mapping[str, Any]]") -> "DatabaseConfig":
        """Build configuration from a mapping of section name to section values.

        Args:
            mapping: Sections keyed by ``connection``, ``statement``, ``cursor``, ``result`` and ``bindings``.

        Returns:
            The configuration.
        """
        raw = {name: dict(section or {}) for name, section in mapping.items()}
        config = cls(
            connection=ConnectionConfig.from_mapping(raw.get("connection")),
            statement=StatementConfig.from_mapping(raw.get("statement")),
            cursor=CursorConfig.from_mapping(raw.get("cursor")),
            result=ResultConfig.from_mapping(raw.get("result")),
            bindings=BindingConfig.from_mapping(raw.get("bindings")),
        )
        config._raw = raw
        return config

    def merge(self, model_elements: "Mapping[str, Any]") -> "DatabaseConfig":
        """Return a copy whose sections are overridden by a model's SQL elements.

        Args:
            model_elements: Procedure definition, e.g. ``{"sql": ..., "bind_vars": ..., "out_cursor": ...}``.

        Returns:
            The merged configuration.
        """
        sections = {
            "connection": {
                "user": "",
                "password": "",
                "dsn": "",
                "connect_flavor": 0,
                **self._raw.get("connection", {}),
            },
            "statement": {"sql": self.statement.sql, **self._raw.get("statement", {})},
            "cursor": {"out_cursor": self.cursor.out_cursor, **self._raw.get("cursor", {})},
            "result": {**self._raw.get("result", {})},
            "bindings": {"bind_vars": self.bindings.bind_vars, **self._raw.get("bindings", {})},
        }
        merged = {name: merge_config_section(section, model_elements) for name, section in sections.items()}
        config = type(self).from_mapping(merged)
        if "connection" not in self._raw:
            config.connection = self.connection
        if "result" not in self._raw:
            config.result = self.result
        if "bindings" not in self._raw:
            merged_bindings = merged["bindings"]
            config.bindings = BindingConfig(
                out_params=self.bindings.out_params,
                function_return_params=self.bindings.function_return_params,
                type_patterns=self.bindings.type_patterns,
                allowed_bind_types=self.bindings.allowed_bind_types,
                bind_vars=merged_bindings.get("bind_vars"),
                repair_exponent_spaces=self.bindings.repair_exponent_spaces,
            )
        if "statement" not in self._raw:
            config.statement.sql_types = self.statement.sql_types
        return config
