"""Wire type resolution.

Explicit type tokens are validated against an allow-list; untyped arrays have
their type inferred from the values they carry.
"""

from collections.abc import Iterable, Mapping
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Final, Optional, Union

from mypy_extensions import mypyc_attr

from procbind.config import AllowedBindTypes, TypePatterns
from procbind.core.types import SQLT_PREFIX, CollectionType, WireType, is_array_value
from procbind.exceptions import InvalidBindTypeError
from procbind.utils.logging import get_logger

if TYPE_CHECKING:
    from procbind.config import BindingConfig
    from procbind.core.types import ResolvedType

__all__ = ("VARCHAR", "TypeResolver", "parse_collection_type")

logger = get_logger("core.type_resolver")

VARCHAR: Final[str] = "varchar"
_QUOTES: Final[str] = "'\""


def parse_collection_type(token: Any) -> "Optional[CollectionType]":
    """Parse a ``schema.type`` collection reference.

    Args:
        token: The raw type token.

    Returns:
        The collection reference with its original case, or None if the token
        is not schema-qualified.
    """
    if not isinstance(token, str) or "." not in token:
        return None
    schema, _, type_name = token.strip().partition(".")
    if not type_name:
        return None
    return CollectionType(schema or None, type_name)


def _is_numeric_token(token: Any) -> bool:
    if isinstance(token, bool):
        return False
    if isinstance(token, int):
        return True
    return isinstance(token, str) and token.strip().isdigit()


@mypyc_attr(allow_interpreted_subclasses=True)
class TypeResolver:
    """Resolve explicit type tokens and infer types from sample values."""

    __slots__ = ("_allowed", "_patterns")

    def __init__(
        self, type_patterns: "Optional[TypePatterns]" = None, allowed_bind_types: "Optional[AllowedBindTypes]" = None
    ) -> None:
        self._patterns = type_patterns or TypePatterns()
        self._allowed = allowed_bind_types or AllowedBindTypes()

    @classmethod
    def from_config(cls, config: "BindingConfig") -> "TypeResolver":
        return cls(config.type_patterns, config.allowed_bind_types)

    @property
    def patterns(self) -> TypePatterns:
        return self._patterns

    def resolve_explicit(self, token: "Union[str, int]", is_outvar: bool) -> "ResolvedType":
        """Resolve a caller-supplied type token.

        OUT and function-return parameters always bind as ``SQLT_CHR``; the
        driver returns wrong values for other OUT types. Numeric tokens are
        taken as already-resolved codes. ``DATE*`` tokens map to ``SQLT_ODT``
        and a missing ``SQLT_`` prefix is added before the allow-list check.

        Args:
            token: Symbolic name (``"int"``, ``"SQLT_FLT"``), numeric code or ``"schema.type"``.
            is_outvar: Whether the parameter is an OUT or function-return parameter.

        Raises:
            InvalidBindTypeError: When the token is not allowed and not schema-qualified.

        Returns:
            The wire type, a raw numeric code, or a collection reference.
        """
        if is_outvar:
            return WireType.CHR

        if _is_numeric_token(token):
            code = int(token)
            try:
                return WireType(code)
            except ValueError:
                return code

        symbol = str(token).strip().upper()
        if symbol.startswith("DATE"):
            symbol = WireType.ODT.symbol
        elif not symbol.startswith(SQLT_PREFIX):
            symbol = f"{SQLT_PREFIX}{symbol}"

        if self._allowed.is_allowed(symbol):
            wire_type = WireType.from_symbol(symbol)
            if wire_type is not None:
                return wire_type

        collection = parse_collection_type(token)
        if collection is not None:
            return collection

        msg = f"Invalid bind type {token!r}"
        raise InvalidBindTypeError(msg)

    def classify_element(self, value: Any) -> str:
        """Return the inference category of one sample value.

        Native values are classified by their Python type; strings are matched
        against the configured patterns after stripping surrounding quotes.
        """
        if value is None:
            return VARCHAR
        if isinstance(value, (bool, int)):
            return "int"
        if isinstance(value, float):
            return "float"
        if isinstance(value, Decimal):
            return "num"
        if isinstance(value, date):
            return "date"
        text = str(value).strip().strip(_QUOTES)
        return self._patterns.match(text) or VARCHAR

    def tally(self, samples: "Iterable[Any]") -> "dict[str, int]":
        """Count sample values per inference category.

        Args:
            samples: The array values.

        Returns:
            Counts keyed by ``float``, ``num``, ``int``, ``date`` and ``varchar``.
        """
        counts = {"float": 0, "num": 0, "int": 0, "date": 0, VARCHAR: 0}
        values = samples.values() if isinstance(samples, Mapping) else samples
        for value in values:
            category = self.classify_element(value)
            counts[category] = counts.get(category, 0) + 1
        return counts

    def infer_type(self, samples: "Iterable[Any]") -> WireType:
        """Infer the wire type of an array from its values.

        Any varchar value makes the whole array ``SQLT_CHR``. Dates win only
        when no numeric value is present. Among numeric values float beats
        number, which beats integer. An empty array binds as ``SQLT_CHR``.

        Args:
            samples: The array values.

        Returns:
            The inferred wire type.
        """
        counts = self.tally(samples)
        numeric = counts["float"] + counts["num"] + counts["int"]

        if counts[VARCHAR]:
            wire_type = WireType.CHR
        elif not numeric and counts["date"]:
            wire_type = WireType.ODT
        elif numeric:
            if counts["float"]:
                wire_type = WireType.FLT
            elif counts["num"]:
                wire_type = WireType.NUM
            else:
                wire_type = WireType.INT
        else:
            wire_type = WireType.CHR

        logger.debug("Inferred %s from %s", wire_type, counts)
        return wire_type

    def resolve(self, token: Any, value: Any, is_outvar: bool) -> "Optional[ResolvedType]":
        """Resolve the wire type of a parameter.

        Args:
            token: The explicit type token. None, empty, zero and False count as absent.
            value: The unwrapped parameter value.
            is_outvar: Whether the parameter is an OUT or function-return parameter.

        Returns:
            The resolved type, or None to let the driver decide for untyped scalars.
        """
        if token and token != "0":
            return self.resolve_explicit(token, is_outvar)
        if is_outvar:
            return WireType.CHR
        if is_array_value(value):
            return self.infer_type(value)
        return None
