"""Core binding types used throughout procbind.

Wire types, bind modes, length specifications and the records produced by
the binding orchestrator.
"""

from collections.abc import Mapping
from enum import Enum, IntEnum
from typing import Any, Final, NamedTuple, Optional, Union

from typing_extensions import TypeAlias, TypedDict

__all__ = (
    "COMPOUND_KEYS",
    "ArrayLength",
    "BindMode",
    "BindPlan",
    "BoundParameter",
    "CollectionType",
    "CompoundValue",
    "DriverError",
    "LengthSpec",
    "ResolvedType",
    "WireType",
    "is_array_value",
    "is_compound",
)

SQLT_PREFIX: Final[str] = "SQLT_"
COMPOUND_KEYS: Final[tuple[str, str, str]] = ("length", "type", "value")


class WireType(IntEnum):
    """OCI external data type codes understood by the bind primitives."""

    CHR = 1
    NUM = 2
    INT = 3
    FLT = 4
    STR = 5
    VCS = 9
    LVC = 94
    AFC = 96
    AVC = 97
    NTY = 108
    RSET = 116
    ODT = 156

    @property
    def symbol(self) -> str:
        """The canonical ``SQLT_*`` name of the type."""
        return f"{SQLT_PREFIX}{self.name}"

    @classmethod
    def from_symbol(cls, symbol: str) -> "Optional[WireType]":
        """Look up a member by its ``SQLT_*`` name.

        Args:
            symbol: Upper-case symbolic name, with or without the ``SQLT_`` prefix.

        Returns:
            The matching member, or None.
        """
        name = symbol[len(SQLT_PREFIX) :] if symbol.startswith(SQLT_PREFIX) else symbol
        return cls.__members__.get(name)

    def __str__(self) -> str:
        return self.symbol


class CollectionType(NamedTuple):
    """Reference to a schema-qualified database collection type."""

    schema: Optional[str]
    type_name: str

    @property
    def qualified_name(self) -> str:
        if self.schema:
            return f"{self.schema}.{self.type_name}"
        return self.type_name

    def __str__(self) -> str:
        return self.qualified_name


ResolvedType: TypeAlias = Union[WireType, int, CollectionType]


class BindMode(str, Enum):
    """How a parameter is bound to its placeholder."""

    SCALAR_IN = "scalar_in"
    ARRAY_IN = "array_in"
    COMPOUND_IN = "compound_in"
    OUT_OR_RETURN = "out_or_return"
    CUSTOM_COLLECTION = "custom_collection"

    def __str__(self) -> str:
        return self.value


class ArrayLength(NamedTuple):
    """Array bind dimensions. ``-1`` lets the driver size each item."""

    max_table_length: int
    max_item_length: int


LengthSpec: TypeAlias = Union[int, ArrayLength]


class CompoundValue(TypedDict):
    """Explicit bind instructions for one parameter. Any of the values may be None."""

    length: Optional[Union[int, str]]
    type: Optional[Union[str, int]]
    value: Any


class DriverError(NamedTuple):
    """Error state reported by the driver for a statement handle."""

    code: Optional[int]
    message: str
    sql_text: Optional[str] = None


def is_compound(value: Any) -> bool:
    """Check for a ``{length, type, value}`` descriptor.

    All three keys must be present; their values may be None.

    Args:
        value: The raw parameter value.

    Returns:
        True if the value is a compound descriptor.
    """
    return isinstance(value, Mapping) and all(key in value for key in COMPOUND_KEYS)


def is_array_value(value: Any) -> bool:
    """Check for a raw array value.

    Lists, tuples and mappings that are not compound descriptors count as arrays;
    strings and bytes do not.

    Args:
        value: The raw parameter value.

    Returns:
        True if the value should be array-bound.
    """
    if isinstance(value, (list, tuple)):
        return True
    return isinstance(value, Mapping) and not is_compound(value)


class BindPlan:
    """Fully resolved binding instructions for one parameter."""

    __slots__ = ("length", "mode", "name", "value", "wire_type")

    def __init__(
        self,
        name: str,
        mode: BindMode,
        wire_type: "Optional[ResolvedType]",
        length: LengthSpec,
        value: Any,
    ) -> None:
        self.name = name
        self.mode = mode
        self.wire_type = wire_type
        self.length = length
        self.value = value

    @property
    def placeholder(self) -> str:
        return f":{self.name}"

    @property
    def is_array(self) -> bool:
        return isinstance(self.length, ArrayLength)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, type(self)):
            return False
        return (
            self.name == other.name
            and self.mode == other.mode
            and self.wire_type == other.wire_type
            and self.length == other.length
            and self.value == other.value
        )

    def __hash__(self) -> int:
        return hash((self.name, self.mode, self.wire_type, self.length))

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(name={self.name!r}, mode={self.mode!r}, wire_type={self.wire_type!r}, "
            f"length={self.length!r}, value={self.value!r})"
        )


class BoundParameter:
    """A parameter after its bind call.

    ``variable`` is whatever the driver bound to the placeholder; OUT values
    are read back from it after execution.
    """

    __slots__ = ("bound", "plan", "variable")

    def __init__(self, plan: BindPlan, bound: bool, variable: Any = None) -> None:
        self.plan = plan
        self.bound = bound
        self.variable = variable

    @property
    def name(self) -> str:
        return self.plan.name

    @property
    def mode(self) -> BindMode:
        return self.plan.mode

    @property
    def wire_type(self) -> "Optional[ResolvedType]":
        return self.plan.wire_type

    @property
    def length(self) -> LengthSpec:
        return self.plan.length

    @property
    def value(self) -> Any:
        return self.plan.value

    def read(self) -> Any:
        """Return the current value of the bound variable.

        Returns:
            The driver variable's value when it exposes ``getvalue()``,
            otherwise the value that was bound.
        """
        getvalue = getattr(self.variable, "getvalue", None)
        if callable(getvalue):
            return getvalue()
        return self.plan.value

    def __repr__(self) -> str:
        return f"{type(self).__name__}(plan={self.plan!r}, bound={self.bound!r})"
