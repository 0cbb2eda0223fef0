"""Bind buffer length resolution."""

from collections.abc import Sized
from decimal import Decimal, InvalidOperation
from typing import Any, Final

from mypy_extensions import mypyc_attr

from procbind.core.types import ArrayLength, LengthSpec
from procbind.core.types import is_compound as is_compound_descriptor
from procbind.exceptions import InvalidLengthError

__all__ = ("AUTO_LENGTH", "EMPTY_ARRAY_LENGTH", "LengthResolver")

AUTO_LENGTH: Final[int] = -1
EMPTY_ARRAY_LENGTH: Final[ArrayLength] = ArrayLength(1, 1)


def _coerce_length(length: Any) -> int:
    if length is None or length == "":
        return AUTO_LENGTH
    if isinstance(length, bool):
        msg = f"Bind length must be numeric, got {length!r}"
        raise InvalidLengthError(msg)
    if isinstance(length, int):
        return length
    try:
        return int(Decimal(str(length).strip()))
    except (InvalidOperation, ValueError, OverflowError) as exc:
        msg = f"Bind length must be numeric, got {length!r}"
        raise InvalidLengthError(msg) from exc


@mypyc_attr(allow_interpreted_subclasses=True)
class LengthResolver:
    """Compute scalar buffer lengths and array bind dimensions.

    ``-1`` lets the driver size the buffer. Empty arrays are bound with both
    dimensions set to 1, since the driver rejects zero-length array binds.
    """

    __slots__ = ()

    def resolve_length(self, descriptor: Any, is_array: bool, is_compound: bool = False) -> LengthSpec:
        """Resolve the length of one parameter.

        Args:
            descriptor: The raw value, or the ``{length, type, value}`` descriptor.
            is_array: Whether the (unwrapped) value is bound as an array.
            is_compound: Whether ``descriptor`` is a compound descriptor.

        Raises:
            InvalidLengthError: When an explicit length is not numeric.

        Returns:
            ``-1`` or an explicit integer for scalars; an :class:`ArrayLength` for arrays.
        """
        compound = is_compound or is_compound_descriptor(descriptor)
        explicit = _coerce_length(descriptor["length"]) if compound else AUTO_LENGTH

        if not is_array:
            return explicit

        values = descriptor["value"] if compound else descriptor
        count = len(values) if isinstance(values, Sized) else 0
        if count == 0 and explicit == AUTO_LENGTH:
            return EMPTY_ARRAY_LENGTH
        return ArrayLength(max(count, 1), explicit)
