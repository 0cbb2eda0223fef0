"""Value normalization before binding."""

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any, Optional

from mypy_extensions import mypyc_attr

from procbind.config import TypePatterns
from procbind.core.types import is_array_value, is_compound
from procbind.utils.logging import get_logger

if TYPE_CHECKING:
    from procbind.config import BindingConfig

__all__ = ("ValueShaper", "contains_null", "unwrap")

logger = get_logger("core.value_shaper")


def unwrap(value: Any) -> Any:
    """Return the innermost ``value`` of nested compound descriptors."""
    while is_compound(value):
        value = value["value"]
    return value


def contains_null(values: "Iterable[Any]") -> bool:
    items = values.values() if isinstance(values, Mapping) else values
    return any(item is None for item in items)


@mypyc_attr(allow_interpreted_subclasses=True)
class ValueShaper:
    """Turn raw parameter values into the values handed to the driver.

    Compound descriptors are unwrapped, arrays become lists and float strings
    whose exponent sign was decoded to a space get their ``+`` back.
    """

    __slots__ = ("_float_pattern", "_repair_exponents")

    def __init__(self, type_patterns: "Optional[TypePatterns]" = None, repair_exponent_spaces: bool = True) -> None:
        self._float_pattern = (type_patterns or TypePatterns()).pattern("float")
        self._repair_exponents = repair_exponent_spaces

    @classmethod
    def from_config(cls, config: "BindingConfig") -> "ValueShaper":
        return cls(config.type_patterns, config.repair_exponent_spaces)

    def shape(self, value: Any) -> Any:
        """Shape one parameter value.

        Args:
            value: Scalar, raw array or compound descriptor.

        Returns:
            Scalars unchanged, arrays as a list.
        """
        value = unwrap(value)
        if not is_array_value(value):
            return value

        items = list(value.values()) if isinstance(value, Mapping) else list(value)
        if not items:
            return items
        if contains_null(items):
            items = self.handle_nulls(items)
        if self._repair_exponents:
            items = [self.repair_exponent(item) for item in items]
        return items

    def handle_nulls(self, values: "list[Any]") -> "list[Any]":
        """Prepare an array containing nulls for binding.

        No reliable strategy exists for array-binding NULL elements, so the
        array is passed through unchanged.
        """
        logger.debug("Binding array with %d null element(s) unchanged", sum(1 for v in values if v is None))
        return values

    def repair_exponent(self, item: Any) -> Any:
        """Restore the ``+`` of an exponent that was decoded as a space, e.g. ``"1.5e 10"``."""
        if not isinstance(item, str) or " " not in item or self._float_pattern is None:
            return item
        if self._float_pattern.search(item.strip()):
            return item.strip().replace(" ", "+")
        return item
