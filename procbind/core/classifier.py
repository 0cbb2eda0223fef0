"""Parameter classification.

Decides how each named parameter is bound from its name and the structure of
its value alone.
"""

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from mypy_extensions import mypyc_attr

from procbind.core.types import BindMode, is_array_value, is_compound
from procbind.exceptions import MalformedOutParameterError

if TYPE_CHECKING:
    from procbind.config import BindingConfig

__all__ = ("ParameterClassifier",)


@mypyc_attr(allow_interpreted_subclasses=True)
class ParameterClassifier:
    """Classify parameters into bind modes.

    A name is an OUT or function-return parameter when it contains any of the
    configured name fragments anywhere in it. The match is not anchored, so
    ``outvariable_result`` matches ``_outvar`` just like ``result_outvar`` does.
    """

    __slots__ = ("_out_suffixes",)

    def __init__(
        self, out_params: "Iterable[str]" = ("_outvar",), function_return_params: "Iterable[str]" = ("_return",)
    ) -> None:
        self._out_suffixes: tuple[str, ...] = tuple(s for s in (*out_params, *function_return_params) if s)

    @classmethod
    def from_config(cls, config: "BindingConfig") -> "ParameterClassifier":
        return cls(config.out_params, config.function_return_params)

    @property
    def out_suffixes(self) -> "tuple[str, ...]":
        return self._out_suffixes

    def is_out_parameter(self, name: str) -> bool:
        return any(suffix in name for suffix in self._out_suffixes)

    def classify(self, name: str, value: Any) -> BindMode:
        """Classify one parameter.

        Args:
            name: Parameter name, without the leading colon.
            value: Scalar, raw array or ``{length, type, value}`` descriptor.

        Raises:
            MalformedOutParameterError: When an OUT parameter is not a compound descriptor.

        Returns:
            The bind mode. Reclassification to ``CUSTOM_COLLECTION`` happens
            later, once the type token has been resolved.
        """
        compound = is_compound(value)
        if self.is_out_parameter(name):
            if not compound:
                msg = "OUT parameters must be given as a {length, type, value} descriptor"
                raise MalformedOutParameterError(msg, parameter=name)
            return BindMode.OUT_OR_RETURN
        if compound:
            return BindMode.COMPOUND_IN
        if is_array_value(value):
            return BindMode.ARRAY_IN
        return BindMode.SCALAR_IN
