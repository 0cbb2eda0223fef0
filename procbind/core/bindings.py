"""Binding orchestration.

The orchestrator walks a parameter map, works out a :class:`BindPlan` for each
entry and issues the matching driver bind call. Every parameter goes through
classification, type resolution, length resolution and value shaping before
it is bound; the first failure aborts the call.
"""

from collections.abc import Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Optional, Union

from mypy_extensions import mypyc_attr

from procbind.core.classifier import ParameterClassifier
from procbind.core.length_resolver import AUTO_LENGTH, LengthResolver
from procbind.core.statement import PASS_THROUGH_CODE, StatementKind, is_pass_through
from procbind.core.type_resolver import TypeResolver, parse_collection_type
from procbind.core.types import (
    ArrayLength,
    BindMode,
    BindPlan,
    BoundParameter,
    CollectionType,
    CompoundValue,
    is_array_value,
)
from procbind.core.value_shaper import ValueShaper, unwrap
from procbind.exceptions import (
    BindFailedError,
    ImproperConfigurationError,
    NoStatementHandleError,
    UnsupportedStatementError,
)
from procbind.utils.logging import get_logger
from procbind.utils.text import strip_control_characters

if TYPE_CHECKING:
    from procbind.config import BindingConfig
    from procbind.protocols import BindDriverProtocol, CollectionProtocol

__all__ = ("BindingOrchestrator", "merge_parameters")

logger = get_logger("core.bindings")


def merge_parameters(
    existing: "Optional[Mapping[str, Any]]", new: "Optional[Mapping[str, Any]]"
) -> "dict[str, Any]":
    """Merge two parameter maps.

    Keys in ``new`` overwrite keys in ``existing``; neither input is modified.

    Args:
        existing: Previously staged parameters.
        new: Parameters for this call.

    Returns:
        The merged parameter map.
    """
    merged = dict(existing or {})
    if new:
        merged.update(new)
    return merged


def _sql_of(statement: Any) -> "Optional[str]":
    return getattr(statement, "sql", None)


@mypyc_attr(allow_interpreted_subclasses=True)
class BindingOrchestrator:
    """Bind named parameters to a parsed statement.

    Collaborators are injected; :meth:`from_config` builds the default set
    from a :class:`~procbind.config.BindingConfig`.
    """

    __slots__ = ("_bound", "_classifier", "_driver", "_length_resolver", "_staged", "_type_resolver", "_value_shaper")

    def __init__(
        self,
        driver: "Optional[BindDriverProtocol]" = None,
        classifier: "Optional[ParameterClassifier]" = None,
        type_resolver: "Optional[TypeResolver]" = None,
        length_resolver: "Optional[LengthResolver]" = None,
        value_shaper: "Optional[ValueShaper]" = None,
        bind_vars: "Optional[Mapping[str, Any]]" = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            driver: Driver implementing the bind primitives. Only needed to bind; planning works without one.
            classifier: Parameter classifier.
            type_resolver: Wire type resolver.
            length_resolver: Buffer length resolver.
            value_shaper: Value shaper.
            bind_vars: Parameters staged for every call.
        """
        self._driver = driver
        self._classifier = classifier or ParameterClassifier()
        self._type_resolver = type_resolver or TypeResolver()
        self._length_resolver = length_resolver or LengthResolver()
        self._value_shaper = value_shaper or ValueShaper()
        self._staged: dict[str, Any] = dict(bind_vars or {})
        self._bound: dict[str, BoundParameter] = {}

    @classmethod
    def from_config(cls, driver: "Optional[BindDriverProtocol]", config: "BindingConfig") -> "BindingOrchestrator":
        return cls(
            driver,
            classifier=ParameterClassifier.from_config(config),
            type_resolver=TypeResolver.from_config(config),
            length_resolver=LengthResolver(),
            value_shaper=ValueShaper.from_config(config),
            bind_vars=config.bind_vars,
        )

    @property
    def staged(self) -> "dict[str, Any]":
        return dict(self._staged)

    @property
    def bound(self) -> "Mapping[str, BoundParameter]":
        """Parameters bound by the last call, keyed by name."""
        return MappingProxyType(self._bound)

    def stage(self, parameters: "Optional[Mapping[str, Any]]") -> "dict[str, Any]":
        """Merge parameters into the staged map used by the next bind call."""
        self._staged = merge_parameters(self._staged, parameters)
        return self.staged

    def value_of(self, name: str) -> Any:
        """Return the current value of a bound parameter.

        For OUT and function-return parameters this is the value the database
        wrote after execution.

        Args:
            name: Parameter name, with or without the leading colon.

        Raises:
            KeyError: When no parameter of that name was bound.

        Returns:
            The parameter value.
        """
        return self._bound[name.lstrip(":")].read()

    def plan(self, name: str, value: Any) -> BindPlan:
        """Resolve how one parameter is bound without touching the driver.

        Args:
            name: Parameter name, with or without the leading colon.
            value: Scalar, raw array or ``{length, type, value}`` descriptor.

        Returns:
            The bind plan.
        """
        name = name.lstrip(":")
        mode = self._classifier.classify(name, value)

        if mode is BindMode.SCALAR_IN:
            return BindPlan(name, mode, None, AUTO_LENGTH, value)

        if mode is BindMode.ARRAY_IN:
            return BindPlan(
                name,
                mode,
                self._type_resolver.infer_type(value),
                self._length_resolver.resolve_length(value, True),
                self._value_shaper.shape(value),
            )

        token = value["type"]
        inner = unwrap(value["value"])
        collection = parse_collection_type(token)
        if collection is not None:
            mode = BindMode.CUSTOM_COLLECTION
            wire_type: Any = collection
        else:
            wire_type = self._type_resolver.resolve(token, inner, mode is BindMode.OUT_OR_RETURN)
        descriptor: CompoundValue = {"length": value["length"], "type": token, "value": inner}
        is_array = mode is not BindMode.CUSTOM_COLLECTION and is_array_value(inner)
        length = self._length_resolver.resolve_length(descriptor, is_array, True)
        return BindPlan(name, mode, wire_type, length, self._value_shaper.shape(inner))

    def bind_all(
        self, statement: Any, parameters: "Optional[Mapping[str, Any]]" = None
    ) -> "dict[str, BoundParameter]":
        """Bind every staged and supplied parameter to a statement.

        Args:
            statement: The parsed statement handle.
            parameters: Parameters for this call; merged over the staged ones.

        Raises:
            NoStatementHandleError: When no statement handle is given.
            BindFailedError: When the driver reports an error for a parameter.

        Returns:
            Bound parameters keyed by name.
        """
        if statement is None:
            msg = "No statement to bind to; parse the SQL first"
            raise NoStatementHandleError(msg)
        if self._driver is None:
            msg = "No bind driver configured"
            raise ImproperConfigurationError(msg)

        self._bound = {}
        for name, value in merge_parameters(self._staged, parameters).items():
            plan = self.plan(name, value)
            logger.debug(
                "Binding %s as %s (type=%s, length=%s)", plan.placeholder, plan.mode, plan.wire_type, plan.length
            )
            self._bound[plan.name] = self._bind_plan(statement, plan)
        return dict(self._bound)

    def bind(
        self,
        sql_kind: "Union[StatementKind, int]",
        parameters: "Optional[Mapping[str, Any]]",
        statement: Any,
    ) -> "dict[str, bool]":
        """Bind parameters for a classified statement.

        Args:
            sql_kind: The statement kind returned by SQL classification.
            parameters: Parameters for this call.
            statement: The parsed statement handle.

        Raises:
            UnsupportedStatementError: For pass-through SQL.

        Returns:
            Bind success per parameter name.
        """
        if is_pass_through(sql_kind):
            msg = "Pass-through SQL is not supported; wrap the statement in a stored procedure"
            raise UnsupportedStatementError(msg, sql=_sql_of(statement), code=PASS_THROUGH_CODE)
        return {name: bound.bound for name, bound in self.bind_all(statement, parameters).items()}

    def _bind_plan(self, statement: Any, plan: BindPlan) -> BoundParameter:
        if plan.mode is BindMode.CUSTOM_COLLECTION:
            return self._bind_collection(statement, plan)
        if isinstance(plan.length, ArrayLength):
            ok = self._driver.bind_array(
                statement, plan.placeholder, plan.value, plan.length, plan.wire_type  # type: ignore[arg-type]
            )
            self._check(statement, plan, ok, array=True)
        else:
            ok = self._driver.bind_scalar(
                statement,
                plan.placeholder,
                plan.value,
                length=None if plan.length == AUTO_LENGTH else plan.length,
                wire_type=plan.wire_type,
            )
            self._check(statement, plan, ok)
        return BoundParameter(plan, ok, self._driver.bound_variable(statement, plan.placeholder))

    def _bind_collection(self, statement: Any, plan: BindPlan) -> BoundParameter:
        collection_type: CollectionType = plan.wire_type  # type: ignore[assignment]
        collection: Optional[CollectionProtocol] = self._driver.new_collection(
            statement, collection_type.type_name, collection_type.schema
        )
        self._check(statement, plan, collection is not None)
        elements = plan.value if isinstance(plan.value, list) else ([] if plan.value is None else [plan.value])
        for element in elements:
            collection.append(element)  # type: ignore[union-attr]
        ok = self._driver.bind_named_collection(statement, plan.placeholder, collection)
        self._check(statement, plan, ok)
        return BoundParameter(plan, ok, self._driver.bound_variable(statement, plan.placeholder))

    def _check(self, statement: Any, plan: BindPlan, ok: bool, *, array: bool = False) -> None:
        error = self._driver.last_error(statement)
        if error is None and ok:
            return
        message = strip_control_characters(error.message) if error else ""
        code = error.code if error else None
        sql = (error.sql_text if error else None) or _sql_of(statement)
        logger.debug("Bind of %s failed: %s", plan.placeholder, message)
        raise BindFailedError(plan.name, message, code, sql, array=array)
