"""Request payload validation and procedure models.

Payloads arrive from web forms and query strings: keys in any case, numbers
with currency formatting. They are checked against a procedure's
``bind_vars`` and cleaned before binding.
"""

import re
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any, ClassVar, Final, Optional, Union

from typing_extensions import NotRequired, TypedDict

from procbind.core.classifier import ParameterClassifier
from procbind.exceptions import ImproperConfigurationError, PayloadMismatchError
from procbind.procedure import ProcedureRunner
from procbind.utils.logging import get_logger

if TYPE_CHECKING:
    from procbind.adapters.oracledb.driver import OracleBindDriver
    from procbind.config import DatabaseConfig

__all__ = (
    "EXEMPT_KEYS",
    "ProcedureDefinition",
    "ProcedureModel",
    "clean_payload",
    "standardize_payload",
    "validate_payload",
)

logger = get_logger("payload")

EXEMPT_KEYS: Final[frozenset[str]] = frozenset({"zipcode", "id", "phone"})
DATE_PATTERN: Final["re.Pattern[str]"] = re.compile(r"\d{1,4}[/.-](?:\d{1,2}|\w{3})[/.-]\d{2,4}")
NUMBER_PATTERN: Final["re.Pattern[str]"] = re.compile(r"^\$?(?:\d+,?\d+\.\d+|0\.00|\d+)$")
_NON_NUMBER: Final["re.Pattern[str]"] = re.compile(r"[^0-9.]")
DEFAULT_OUT_MARKERS: Final["tuple[str, ...]"] = ("_outvar", "_return")


class ProcedureDefinition(TypedDict):
    """SQL elements of one stored procedure."""

    sql: str
    bind_vars: NotRequired["dict[str, Any]"]
    out_cursor: NotRequired["Optional[Union[str, list[str]]]"]


def _contains_after_start(key: str, fragment: str) -> bool:
    return bool(fragment) and key.find(fragment) > 0


def standardize_payload(payload: "Mapping[str, Any]") -> "dict[str, Any]":
    """Return the payload with lower-cased keys."""
    return {str(key).lower(): value for key, value in payload.items()}


def _keep_as_is(payload: "Mapping[str, Any]", key: str) -> bool:
    if _contains_after_start(key, "_id") and key in payload:
        return True
    if key in EXEMPT_KEYS:
        return True
    if key not in payload:
        return False
    value = payload[key]
    return value is None or bool(DATE_PATTERN.search(str(value)))


def clean_payload(
    model_keys: "Iterable[str]", payload: "Mapping[str, Any]", out_markers: "Iterable[str]" = DEFAULT_OUT_MARKERS
) -> "dict[str, Any]":
    """Build the IN parameters of a procedure from a payload.

    Identifier, exempt, null and date values are kept as they are. Keys
    missing from the payload are set to None. Values that look like numbers
    lose their currency formatting, so ``"$1,234.50"`` becomes ``"1234.50"``.

    Args:
        model_keys: The procedure's parameter names (or its ``bind_vars``).
        payload: The submitted payload.
        out_markers: Name fragments identifying OUT and function-return parameters,
            which are skipped. They match anywhere in the name, as in the binding core.

    Returns:
        The cleaned parameters.
    """
    classifier = ParameterClassifier(out_markers, ())
    standardized = standardize_payload(payload)
    cleaned: dict[str, Any] = {}
    for key in model_keys:
        if classifier.is_out_parameter(key):
            continue
        if _keep_as_is(standardized, key):
            cleaned[key] = standardized.get(key)
            continue
        if key not in standardized:
            cleaned[key] = None
            continue
        value = standardized[key]
        if isinstance(value, str) and NUMBER_PATTERN.search(value):
            value = _NON_NUMBER.sub("", value)
        cleaned[key] = value
    return cleaned


def validate_payload(
    payload: "Mapping[str, Any]", model: "Mapping[str, Any]", out_markers: "Iterable[str]" = DEFAULT_OUT_MARKERS
) -> "dict[str, Any]":
    """Check a payload against a procedure's parameters and clean it.

    Args:
        payload: The submitted payload.
        model: The procedure's ``bind_vars``.
        out_markers: Name fragments identifying OUT and function-return parameters.

    Raises:
        PayloadMismatchError: When the payload shares none of the model's IN parameters.

    Returns:
        The cleaned parameters.
    """
    classifier = ParameterClassifier(out_markers, ())
    in_keys = [key for key in model if not classifier.is_out_parameter(key)]
    payload_keys = set(standardize_payload(payload))
    missing = [key for key in in_keys if key not in payload_keys]
    if in_keys and len(missing) == len(in_keys):
        msg = f"Payload differs from model; missing {', '.join(missing)}"
        raise PayloadMismatchError(msg)
    if missing:
        logger.debug("Payload is missing %s; binding them as NULL", missing)
    return clean_payload(model, payload, classifier.out_suffixes)


class ProcedureModel:
    """Base class for a set of stored procedures.

    Subclasses list their procedures in :attr:`procedures`, each one a mapping
    with ``sql``, ``bind_vars`` and ``out_cursor``::

        class UrlModel(ProcedureModel):
            procedures = {
                "check_url": {
                    "sql": "BEGIN :return_outvar := app.url_pkg.checkurl(:url); END;",
                    "bind_vars": {"url": None, "return_outvar": {"length": 8, "type": "int", "value": None}},
                    "out_cursor": None,
                },
            }
    """

    procedures: ClassVar["dict[str, ProcedureDefinition]"] = {}

    def __init__(self, config: "DatabaseConfig", driver: "Optional[OracleBindDriver]" = None) -> None:
        self._config = config
        self._driver = driver

    def definition(self, name: str) -> ProcedureDefinition:
        try:
            return self.procedures[name]
        except KeyError as exc:
            msg = f"Unknown procedure {name!r}"
            raise ImproperConfigurationError(msg) from exc

    def runner(self, name: str) -> ProcedureRunner:
        """Build a runner for one procedure, with its SQL elements merged into the configuration."""
        return ProcedureRunner.from_config(self._config.merge(self.definition(name)), driver=self._driver)

    def call(self, name: str, payload: "Optional[Mapping[str, Any]]" = None, outvar: "Optional[str]" = None) -> Any:
        """Validate a payload and run a procedure with it.

        Args:
            name: The procedure name.
            payload: Submitted values for the IN parameters.
            outvar: Name of the OUT parameter to return.

        Returns:
            The procedure result.
        """
        parameters = None
        if payload is not None:
            parameters = validate_payload(
                payload, self.definition(name).get("bind_vars") or {}, self._config.bindings.out_suffixes
            )
        return self.runner(name).run(parameters, outvar)
