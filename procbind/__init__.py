"""procbind: parameter binding for Oracle stored procedure calls."""

from procbind import adapters, config, core, exceptions, utils
from procbind.__metadata__ import __version__
from procbind.config import BindingConfig, DatabaseConfig
from procbind.core import (
    ArrayLength,
    BindingOrchestrator,
    BindMode,
    BindPlan,
    BoundParameter,
    CollectionType,
    StatementKind,
    WireType,
    classify_sql,
    merge_parameters,
)
from procbind.exceptions import (
    BindFailedError,
    BindingError,
    InvalidBindTypeError,
    InvalidLengthError,
    MalformedOutParameterError,
    NoStatementHandleError,
    PayloadMismatchError,
    ProcBindError,
)
from procbind.payload import ProcedureModel, clean_payload, validate_payload
from procbind.procedure import ProcedureRunner

__all__ = (
    "ArrayLength",
    "BindFailedError",
    "BindMode",
    "BindPlan",
    "BindingConfig",
    "BindingError",
    "BindingOrchestrator",
    "BoundParameter",
    "CollectionType",
    "DatabaseConfig",
    "InvalidBindTypeError",
    "InvalidLengthError",
    "MalformedOutParameterError",
    "NoStatementHandleError",
    "PayloadMismatchError",
    "ProcBindError",
    "ProcedureModel",
    "ProcedureRunner",
    "StatementKind",
    "WireType",
    "__version__",
    "adapters",
    "classify_sql",
    "clean_payload",
    "config",
    "core",
    "exceptions",
    "merge_parameters",
    "utils",
    "validate_payload",
)
