"""procbind core - parameter classification and bind planning.

Architecture Overview:
- types.py: wire types, bind modes, length specs and bind plans
- classifier.py: ParameterClassifier (scalar, array, compound, OUT)
- type_resolver.py: TypeResolver (explicit tokens and inference)
- length_resolver.py: LengthResolver (scalar and array buffer sizes)
- value_shaper.py: ValueShaper (unwrapping and array normalization)
- statement.py: regex classification of SQL text
- bindings.py: BindingOrchestrator, the entry point driving the others
"""

from procbind.core.bindings import BindingOrchestrator, merge_parameters
from procbind.core.classifier import ParameterClassifier
from procbind.core.length_resolver import AUTO_LENGTH, LengthResolver
from procbind.core.statement import StatementKind, classify_sql, is_pass_through
from procbind.core.type_resolver import TypeResolver, parse_collection_type
from procbind.core.types import (
    ArrayLength,
    BindMode,
    BindPlan,
    BoundParameter,
    CollectionType,
    CompoundValue,
    DriverError,
    LengthSpec,
    ResolvedType,
    WireType,
    is_array_value,
    is_compound,
)
from procbind.core.value_shaper import ValueShaper, contains_null, unwrap

__all__ = (
    "AUTO_LENGTH",
    "ArrayLength",
    "BindMode",
    "BindPlan",
    "BindingOrchestrator",
    "BoundParameter",
    "CollectionType",
    "CompoundValue",
    "DriverError",
    "LengthResolver",
    "LengthSpec",
    "ParameterClassifier",
    "ResolvedType",
    "StatementKind",
    "TypeResolver",
    "ValueShaper",
    "WireType",
    "classify_sql",
    "contains_null",
    "is_array_value",
    "is_compound",
    "is_pass_through",
    "merge_parameters",
    "parse_collection_type",
    "unwrap",
)
