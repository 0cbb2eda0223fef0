"""Runtime-checkable protocols for the driver primitives procbind binds through.

The binding core only talks to these protocols; the python-oracledb adapter
is one implementation.
"""

from typing import TYPE_CHECKING, Any, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from procbind.core.types import ArrayLength, DriverError, ResolvedType

__all__ = ("BindDriverProtocol", "CollectionProtocol")


@runtime_checkable
class CollectionProtocol(Protocol):
    """Protocol for database collection objects built element by element."""

    def append(self, element: Any) -> None:
        """Append one element to the collection."""
        ...


@runtime_checkable
class BindDriverProtocol(Protocol):
    """Protocol for the bind-by-name primitives of a procedural client.

    Bind methods report failure by returning False and leaving the error on
    the statement handle, where :meth:`last_error` picks it up.
    """

    def bind_scalar(
        self,
        statement: Any,
        placeholder: str,
        value: Any,
        length: "Optional[int]" = None,
        wire_type: "Optional[ResolvedType]" = None,
    ) -> bool:
        """Bind a scalar by name."""
        ...

    def bind_array(
        self, statement: Any, placeholder: str, values: "list[Any]", length: "ArrayLength", wire_type: "ResolvedType"
    ) -> bool:
        """Bind an array by name."""
        ...

    def new_collection(
        self, statement: Any, type_name: str, schema: "Optional[str]" = None
    ) -> "Optional[CollectionProtocol]":
        """Create an empty collection of a schema-level collection type, or None on failure."""
        ...

    def bind_named_collection(self, statement: Any, placeholder: str, collection: Any) -> bool:
        """Bind a collection object by name."""
        ...

    def bound_variable(self, statement: Any, placeholder: str) -> Any:
        """Return whatever was bound to a placeholder."""
        ...

    def last_error(self, statement: Any) -> "Optional[DriverError]":
        """Return the pending error of a statement handle, if any."""
        ...
