from typing import Any, ClassVar, Optional

__all__ = (
    "BindFailedError",
    "BindingError",
    "CommitError",
    "CursorError",
    "DatabaseConnectionError",
    "DatabaseError",
    "ImproperConfigurationError",
    "InvalidBindTypeError",
    "InvalidLengthError",
    "MalformedOutParameterError",
    "NoStatementHandleError",
    "PayloadMismatchError",
    "ProcBindError",
    "ResultFetchError",
    "StatementError",
    "UnsupportedStatementError",
)


class ProcBindError(Exception):
    """Base exception class from which all procbind exceptions inherit."""

    code: ClassVar[Optional[int]] = None
    detail: str

    def __init__(self, *args: Any, detail: str = "") -> None:
        """Initialize ``ProcBindError``.

        Args:
            *args: args are converted to :class:`str` before passing to :class:`Exception`
            detail: detail of the exception.
        """
        str_args = [str(arg) for arg in args if arg]
        if not detail:
            if str_args:
                detail, *str_args = str_args
            elif hasattr(self, "detail"):
                detail = self.detail
        self.detail = detail
        super().__init__(*str_args)

    def __repr__(self) -> str:
        if self.detail:
            return f"{self.__class__.__name__} - {self.detail}"
        return self.__class__.__name__

    def __str__(self) -> str:
        return " ".join((*self.args, self.detail)).strip()


class ImproperConfigurationError(ProcBindError):
    """Improper Configuration error.

    Raised when a configuration section holds a value procbind cannot use,
    such as a regular expression that does not compile.
    """


class PayloadMismatchError(ProcBindError):
    """The submitted payload shares no keys with the procedure model."""

    code = 514


class UnsupportedStatementError(ProcBindError):
    """The SQL text cannot be processed by procbind."""

    code = 519

    sql: Optional[str]

    def __init__(self, message: str, sql: Optional[str] = None, code: Optional[int] = None) -> None:
        detail_message = message
        if sql:
            detail_message = f"{message}\nSQL: {sql}"
        super().__init__(detail=detail_message)
        self.sql = sql
        if code is not None:
            self.code = code  # type: ignore[misc]


# -- Binding Errors --
class BindingError(ProcBindError):
    """Base class for parameter binding errors."""

    parameter: Optional[str]
    sql: Optional[str]

    def __init__(self, message: str, parameter: Optional[str] = None, sql: Optional[str] = None) -> None:
        """Initialize with the offending parameter and optional SQL context."""
        detail_message = message
        if parameter:
            detail_message = f"{message} (Parameter: {parameter})"
        if sql:
            detail_message = f"{detail_message}\nSQL: {sql}"
        super().__init__(detail=detail_message)
        self.parameter = parameter
        self.sql = sql


class MalformedOutParameterError(BindingError):
    """An OUT or function-return parameter was not given a ``{length, type, value}`` descriptor."""


class InvalidBindTypeError(BindingError):
    """A type token is neither an allowed bind type nor a ``schema.type`` reference."""


class InvalidLengthError(BindingError):
    """An explicit bind length is not numeric."""


class NoStatementHandleError(BindingError):
    """Binding was attempted without a parsed statement."""

    code = 517


class BindFailedError(BindingError):
    """The driver reported an error after a bind call."""

    code = 523

    driver_code: Optional[int]
    driver_message: str

    def __init__(
        self,
        parameter: str,
        driver_message: str,
        driver_code: Optional[int] = None,
        sql: Optional[str] = None,
        *,
        array: bool = False,
    ) -> None:
        preamble = "Oracle bind array by name failed!" if array else "Oracle bind by name failed!"
        message = f"{preamble} {driver_message}" if driver_message else preamble
        super().__init__(message, parameter=parameter, sql=sql)
        self.driver_code = driver_code
        self.driver_message = driver_message
        if array:
            self.code = 522  # type: ignore[misc]


# -- Database Errors --
class DatabaseError(ProcBindError):
    """Base class for errors raised by the database collaborators."""

    driver_code: Optional[int]

    def __init__(self, message: str, driver_code: Optional[int] = None, code: Optional[int] = None) -> None:
        detail_message = message
        if driver_code is not None:
            detail_message = f"{message} [ORA-{driver_code:05d}]"
        super().__init__(detail=detail_message)
        self.driver_code = driver_code
        if code is not None:
            self.code = code  # type: ignore[misc]


class DatabaseConnectionError(DatabaseError):
    """Connecting to the database failed or the connect string is invalid."""

    code = 516


class StatementError(DatabaseError):
    """Parsing, executing or freeing a statement failed."""

    code = 513


class CursorError(DatabaseError):
    """Creating or binding an OUT cursor failed."""


class ResultFetchError(DatabaseError):
    """Fetching rows from a statement or cursor failed."""

    code = 527


class CommitError(DatabaseError):
    """Committing the transaction failed."""

    code = 525
