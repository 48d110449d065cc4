"""
Error handling using Result[T, Error] pattern.

Row-level failures travel as Result values so a bad row never aborts an
import; only BatchFailure and ConfigurationError are raised.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TypeVar, Generic, Optional


class ErrorCode(Enum):
    """Error codes for categorizing failures."""

    INVALID = "INVALID"
    MISSING_FIELD = "MISSING_FIELD"
    NODATA = "NODATA"
    NOHEADER = "NOHEADER"
    TOO_LARGE = "TOO_LARGE"
    UNREADABLE = "UNREADABLE"
    CONFIGURATION = "CONFIGURATION"


@dataclass
class AppError:
    """Application error with code, message, and context."""

    code: ErrorCode
    message: str
    context: Optional[dict] = None

    def __str__(self):
        ctx = f" | {self.context}" if self.context else ""
        return f"{self.code.value}: {self.message}{ctx}"


class BatchFailure(Exception):
    """Raised when a whole import cannot proceed (empty, unreadable, no header)."""

    def __init__(self, error: AppError):
        super().__init__(str(error))
        self.error = error

    @property
    def code(self) -> ErrorCode:
        return self.error.code


class ConfigurationError(Exception):
    """Raised when configuration is malformed or invalid."""

    def __init__(self, message: str, context: Optional[dict] = None):
        super().__init__(message)
        self.error = AppError(ErrorCode.CONFIGURATION, message, context)

    @property
    def code(self) -> ErrorCode:
        return self.error.code


T = TypeVar('T')
E = TypeVar('E', bound=AppError)


@dataclass
class Result(Generic[T, E]):
    """
    Result type for functional error handling.

    A Result is either Ok(value) or Err(error), never both.

    Examples:
        result = normalize_row(row)
        if result.is_ok:
            fill = result.value
        else:
            record_rejection(result.error)
    """

    value: Optional[T] = None
    error: Optional[E] = None
    _is_ok: bool = True  # Track state explicitly to handle Ok(None)

    @classmethod
    def Ok(cls, value: T) -> 'Result[T, AppError]':
        """Create a successful result."""
        return Result(value=value, _is_ok=True)

    @classmethod
    def Err(cls, error: AppError) -> 'Result[T, AppError]':
        """Create an error result."""
        return Result(error=error, _is_ok=False)

    @property
    def is_ok(self) -> bool:
        """True if result is Ok."""
        return self._is_ok and self.error is None

    @property
    def is_err(self) -> bool:
        """True if result is Err."""
        return not self._is_ok or self.error is not None

    def unwrap(self) -> T:
        """
        Get the value or raise exception if error.
        Use only when you're certain result is Ok.
        """
        if self.is_err:
            raise ValueError(str(self.error))
        return self.value

    def unwrap_err(self) -> E:
        """
        Get the error or raise exception if Ok.
        Use for testing or when you expect an error.
        """
        if self.is_ok:
            raise ValueError("Result is Ok, not Err")
        return self.error


# Convenience aliases
Ok = Result.Ok
Err = Result.Err
