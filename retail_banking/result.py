"""
Result Module

Tagged success/failure outcome returned by every service operation.
Services never raise across their boundary; failures carry a
machine-readable code and a human-readable message instead.
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar('T')


@dataclass(frozen=True)
class ResultError:
    """Error code and message attached to a failed result"""
    code: str
    message: str


ResultError.NONE = ResultError("", "")
ResultError.RECORD_NOT_FOUND = ResultError("Error.RecordNotFound", "Record not found.")
ResultError.NULL_VALUE = ResultError("Error.NullValue", "A null value was provided.")
ResultError.ACCOUNT_NOT_FOUND = ResultError("AccountNotFound", "Source or target account not found")
ResultError.INVALID_ACCOUNT = ResultError("InvalidAccount", "Customer does not have this account")
ResultError.BAD_RATING = ResultError("BadRating", "Customer does not have adequate credit rating")


class Result(Generic[T]):
    """
    Outcome of an operation.

    A successful result always carries ``ResultError.NONE``; a failed one
    never does. Usage::

        result = await customer_service.get_by_name("Jim")
        if result.is_success:
            customer = result.value
        else:
            print(result.error.code)
    """

    __slots__ = ('_value', '_is_success', '_error')

    def __init__(self, value: Optional[T], is_success: bool, error: ResultError):
        if is_success and error != ResultError.NONE:
            raise ValueError("A successful result cannot carry an error")
        if not is_success and error == ResultError.NONE:
            raise ValueError("A failed result must carry an error")

        self._value = value
        self._is_success = is_success
        self._error = error

    @property
    def is_success(self) -> bool:
        return self._is_success

    @property
    def is_failure(self) -> bool:
        return not self._is_success

    @property
    def error(self) -> ResultError:
        return self._error

    @property
    def value(self) -> T:
        """Value of a successful result; raises ValueError on a failure"""
        if not self._is_success:
            raise ValueError(f"Result has no value: {self._error.code}")
        return self._value

    @classmethod
    def success(cls, value: T = None) -> 'Result[T]':
        """Create a successful result, optionally carrying a value"""
        return cls(value, True, ResultError.NONE)

    @classmethod
    def failure(cls, error: ResultError) -> 'Result[T]':
        """Create a failed result with the given error"""
        return cls(None, False, error)

    @classmethod
    def create(cls, value: Optional[T]) -> 'Result[T]':
        """Wrap a value; ``None`` becomes a NULL_VALUE failure"""
        if value is None:
            return cls.failure(ResultError.NULL_VALUE)
        return cls.success(value)

    @classmethod
    def from_optional(
        cls,
        value: Optional[T],
        error: ResultError = ResultError.RECORD_NOT_FOUND
    ) -> 'Result[T]':
        """Map a present value to success and an absent one to ``error``"""
        if value is None:
            return cls.failure(error)
        return cls.success(value)

    def __bool__(self) -> bool:
        return self._is_success

    def __repr__(self) -> str:
        if self._is_success:
            return f"Result.success({self._value!r})"
        return f"Result.failure({self._error.code!r})"
