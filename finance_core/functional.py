from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Dict, Generic, Mapping, Optional, TypeVar

T = TypeVar('T')
U = TypeVar('U')
E = TypeVar('E')


class Maybe(Generic[T], ABC):

    @abstractmethod
    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        pass

    @abstractmethod
    def get_or_else(self, default: T) -> T:
        pass

    @abstractmethod
    def is_some(self) -> bool:
        pass

    def is_none(self) -> bool:
        return not self.is_some()


class Some(Maybe[T]):

    def __init__(self, value: T):
        self._value = value

    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        return Some(f(self._value))

    def get_or_else(self, default: T) -> T:
        return self._value

    def is_some(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"Some({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Some) and self._value == other._value


class Nothing(Maybe[T]):

    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        return Nothing()

    def get_or_else(self, default: T) -> T:
        return default

    def is_some(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "Nothing()"

    def __eq__(self, other) -> bool:
        return isinstance(other, Nothing)


def maybe(value: Optional[T]) -> Maybe[T]:
    return Nothing() if value is None else Some(value)


class Either(Generic[E, T], ABC):

    @abstractmethod
    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        pass

    @abstractmethod
    def is_right(self) -> bool:
        pass

    @abstractmethod
    def get(self) -> T:
        pass

    @abstractmethod
    def get_error(self) -> E:
        pass

    def is_left(self) -> bool:
        return not self.is_right()


class Right(Either[E, T]):

    def __init__(self, value: T):
        self._value = value

    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        return f(self._value)

    def is_right(self) -> bool:
        return True

    def get(self) -> T:
        return self._value

    def get_error(self) -> E:
        raise ValueError("Cannot get error from Right")

    def __repr__(self) -> str:
        return f"Right({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Right) and self._value == other._value


class Left(Either[E, T]):

    def __init__(self, error: E):
        self._error = error

    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        return Left(self._error)

    def is_right(self) -> bool:
        return False

    def get(self) -> T:
        raise ValueError(f"Cannot get value from Left: {self._error!r}")

    def get_error(self) -> E:
        return self._error

    def __repr__(self) -> str:
        return f"Left({self._error!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Left) and self._error == other._error


def _error(code: str, message: str, **context: Any) -> Left:
    return Left({"error": code, "message": message, **context})


def validate_amount(amount: Decimal) -> Either[Dict[str, Any], Decimal]:
    if amount is None or amount <= 0:
        return _error("invalid_amount", "Amount must be greater than zero", amount=amount)
    return Right(amount)


def validate_date_range(
    start: Optional[datetime], end: Optional[datetime]
) -> Either[Dict[str, Any], tuple]:
    if start is not None and end is not None and start > end:
        return _error(
            "invalid_date_range",
            f"Start date {start:%Y-%m-%d} is after end date {end:%Y-%m-%d}",
            start=start,
            end=end,
        )
    return Right((start, end))


def validate_month(year: int, month: int) -> Either[Dict[str, Any], tuple]:
    if not 1 <= month <= 12:
        return _error("invalid_month", f"Month must be between 1 and 12, got {month}", month=month)
    if year < 1:
        return _error("invalid_year", f"Year must be positive, got {year}", year=year)
    return Right((year, month))


def validate_budget(
    total_budget: Decimal, category_budgets: Mapping[str, Decimal], year: int, month: int
) -> Either[Dict[str, Any], Decimal]:
    def _amounts(_) -> Either[Dict[str, Any], Decimal]:
        if total_budget < 0:
            return _error("invalid_budget", "Total budget cannot be negative", total_budget=total_budget)
        for category, amount in category_budgets.items():
            if amount < 0:
                return _error(
                    "invalid_budget",
                    f"Budget for {category} cannot be negative",
                    category=category,
                    amount=amount,
                )
        return Right(total_budget)

    return validate_month(year, month).bind(_amounts)


def validate_target_amount(target_amount: Decimal) -> Either[Dict[str, Any], Decimal]:
    if target_amount is None or target_amount <= 0:
        return _error(
            "invalid_target", "Target amount must be greater than zero", target_amount=target_amount
        )
    return Right(target_amount)


def validate_new_goal(
    title: str, target_amount: Decimal, target_date: datetime, now: datetime
) -> Either[Dict[str, Any], str]:
    if not title or not title.strip():
        return _error("invalid_title", "Goal title cannot be empty")
    checked = validate_target_amount(target_amount)
    if checked.is_left():
        return checked
    if target_date <= now:
        return _error(
            "invalid_target_date",
            "Target date must be in the future",
            target_date=target_date,
        )
    return Right(title.strip())
