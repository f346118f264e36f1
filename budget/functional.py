from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Any, Callable, Generic, Iterable, Mapping, TypeVar

from budget.domain import (
    CATEGORIES_BY_TYPE,
    EXPENSE_CATEGORIES,
    TRANSACTION_TYPES,
    Budget,
    Transaction,
)

T = TypeVar('T')
U = TypeVar('U')
E = TypeVar('E')

MAX_DESCRIPTION_LENGTH = 100


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


class Either(Generic[E, T], ABC):

    @abstractmethod
    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        pass

    @abstractmethod
    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        pass

    @abstractmethod
    def get_or_else(self, default: T) -> T:
        pass

    @abstractmethod
    def is_right(self) -> bool:
        pass

    def is_left(self) -> bool:
        return not self.is_right()

    @abstractmethod
    def get_error(self) -> E:
        pass


class Right(Either[E, T]):

    def __init__(self, value: T):
        self._value = value

    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        return Right(f(self._value))

    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        return f(self._value)

    def get_or_else(self, default: T) -> T:
        return self._value

    def is_right(self) -> bool:
        return True

    def get_error(self) -> E:
        raise ValueError("Cannot get error from Right")

    def __repr__(self) -> str:
        return f"Right({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Right) and self._value == other._value


class Left(Either[E, T]):

    def __init__(self, error: E):
        self._error = error

    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        return self

    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        return self

    def get_or_else(self, default: T) -> T:
        return default

    def is_right(self) -> bool:
        return False

    def get_error(self) -> E:
        return self._error

    def __repr__(self) -> str:
        return f"Left({self._error!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Left) and self._error == other._error


def pipe(x, *funcs):
    """Pipe a value through a series of functions.

    pipe(x, f, g, h) == h(g(f(x)))
    """
    res = x
    for f in funcs:
        res = f(res)
    return res


def find_transaction(trans: Iterable[Transaction], tid: str) -> Maybe[Transaction]:
    for t in trans:
        if t.id == tid:
            return Some(t)
    return Nothing()


def find_budget(budgets: Iterable[Budget], bid: str) -> Maybe[Budget]:
    for b in budgets:
        if b.id == bid:
            return Some(b)
    return Nothing()


def _invalid(field: str, error: str, message: str) -> Left:
    return Left({"error": error, "message": message, "field": field})


def _parse_amount(raw: Any) -> Either[dict, float]:
    try:
        amount = float(raw)
    except (TypeError, ValueError):
        return _invalid("amount", "invalid_amount", "Amount must be a number")
    if not amount > 0:
        return _invalid("amount", "invalid_amount", "Amount must be a positive number")
    return Right(amount)


def _parse_date(raw: Any) -> Either[dict, str]:
    if isinstance(raw, datetime):
        raw = raw.date()
    if isinstance(raw, date):
        return Right(raw.isoformat())
    try:
        return Right(date.fromisoformat(str(raw)).isoformat())
    except ValueError:
        return _invalid("date", "invalid_date", "Date is required (YYYY-MM-DD)")


def _parse_month(raw: Any) -> Either[dict, str]:
    try:
        return Right(datetime.strptime(str(raw), "%Y-%m").strftime("%Y-%m"))
    except ValueError:
        return _invalid("month", "invalid_month", "Month must look like YYYY-MM")


def validate_transaction(data: Mapping[str, Any]) -> Either[dict, Transaction]:
    """Check raw form input and build a ``Transaction`` from it.

    The category must belong to the partition of the chosen type.
    ``data`` may carry an ``id``; otherwise the id is left empty for the
    record store to assign.
    """
    kind = data.get("type")
    if kind not in TRANSACTION_TYPES:
        return _invalid("type", "invalid_type", "Type must be income or expense")

    description = str(data.get("description") or "").strip()
    if not description:
        return _invalid("description", "invalid_description", "Description is required")
    if len(description) > MAX_DESCRIPTION_LENGTH:
        return _invalid(
            "description",
            "invalid_description",
            f"Description must be at most {MAX_DESCRIPTION_LENGTH} characters",
        )

    category = data.get("category")
    if not category:
        return _invalid("category", "invalid_category", "Category is required")
    if category not in CATEGORIES_BY_TYPE[kind]:
        return _invalid(
            "category",
            "category_type_mismatch",
            f"Category {category} is not a valid {kind} category",
        )

    return _parse_amount(data.get("amount")).bind(
        lambda amount: _parse_date(data.get("date")).map(
            lambda day: Transaction(
                id=str(data.get("id") or ""),
                amount=amount,
                description=description,
                date=day,
                category=category,
                type=kind,
            )
        )
    )


def validate_budget(data: Mapping[str, Any]) -> Either[dict, Budget]:
    category = data.get("category")
    if not category:
        return _invalid("category", "invalid_category", "Category is required")
    if category not in EXPENSE_CATEGORIES:
        return _invalid(
            "category",
            "invalid_category",
            f"Budgets can only be set for expense categories, got {category}",
        )

    return _parse_amount(data.get("amount")).bind(
        lambda amount: _parse_month(data.get("month")).map(
            lambda month: Budget(
                id=str(data.get("id") or ""),
                category=category,
                amount=amount,
                month=month,
            )
        )
    )


def check_budget(b: Budget) -> Either[dict, Budget]:
    if b.spent > b.amount:
        return Left({
            "error": "budget_exceeded",
            "message": f"Budget limit exceeded for category {b.category} in {b.month}",
            "category": b.category,
            "month": b.month,
            "limit": b.amount,
            "spent": b.spent,
            "over_budget": b.spent - b.amount,
        })
    return Right(b)
