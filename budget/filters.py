from typing import Callable, Iterable, Iterator, Optional

from budget.domain import Transaction
from budget.functional import pipe


def iter_transactions(
    trans: Iterable[Transaction], pred: Callable[[Transaction], bool]
) -> Iterator[Transaction]:
    for t in trans:
        if pred(t):
            yield t


def by_type(kind: str):
    def _filter(t: Transaction) -> bool:
        return t.type == kind

    return _filter


def by_category(category: str):
    def _filter(t: Transaction) -> bool:
        return t.category == category

    return _filter


def by_month(month: str):
    def _filter(t: Transaction) -> bool:
        return t.date.startswith(month)

    return _filter


def by_date_range(start: str, end: str):
    def _filter(t: Transaction) -> bool:
        return start <= t.date <= end

    return _filter


def by_amount_range(min: float, max: float):
    def _filter(t: Transaction) -> bool:
        return min <= t.amount <= max

    return _filter


def matches_query(query: str):
    """Case-insensitive substring match on description or category."""
    needle = query.lower()

    def _filter(t: Transaction) -> bool:
        return needle in t.description.lower() or needle in t.category.lower()

    return _filter


def newest_first(trans: Iterable[Transaction]) -> list[Transaction]:
    return sorted(trans, key=lambda t: t.date, reverse=True)


def list_transactions(
    trans: Iterable[Transaction],
    month: Optional[str] = None,
    query: Optional[str] = None,
    limit: Optional[int] = None,
) -> list[Transaction]:
    """Transactions as shown in the list view: filtered, newest first, capped."""
    steps = []
    if month:
        steps.append(lambda ts: iter_transactions(ts, by_month(month)))
    if query:
        steps.append(lambda ts: iter_transactions(ts, matches_query(query)))
    steps.append(newest_first)
    if limit:
        steps.append(lambda ts: ts[:limit])
    return pipe(trans, *steps)
