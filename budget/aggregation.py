"""Aggregation engine.

Pure functions deriving summaries, per-category spend and budget progress
from the raw transaction and budget collections. Nothing here performs I/O
or keeps state between calls.

All sums go through ``math.fsum`` so a result does not depend on the order
the transactions arrive in.
"""
import math
from dataclasses import replace
from datetime import date
from typing import Iterable, Optional, Sequence

from budget.domain import (
    EXPENSE,
    EXPENSE_CATEGORIES,
    INCOME,
    Budget,
    Summary,
    Transaction,
)


def month_key(value) -> str:
    """Return the ``YYYY-MM`` bucket of an ISO date string or ``date``."""
    if isinstance(value, date):
        return value.strftime("%Y-%m")
    return str(value)[:7]


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def compute_summary(transactions: Iterable[Transaction]) -> Summary:
    income = []
    expenses = []
    for t in transactions:
        if t.type == INCOME:
            income.append(t.amount)
        elif t.type == EXPENSE:
            expenses.append(t.amount)

    total_income = math.fsum(income)
    total_expenses = math.fsum(expenses)
    balance = total_income - total_expenses
    savings_rate = (balance / total_income) * 100 if total_income > 0 else 0.0

    return Summary(
        total_income=total_income,
        total_expenses=total_expenses,
        balance=balance,
        savings_rate=savings_rate,
    )


def recompute_budget_spending(
    transactions: Iterable[Transaction], budgets: Sequence[Budget]
) -> tuple[Budget, ...]:
    """Return ``budgets`` with ``spent`` rebuilt from the expense transactions.

    Any stored ``spent`` value is discarded. An expense counts toward the
    budget with the same category whose month equals the first seven
    characters of the transaction date. Expenses with no matching budget are
    skipped here (they still show up in ``compute_summary``). When two budgets
    share a (category, month) pair the first one in ``budgets`` is charged.
    """
    index: dict[tuple[str, str], int] = {}
    for i, b in enumerate(budgets):
        index.setdefault((b.category, b.month), i)

    amounts: dict[int, list[float]] = {}
    for t in transactions:
        if t.type != EXPENSE:
            continue
        i = index.get((t.category, month_key(t.date)))
        if i is not None:
            amounts.setdefault(i, []).append(t.amount)

    return tuple(
        replace(b, spent=math.fsum(amounts.get(i, ())))
        for i, b in enumerate(budgets)
    )


def category_totals(transactions: Iterable[Transaction], month: str) -> dict[str, float]:
    """Expense totals per category for one month.

    Every expense category is present, zero when nothing was spent, so chart
    legends stay stable from month to month. Expense transactions tagged with
    a category outside the expense partition are appended after them.
    """
    buckets: dict[str, list[float]] = {c: [] for c in EXPENSE_CATEGORIES}
    for t in transactions:
        if t.type == EXPENSE and t.date.startswith(month):
            buckets.setdefault(t.category, []).append(t.amount)
    return {c: math.fsum(v) for c, v in buckets.items()}


def category_percentages(totals: dict[str, float]) -> dict[str, float]:
    grand_total = math.fsum(totals.values())
    if grand_total <= 0:
        return {c: 0.0 for c in totals}
    return {c: v / grand_total * 100 for c, v in totals.items()}


def top_categories(totals: dict[str, float], k: Optional[int] = None) -> list[tuple[str, float]]:
    ordered = sorted(
        ((c, v) for c, v in totals.items() if v > 0),
        key=lambda item: item[1],
        reverse=True,
    )
    if k is None:
        return ordered
    return ordered[: max(0, k)]


def budget_usage_percentage(budget: Budget) -> int:
    """Share of the ceiling used, clamped to 100.

    Use ``is_over_budget`` to detect overspend; the percentage cannot show it.
    """
    if budget.amount <= 0:
        return 0
    return min(_round_half_up(budget.spent / budget.amount * 100), 100)


def is_over_budget(budget: Budget) -> bool:
    return budget.spent > budget.amount


def remaining_budget(budget: Budget) -> float:
    return budget.amount - budget.spent


def income_spent_percentage(summary: Summary) -> int:
    if summary.total_income <= 0:
        return 0
    return min(_round_half_up(summary.total_expenses / summary.total_income * 100), 100)


def transactions_for_month(
    transactions: Iterable[Transaction], month: str
) -> tuple[Transaction, ...]:
    return tuple(t for t in transactions if t.date.startswith(month))


def budgets_for_month(budgets: Iterable[Budget], month: str) -> tuple[Budget, ...]:
    return tuple(b for b in budgets if b.month == month)


def monthly_totals(
    transactions: Iterable[Transaction], months: Sequence[str]
) -> dict[str, dict[str, float]]:
    """Income and expense totals for each of ``months``; missing months are zero."""
    buckets: dict[str, dict[str, list[float]]] = {
        m: {INCOME: [], EXPENSE: []} for m in months
    }
    for t in transactions:
        month = buckets.get(month_key(t.date))
        if month is not None and t.type in month:
            month[t.type].append(t.amount)
    return {
        m: {"income": math.fsum(v[INCOME]), "expenses": math.fsum(v[EXPENSE])}
        for m, v in buckets.items()
    }
