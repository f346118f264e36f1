import json
from dataclasses import asdict, replace
from typing import Any, Mapping, Tuple, TypeVar, Union

from budget.domain import Budget, Transaction

R = TypeVar("R", Transaction, Budget)


def transaction_from_dict(d: Mapping[str, Any]) -> Transaction:
    return Transaction(
        id=str(d["id"]),
        amount=float(d["amount"]),
        description=str(d["description"]),
        date=str(d["date"]),
        category=str(d["category"]),
        type=str(d["type"]),
    )


def budget_from_dict(d: Mapping[str, Any]) -> Budget:
    # stored "spent" is ignored, it is always recomputed
    return Budget(
        id=str(d["id"]),
        category=str(d["category"]),
        amount=float(d["amount"]),
        month=str(d["month"]),
    )


def to_dict(record: Union[Transaction, Budget]) -> dict:
    return asdict(record)


def load_seed(path: str) -> Tuple[Tuple[Transaction, ...], Tuple[Budget, ...]]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    transactions = tuple(transaction_from_dict(t) for t in data.get("transactions", []))
    budgets = tuple(budget_from_dict(b) for b in data.get("budgets", []))

    return transactions, budgets


def add_record(records: Tuple[R, ...], r: R) -> Tuple[R, ...]:
    return records + (r,)


def replace_record(records: Tuple[R, ...], r: R) -> Tuple[R, ...]:
    return tuple(r if old.id == r.id else old for old in records)


def remove_record(records: Tuple[R, ...], rid: str) -> Tuple[R, ...]:
    return tuple(filter(lambda old: old.id != rid, records))


def upsert_budget(budgets: Tuple[Budget, ...], b: Budget) -> Tuple[Budget, ...]:
    """Add ``b``, or overwrite the budget already set for its category and month."""
    b = replace(b, spent=0.0)
    for i, old in enumerate(budgets):
        if (old.category, old.month) == (b.category, b.month):
            return budgets[:i] + (b,) + budgets[i + 1:]
    return budgets + (b,)


def replace_budget(budgets: Tuple[Budget, ...], b: Budget) -> Tuple[Budget, ...]:
    """Replace the budget with ``b.id``; another budget holding the same
    category and month is dropped so the pair stays unique."""
    b = replace(b, spent=0.0)
    if not any(old.id == b.id for old in budgets):
        return budgets
    return tuple(
        b if old.id == b.id else old
        for old in budgets
        if old.id == b.id or (old.category, old.month) != (b.category, b.month)
    )
