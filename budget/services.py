import logging
import math
from collections import Counter
from typing import Callable, Iterable, Dict, Any, Optional, Sequence

from budget import aggregation
from budget.domain import CATEGORIES_BY_TYPE, Budget, Transaction
from budget.events import (
    BUDGET_ALERT,
    BUDGETS_CHANGED,
    TRANSACTIONS_CHANGED,
    EventBus,
    budget_alert_handler,
)
from budget.functional import check_budget

logger = logging.getLogger(__name__)


class BudgetService:
    """Facade for monthly budget reports built from injected validators and calculators.

    validators: sequence of functions taking (month, transactions, budgets) -> Sequence[str]
    calculators: sequence of functions taking (month, transactions, budgets, acc) -> dict (partial results)
    """

    def __init__(self, validators: Sequence[Callable[..., Sequence[str]]], calculators: Sequence[Callable[..., Dict[str, Any]]]):
        self.validators = validators
        self.calculators = calculators

    def monthly_report(self, month: str, transactions: Iterable, budgets: Iterable) -> Dict[str, Any]:
        """Run validators and calculators and return an aggregated report with intermediate steps."""
        transactions = tuple(transactions)
        budgets = tuple(budgets)
        report = {
            "month": month,
            "validation": [],
            "steps": [],
            "result": {}
        }

        for v in self.validators:
            try:
                msgs = v(month, transactions, budgets)
            except Exception as e:
                logger.exception("Validator %s failed", getattr(v, "__name__", v))
                msgs = [f"validator_error: {e}"]
            report["validation"].append({"validator": getattr(v, "__name__", str(v)), "messages": list(msgs)})

        # calculators run in order; each sees what the earlier ones produced
        acc = {}
        for calc in self.calculators:
            out = calc(month, transactions, budgets, acc)
            report["steps"].append({"calculator": getattr(calc, "__name__", str(calc)), "output": out})
            if isinstance(out, dict):
                acc.update(out)

        report["result"] = acc
        return report


class ReportService:
    """Facade for per-category reports using injected aggregators."""

    def __init__(self, aggregators: Sequence[Callable[..., Dict[str, Any]]]):
        self.aggregators = aggregators

    def category_report(self, category: str, transactions: Iterable) -> Dict[str, Any]:
        transactions = tuple(transactions)
        report = {"category": category, "steps": [], "result": {}}
        acc = {}
        for agg in self.aggregators:
            out = agg(category, transactions, acc)
            report["steps"].append({"aggregator": getattr(agg, "__name__", str(agg)), "output": out})
            if isinstance(out, dict):
                acc.update(out)
        report["result"] = acc
        return report


def validator_duplicate_budgets(month, transactions, budgets):
    counts = Counter(b.category for b in budgets if b.month == month)
    return [f"duplicate budget for {c} in {month}" for c, n in counts.items() if n > 1]


def validator_category_types(month, transactions, budgets):
    return [
        f"transaction {t.id} uses {t.category} as an {t.type} category"
        for t in aggregation.transactions_for_month(transactions, month)
        if t.category not in CATEGORIES_BY_TYPE.get(t.type, ())
    ]


def calc_month_summary(month, transactions, budgets, acc):
    summary = aggregation.compute_summary(aggregation.transactions_for_month(transactions, month))
    return {"summary": summary}


def calc_budget_progress(month, transactions, budgets, acc):
    current = aggregation.recompute_budget_spending(
        transactions, aggregation.budgets_for_month(budgets, month)
    )
    return {
        "budgets": [
            {
                "budget": b,
                "usage": aggregation.budget_usage_percentage(b),
                "remaining": aggregation.remaining_budget(b),
                "over_budget": aggregation.is_over_budget(b),
            }
            for b in current
        ]
    }


def calc_category_breakdown(month, transactions, budgets, acc):
    totals = aggregation.category_totals(transactions, month)
    return {
        "category_totals": totals,
        "category_percentages": aggregation.category_percentages(totals),
    }


def agg_category_history(category, transactions, acc):
    amounts: Dict[str, list[float]] = {}
    for t in transactions:
        if t.category == category and t.type == "expense":
            amounts.setdefault(aggregation.month_key(t.date), []).append(t.amount)
    return {"history": {m: math.fsum(v) for m, v in sorted(amounts.items())}}


def agg_category_total(category, transactions, acc):
    history = acc.get("history", {})
    total = math.fsum(history.values())
    return {"total": total, "months": len(history), "average": total / len(history) if history else 0.0}


def default_budget_service() -> BudgetService:
    return BudgetService(
        validators=[validator_duplicate_budgets, validator_category_types],
        calculators=[calc_month_summary, calc_budget_progress, calc_category_breakdown],
    )


def default_report_service() -> ReportService:
    return ReportService(aggregators=[agg_category_history, agg_category_total])


class BudgetTracker:
    """Owns one session's collections and keeps the derived views current.

    Every mutation is written through the record store, then a change event
    triggers a full recomputation of budget spending and the summary.
    """

    def __init__(self, store, bus: Optional[EventBus] = None):
        self.store = store
        self.bus = bus or EventBus()
        self.alerts: list[dict] = []
        self.bus.subscribe(TRANSACTIONS_CHANGED, self._on_change)
        self.bus.subscribe(BUDGETS_CHANGED, self._on_change)
        self.bus.subscribe(BUDGET_ALERT, budget_alert_handler)

        self.transactions: tuple[Transaction, ...] = store.list_transactions()
        self.budgets: tuple[Budget, ...] = store.list_budgets()
        self.recompute()

    @property
    def session(self):
        return self.store.session

    def recompute(self) -> None:
        self.budgets = aggregation.recompute_budget_spending(self.transactions, self.budgets)
        self.summary = aggregation.compute_summary(self.transactions)
        self.alerts = []
        for b in self.budgets:
            result = check_budget(b)
            if result.is_left():
                responses = self.bus.publish(BUDGET_ALERT, result.get_error())
                self.alerts.extend(r for r in responses if r and "alert" in r)

    def _on_change(self, event, payload: dict) -> dict:
        if "transactions" in payload:
            self.transactions = payload["transactions"]
        if "budgets" in payload:
            self.budgets = payload["budgets"]
        self.recompute()
        return {"alerts": len(self.alerts)}

    def _transactions_changed(self, transactions) -> None:
        self.bus.publish(TRANSACTIONS_CHANGED, {"transactions": transactions})

    def _budgets_changed(self, budgets) -> None:
        self.bus.publish(BUDGETS_CHANGED, {"budgets": budgets})

    def add_transaction(self, t: Transaction) -> None:
        self._transactions_changed(self.store.add_transaction(t))

    def update_transaction(self, t: Transaction) -> None:
        self._transactions_changed(self.store.update_transaction(t))

    def delete_transaction(self, tid: str) -> None:
        self._transactions_changed(self.store.delete_transaction(tid))

    def add_budget(self, b: Budget) -> None:
        self._budgets_changed(self.store.add_budget(b))

    def update_budget(self, b: Budget) -> None:
        self._budgets_changed(self.store.update_budget(b))

    def delete_budget(self, bid: str) -> None:
        self._budgets_changed(self.store.delete_budget(bid))

    def reload(self) -> None:
        """Re-read both collections from the store."""
        self.transactions = self.store.list_transactions()
        self._budgets_changed(self.store.list_budgets())

    def transactions_for_month(self, month: str) -> tuple[Transaction, ...]:
        return aggregation.transactions_for_month(self.transactions, month)

    def budgets_for_month(self, month: str) -> tuple[Budget, ...]:
        return aggregation.budgets_for_month(self.budgets, month)

    def category_totals(self, month: str) -> dict[str, float]:
        return aggregation.category_totals(self.transactions, month)

    def monthly_report(self, month: str, service: Optional[BudgetService] = None) -> Dict[str, Any]:
        service = service or default_budget_service()
        return service.monthly_report(month, self.transactions, self.budgets)
