import itertools
import random

import pytest

from budget.aggregation import (
    budget_usage_percentage,
    budgets_for_month,
    category_percentages,
    category_totals,
    compute_summary,
    income_spent_percentage,
    is_over_budget,
    month_key,
    monthly_totals,
    recompute_budget_spending,
    remaining_budget,
    top_categories,
    transactions_for_month,
)
from budget.domain import EXPENSE_CATEGORIES, Budget, Summary, Transaction


def make_tx(id, amount, kind, category, date, description="test"):
    return Transaction(id=id, amount=amount, description=description, date=date, category=category, type=kind)


def make_budget(id, category, amount, month, spent=0.0):
    return Budget(id=id, category=category, amount=amount, month=month, spent=spent)


def sample():
    return (
        make_tx("t1", 1000, "income", "salary", "2024-01-05"),
        make_tx("t2", 300, "expense", "food", "2024-01-10"),
    )


def test_summary_example():
    s = compute_summary(sample())
    assert s.total_income == 1000
    assert s.total_expenses == 300
    assert s.balance == 700
    assert s.savings_rate == pytest.approx(70)


def test_summary_empty():
    assert compute_summary(()) == Summary(0, 0, 0, 0)


def test_savings_rate_zero_without_income():
    trans = (make_tx("t1", 450, "expense", "food", "2024-01-10"),)
    s = compute_summary(trans)
    assert s.savings_rate == 0
    assert s.balance == -450


def test_savings_rate_can_be_negative():
    trans = (
        make_tx("t1", 100, "income", "salary", "2024-01-01"),
        make_tx("t2", 300, "expense", "food", "2024-01-02"),
    )
    assert compute_summary(trans).savings_rate == pytest.approx(-200)


def test_balance_is_exact_difference():
    rng = random.Random(7)
    trans = tuple(
        make_tx(str(i), round(rng.uniform(0.01, 500), 2), rng.choice(["income", "expense"]), "other", "2024-03-01")
        for i in range(200)
    )
    s = compute_summary(trans)
    assert s.total_income >= 0
    assert s.total_expenses >= 0
    assert s.balance == s.total_income - s.total_expenses


def test_summary_independent_of_order():
    amounts = [0.1, 0.2, 0.3, 1e16, 7.7, 3.3]
    trans = [make_tx(str(i), a, "expense", "food", "2024-01-01") for i, a in enumerate(amounts)]
    results = {compute_summary(p).total_expenses for p in itertools.permutations(trans)}
    assert len(results) == 1


def test_recompute_example():
    budgets = (make_budget("b1", "food", 500, "2024-01"),)
    (b,) = recompute_budget_spending(sample(), budgets)
    assert b.spent == 300
    assert budget_usage_percentage(b) == 60


def test_recompute_ignores_stored_spent_and_other_months():
    budgets = (make_budget("b1", "food", 500, "2024-02", spent=999),)
    (b,) = recompute_budget_spending(sample(), budgets)
    assert b.spent == 0


def test_recompute_ignores_income_and_unbudgeted_expenses():
    trans = sample() + (
        make_tx("t3", 50, "income", "food", "2024-01-11"),
        make_tx("t4", 80, "expense", "housing", "2024-01-12"),
    )
    budgets = (make_budget("b1", "food", 500, "2024-01"),)
    (b,) = recompute_budget_spending(trans, budgets)
    assert b.spent == 300


def test_recompute_is_idempotent():
    budgets = (make_budget("b1", "food", 500, "2024-01"), make_budget("b2", "housing", 100, "2024-01"))
    once = recompute_budget_spending(sample(), budgets)
    twice = recompute_budget_spending(sample(), once)
    assert [b.spent for b in once] == [b.spent for b in twice]


def test_recompute_order_independent():
    trans = [make_tx(str(i), a, "expense", "food", "2024-01-0%d" % (i + 1)) for i, a in enumerate([0.1, 0.2, 0.3, 0.7])]
    budgets = (make_budget("b1", "food", 5, "2024-01"),)
    spent = {recompute_budget_spending(p, budgets)[0].spent for p in itertools.permutations(trans)}
    assert len(spent) == 1


def test_recompute_charges_first_duplicate():
    budgets = (make_budget("b1", "food", 500, "2024-01"), make_budget("b2", "food", 900, "2024-01"))
    first, second = recompute_budget_spending(sample(), budgets)
    assert first.spent == 300
    assert second.spent == 0


def test_budget_spent_never_exceeds_month_expenses():
    trans = sample() + (
        make_tx("t3", 120, "expense", "housing", "2024-01-15"),
        make_tx("t4", 75, "expense", "gifts", "2024-01-20"),
    )
    budgets = (make_budget("b1", "food", 500, "2024-01"), make_budget("b2", "housing", 100, "2024-01"))
    spent = sum(b.spent for b in recompute_budget_spending(trans, budgets))
    month_expenses = compute_summary(transactions_for_month(trans, "2024-01")).total_expenses
    assert spent <= month_expenses


def test_recompute_empty():
    assert recompute_budget_spending((), ()) == ()


def test_usage_clamped_at_100():
    b = make_budget("b1", "food", 100, "2024-01", spent=5000)
    assert budget_usage_percentage(b) == 100
    assert is_over_budget(b)
    assert remaining_budget(b) == -4900


def test_usage_zero_amount():
    assert budget_usage_percentage(make_budget("b1", "food", 0, "2024-01", spent=10)) == 0


def test_usage_rounds_half_up():
    assert budget_usage_percentage(make_budget("b1", "food", 8, "2024-01", spent=1)) == 13


def test_not_over_budget_at_limit():
    b = make_budget("b1", "food", 100, "2024-01", spent=100)
    assert not is_over_budget(b)
    assert budget_usage_percentage(b) == 100


def test_category_totals_includes_every_expense_category():
    totals = category_totals(sample(), "2024-01")
    assert list(totals)[: len(EXPENSE_CATEGORIES)] == list(EXPENSE_CATEGORIES)
    assert totals["food"] == 300
    assert totals["housing"] == 0
    assert "salary" not in totals


def test_category_totals_filters_month_and_type():
    trans = sample() + (make_tx("t3", 40, "expense", "food", "2024-02-01"),)
    assert category_totals(trans, "2024-02")["food"] == 40


def test_category_totals_keeps_foreign_categories():
    trans = (make_tx("t1", 25, "expense", "salary", "2024-01-03"),)
    assert category_totals(trans, "2024-01")["salary"] == 25


def test_category_totals_empty():
    totals = category_totals((), "2024-01")
    assert set(totals) == set(EXPENSE_CATEGORIES)
    assert all(v == 0 for v in totals.values())
    assert all(p == 0 for p in category_percentages(totals).values())


def test_category_percentages_sum_to_100():
    trans = sample() + (
        make_tx("t3", 123.45, "expense", "housing", "2024-01-15"),
        make_tx("t4", 0.55, "expense", "gifts", "2024-01-20"),
    )
    pct = category_percentages(category_totals(trans, "2024-01"))
    assert sum(pct.values()) == pytest.approx(100)
    assert pct["education"] == 0


def test_top_categories_drops_zero_and_sorts():
    totals = {"food": 10.0, "housing": 50.0, "gifts": 0.0}
    assert top_categories(totals) == [("housing", 50.0), ("food", 10.0)]
    assert top_categories(totals, k=1) == [("housing", 50.0)]


def test_income_spent_percentage():
    assert income_spent_percentage(compute_summary(sample())) == 30
    assert income_spent_percentage(Summary(0, 300, -300, 0)) == 0
    assert income_spent_percentage(Summary(100, 300, -200, -200)) == 100


def test_month_helpers():
    budgets = (make_budget("b1", "food", 1, "2024-01"), make_budget("b2", "food", 1, "2024-02"))
    assert [b.id for b in budgets_for_month(budgets, "2024-02")] == ["b2"]
    assert len(transactions_for_month(sample(), "2024-01")) == 2
    assert month_key("2024-01-31") == "2024-01"


def test_monthly_totals_fills_missing_months():
    res = monthly_totals(sample(), ["2023-12", "2024-01"])
    assert res["2023-12"] == {"income": 0, "expenses": 0}
    assert res["2024-01"] == {"income": 1000, "expenses": 300}
