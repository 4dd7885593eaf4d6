from datetime import datetime
from decimal import Decimal

from finance_core.domain import ExpenseRecord, MonthlyAggregation
from finance_core.suggestions import suggest_budgets, suggest_from_expenses


def make_expense(id, amount, category, date):
    return ExpenseRecord(id=id, amount=Decimal(amount), category=category, date=date, created_at=date)


def make_month(year, month, totals):
    return MonthlyAggregation(
        year=year,
        month=month,
        expenses=(),
        total_spent=sum((Decimal(v) for v in totals.values()), Decimal("0")),
        category_totals={k: Decimal(v) for k, v in totals.items()},
    )


def test_average_of_two_months_plus_buffer():
    expenses = [
        make_expense("e1", "100", "Food", datetime(2025, 1, 10)),
        make_expense("e2", "200", "Food", datetime(2025, 2, 10)),
    ]
    assert suggest_from_expenses(expenses, 2025, 3, months=3) == {"Food": Decimal("180")}


def test_average_counts_only_months_with_spending():
    history = [
        make_month(2025, 2, {"Food": "100", "Gym": "50"}),
        make_month(2025, 1, {"Food": "200"}),
        make_month(2024, 12, {}),
    ]
    assert suggest_budgets(history) == {"Food": Decimal("180"), "Gym": Decimal("60")}


def test_rounds_half_up_to_whole_units():
    # 3.75 * 1.2 == 4.5
    assert suggest_budgets([make_month(2025, 1, {"Food": "3.75"})]) == {"Food": Decimal("5")}


def test_window_excludes_target_month_and_older_months():
    expenses = [
        make_expense("cur", "999", "Food", datetime(2025, 4, 2)),
        make_expense("old", "999", "Rent", datetime(2024, 12, 31)),
        make_expense("in", "50", "Food", datetime(2025, 1, 1)),
    ]
    assert suggest_from_expenses(expenses, 2025, 4, months=3) == {"Food": Decimal("60")}


def test_no_history_means_no_suggestions():
    assert suggest_budgets([]) == {}
    assert suggest_from_expenses([], 2025, 4) == {}
