from datetime import datetime
from decimal import Decimal

import pytest

from finance_core.budgets import (
    alert_key,
    analyze_budget,
    dedupe_alerts,
    evaluate_alerts,
    merge_budget,
    spending_status,
    upsert_budget,
)
from finance_core.domain import (
    AlertType,
    BudgetAlert,
    BudgetDefinition,
    BudgetPatch,
    ExpenseRecord,
    SpendingStatus,
)
from finance_core.errors import NotFound

NOW = datetime(2025, 3, 20, 9, 0)


def make_budget(total="1000", categories=None, year=2025, month=3, id="b1"):
    cats = {"Food": "300"} if categories is None else categories
    return BudgetDefinition(
        id=id,
        total_budget=Decimal(total),
        category_budgets={k: Decimal(v) for k, v in cats.items()},
        month=month,
        year=year,
        created_at=datetime(2025, 3, 1),
        updated_at=datetime(2025, 3, 1),
    )


def make_expense(id, amount, category, date=datetime(2025, 3, 10)):
    return ExpenseRecord(
        id=id, amount=Decimal(amount), category=category, date=date, created_at=date
    )


def make_alert(category=None, threshold=80, budget_id="b1"):
    return BudgetAlert(
        id="a-" + str(category) + str(threshold),
        budget_id=budget_id,
        type=AlertType.WARNING if threshold == 80 else AlertType.EXCEEDED,
        category=category,
        message="",
        threshold=threshold,
        current_spent=Decimal("0"),
        budget_amount=Decimal("0"),
        created_at=NOW,
    )


def test_analyze_example_month():
    budget = make_budget()
    expenses = [make_expense("e1", "250", "Food"), make_expense("e2", "100", "Travel")]

    analysis = analyze_budget(budget, expenses)

    assert analysis.total_spent == 350
    assert analysis.percentage_used == 35
    assert analysis.remaining_budget == 650
    food = analysis.category_analysis["Food"]
    assert food.budgeted == 300
    assert food.spent == 250
    assert food.remaining == 50
    assert round(food.percentage_used, 2) == Decimal("83.33")
    assert food.status is SpendingStatus.WARNING


def test_unbudgeted_categories_are_not_broken_down():
    analysis = analyze_budget(make_budget(), [make_expense("e2", "100", "Travel")])
    assert set(analysis.category_analysis) == {"Food"}
    assert analysis.total_spent == 100


def test_empty_expenses_with_positive_budget():
    analysis = analyze_budget(make_budget(), [])
    assert analysis.percentage_used == 0
    assert analysis.remaining_budget == analysis.total_budget
    food = analysis.category_analysis["Food"]
    assert food.spent == 0
    assert food.remaining == 300
    assert food.status is SpendingStatus.SAFE


def test_zero_budget_does_not_divide_by_zero():
    analysis = analyze_budget(make_budget(total="0", categories={"Food": "0"}), [make_expense("e1", "5", "Food")])
    assert analysis.percentage_used == 0
    assert analysis.category_analysis["Food"].percentage_used == 0
    assert analysis.remaining_budget == -5


def test_missing_budget_is_not_found():
    with pytest.raises(NotFound):
        analyze_budget(None, [])


def test_analyze_is_idempotent():
    budget = make_budget()
    expenses = [make_expense("e1", "250", "Food")]
    assert analyze_budget(budget, expenses) == analyze_budget(budget, expenses)


def test_expenses_outside_budget_month_are_ignored():
    expenses = [
        make_expense("e1", "250", "Food"),
        make_expense("e2", "500", "Food", date=datetime(2025, 4, 1)),
    ]
    analysis = analyze_budget(make_budget(), expenses)
    assert analysis.total_spent == 250


def test_only_this_budgets_alerts_are_attached():
    alerts = [make_alert(budget_id="b1"), make_alert(budget_id="other")]
    analysis = analyze_budget(make_budget(), [], alerts)
    assert [a.budget_id for a in analysis.alerts] == ["b1"]


def test_spending_status_boundaries():
    assert spending_status(Decimal("79.99")) is SpendingStatus.SAFE
    assert spending_status(Decimal("80")) is SpendingStatus.WARNING
    assert spending_status(Decimal("99.9")) is SpendingStatus.WARNING
    assert spending_status(Decimal("100")) is SpendingStatus.EXCEEDED


def test_evaluate_alerts_total_warning_and_category_exceeded():
    budget = make_budget()
    expenses = [make_expense("e1", "330", "Food"), make_expense("e2", "520", "Rent")]
    analysis = analyze_budget(budget, expenses)

    alerts = evaluate_alerts(analysis, NOW, currency="$")

    assert len(alerts) == 2
    total, food = alerts
    assert total.category is None
    assert total.type is AlertType.WARNING
    assert total.threshold == 80
    assert total.message == "You have used 85.0% of your monthly budget"
    assert food.category == "Food"
    assert food.type is AlertType.EXCEEDED
    assert food.threshold == 100
    assert food.message == "You have exceeded your Food budget by $30.00"
    assert food.current_spent == 330
    assert food.budget_amount == 300
    assert all(not a.is_read and a.created_at == NOW for a in alerts)


def test_evaluate_alerts_total_exceeded_and_category_warning():
    analysis = analyze_budget(
        make_budget(total="100", categories={"Food": "100"}),
        [make_expense("e1", "80", "Food"), make_expense("e2", "40.5", "Fun")],
    )
    alerts = evaluate_alerts(analysis, NOW, currency="₹")
    assert alerts[0].message == "You have exceeded your monthly budget by ₹20.50"
    assert alerts[1].message == "You have used 80.0% of your Food budget"


def test_alert_messages_round_ties_up():
    analysis = analyze_budget(
        make_budget(total="400", categories={"Food": "100"}),
        [make_expense("e1", "100.125", "Food"), make_expense("e2", "220.875", "Rent")],
    )
    total, food = evaluate_alerts(analysis, NOW, currency="$")
    assert total.message == "You have used 80.3% of your monthly budget"
    assert food.message == "You have exceeded your Food budget by $0.13"


def test_no_alerts_below_warning_threshold():
    analysis = analyze_budget(make_budget(), [make_expense("e1", "100", "Food")])
    assert evaluate_alerts(analysis, NOW) == []


def test_dedupe_drops_alerts_already_recorded():
    existing = [make_alert(category=None, threshold=80)]
    candidates = [make_alert(category=None, threshold=80), make_alert(category="Food", threshold=100)]
    fresh = dedupe_alerts(candidates, existing)
    assert [alert_key(a) for a in fresh] == [("b1", "Food", 100)]


def test_dedupe_keeps_warning_when_only_exceeded_exists():
    fresh = dedupe_alerts([make_alert("Food", 80)], [make_alert("Food", 100)])
    assert len(fresh) == 1


def test_upsert_updates_existing_budget_in_place():
    existing = make_budget()
    later = datetime(2025, 3, 25)
    updated = upsert_budget(existing, 2025, 3, Decimal("1500"), {"Food": Decimal("400")}, later)
    assert updated.id == existing.id
    assert updated.total_budget == 1500
    assert updated.category_budgets == {"Food": Decimal("400")}
    assert updated.created_at == existing.created_at
    assert updated.updated_at == later


def test_upsert_creates_when_missing():
    created = upsert_budget(None, 2025, 5, Decimal("800"), {}, NOW)
    assert created.year == 2025 and created.month == 5
    assert created.created_at == created.updated_at == NOW
    assert created.id


def test_merge_budget_leaves_unset_fields():
    budget = make_budget()
    merged = merge_budget(budget, BudgetPatch(total_budget=Decimal("1200")), NOW)
    assert merged.total_budget == 1200
    assert merged.category_budgets == budget.category_budgets
    assert budget.total_budget == 1000
