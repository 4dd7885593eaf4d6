"""Budget analysis and threshold alerts.

``analyze_budget`` turns one month's budget definition and expense records
into a :class:`BudgetAnalysis`. ``evaluate_alerts`` derives the warning and
exceeded alerts for an analysis; ``dedupe_alerts`` filters out alerts that
were already recorded for the same budget, category and threshold.
"""

import logging
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Tuple
from uuid import uuid4

from finance_core import config
from finance_core.aggregation import aggregate_month
from finance_core.domain import (
    AlertType,
    BudgetAlert,
    BudgetAnalysis,
    BudgetDefinition,
    BudgetPatch,
    CategoryAnalysis,
    ExpenseRecord,
    SpendingStatus,
)
from finance_core.errors import NotFound
from finance_core.formatting import format_money, format_percent

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")

AlertKey = Tuple[str, Optional[str], int]


def _new_id() -> str:
    return str(uuid4())


def percentage_of(spent: Decimal, budgeted: Decimal) -> Decimal:
    if budgeted <= 0:
        return ZERO
    return spent / budgeted * HUNDRED


def spending_status(percentage: Decimal) -> SpendingStatus:
    if percentage >= config.EXCEEDED_THRESHOLD:
        return SpendingStatus.EXCEEDED
    if percentage >= config.WARNING_THRESHOLD:
        return SpendingStatus.WARNING
    return SpendingStatus.SAFE


def analyze_category(budgeted: Decimal, spent: Decimal) -> CategoryAnalysis:
    pct = percentage_of(spent, budgeted)
    return CategoryAnalysis(
        budgeted=budgeted,
        spent=spent,
        remaining=budgeted - spent,
        percentage_used=pct,
        status=spending_status(pct),
    )


def analyze_budget(
    budget: Optional[BudgetDefinition],
    expenses: Iterable[ExpenseRecord],
    alerts: Iterable[BudgetAlert] = (),
) -> BudgetAnalysis:
    """Compare a month's spending against its budget.

    Only categories listed in the budget are broken down; spending in
    unbudgeted categories still counts toward the total.
    """
    if budget is None:
        raise NotFound("budget", "requested month")

    agg = aggregate_month(expenses, budget.year, budget.month)
    categories = {
        name: analyze_category(budgeted, agg.category_totals.get(name, ZERO))
        for name, budgeted in budget.category_budgets.items()
    }
    analysis = BudgetAnalysis(
        budget_id=budget.id,
        year=budget.year,
        month=budget.month,
        total_budget=budget.total_budget,
        total_spent=agg.total_spent,
        remaining_budget=budget.total_budget - agg.total_spent,
        percentage_used=percentage_of(agg.total_spent, budget.total_budget),
        category_analysis=categories,
        alerts=tuple(a for a in alerts if a.budget_id == budget.id),
    )
    logger.debug(
        "Analyzed budget %s for %04d-%02d: spent %s of %s",
        budget.id, budget.year, budget.month, analysis.total_spent, analysis.total_budget,
    )
    return analysis


def _alert_for(
    budget_id: str,
    category: Optional[str],
    percentage: Decimal,
    spent: Decimal,
    budgeted: Decimal,
    remaining: Decimal,
    now: datetime,
    currency: str,
    new_id: Callable[[], str],
) -> Optional[BudgetAlert]:
    scope = "monthly" if category is None else category
    if percentage >= config.EXCEEDED_THRESHOLD:
        alert_type = AlertType.EXCEEDED
        threshold = config.EXCEEDED_THRESHOLD
        message = f"You have exceeded your {scope} budget by {format_money(abs(remaining), currency)}"
    elif percentage >= config.WARNING_THRESHOLD:
        alert_type = AlertType.WARNING
        threshold = config.WARNING_THRESHOLD
        message = f"You have used {format_percent(percentage)}% of your {scope} budget"
    else:
        return None
    return BudgetAlert(
        id=new_id(),
        budget_id=budget_id,
        type=alert_type,
        category=category,
        message=message,
        threshold=threshold,
        current_spent=spent,
        budget_amount=budgeted,
        created_at=now,
        is_read=False,
    )


def evaluate_alerts(
    analysis: BudgetAnalysis,
    now: datetime,
    currency: str = config.DEFAULT_CURRENCY,
    new_id: Callable[[], str] = _new_id,
) -> List[BudgetAlert]:
    """At most one alert for the total budget and one per analysed category."""
    candidates = [
        _alert_for(
            analysis.budget_id, None, analysis.percentage_used, analysis.total_spent,
            analysis.total_budget, analysis.remaining_budget, now, currency, new_id,
        )
    ]
    for category, data in analysis.category_analysis.items():
        candidates.append(
            _alert_for(
                analysis.budget_id, category, data.percentage_used, data.spent,
                data.budgeted, data.remaining, now, currency, new_id,
            )
        )
    return [a for a in candidates if a is not None]


def alert_key(alert: BudgetAlert) -> AlertKey:
    # a budget id already pins the (user, year, month) period
    return alert.budget_id, alert.category, alert.threshold


def dedupe_alerts(
    candidates: Iterable[BudgetAlert], existing: Iterable[BudgetAlert]
) -> List[BudgetAlert]:
    seen = {alert_key(a) for a in existing}
    fresh = []
    for alert in candidates:
        key = alert_key(alert)
        if key in seen:
            continue
        seen.add(key)
        fresh.append(alert)
    return fresh


def mark_read(alert: BudgetAlert) -> BudgetAlert:
    return replace(alert, is_read=True)


def new_budget(
    year: int,
    month: int,
    total_budget: Decimal,
    category_budgets: Mapping[str, Decimal],
    now: datetime,
    budget_id: Optional[str] = None,
) -> BudgetDefinition:
    return BudgetDefinition(
        id=budget_id or _new_id(),
        total_budget=total_budget,
        category_budgets=dict(category_budgets),
        month=month,
        year=year,
        created_at=now,
        updated_at=now,
    )


def merge_budget(budget: BudgetDefinition, patch: BudgetPatch, now: datetime) -> BudgetDefinition:
    changes: Dict[str, object] = {"updated_at": now}
    if patch.total_budget is not None:
        changes["total_budget"] = patch.total_budget
    if patch.category_budgets is not None:
        changes["category_budgets"] = dict(patch.category_budgets)
    return replace(budget, **changes)


def upsert_budget(
    existing: Optional[BudgetDefinition],
    year: int,
    month: int,
    total_budget: Decimal,
    category_budgets: Mapping[str, Decimal],
    now: datetime,
) -> BudgetDefinition:
    """Update the month's budget if there is one, otherwise create it."""
    if existing is not None:
        return merge_budget(
            existing, BudgetPatch(total_budget=total_budget, category_budgets=category_budgets), now
        )
    return new_budget(year, month, total_budget, category_budgets, now)
