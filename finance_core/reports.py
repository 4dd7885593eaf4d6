"""Report data for the external renderer.

Nothing here writes files: the renderer turns these dicts and DataFrames
into PDF/CSV/JSON. Money columns in frames are floats rounded to cents.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional, Sequence

import pandas as pd

from finance_core import config
from finance_core.aggregation import category_of, category_totals, top_categories, total_spent
from finance_core.domain import (
    BudgetAnalysis,
    BudgetDefinition,
    Category,
    ExpenseRecord,
    SavingsGoal,
    UserProfile,
)
from finance_core.goals import is_on_track, progress, required_monthly_savings
from finance_core.transforms import (
    budget_to_record,
    category_to_record,
    expense_to_record,
    goal_to_record,
    profile_to_record,
)

EXPENSE_COLUMNS = ["Date", "Category", "Amount", "Description", "Created At"]
BUDGET_COLUMNS = ["Category", "Budgeted", "Spent", "Remaining", "Percent Used", "Status"]
GOAL_COLUMNS = [
    "Title", "Category", "Priority", "Status", "Target", "Saved",
    "Progress", "Required/mo", "On Track", "Target Date",
]


def _money(value: Decimal) -> float:
    return round(float(value), 2)


def expense_summary(expenses: Iterable[ExpenseRecord]) -> Dict[str, Any]:
    """Totals for an expense report: sum, count, mean per expense, categories by spend."""
    records = tuple(expenses)
    total = total_spent(records)
    count = len(records)
    totals = category_totals(records)
    return {
        "total": total,
        "count": count,
        "average": total / count if count else Decimal("0"),
        "categories": list(top_categories(totals, len(totals))),
    }


def expenses_frame(expenses: Iterable[ExpenseRecord]) -> pd.DataFrame:
    rows = [
        {
            "Date": e.date.date(),
            "Category": category_of(e),
            "Amount": _money(e.amount),
            "Description": e.description or "",
            "Created At": e.created_at,
        }
        for e in expenses
    ]
    return pd.DataFrame(rows, columns=EXPENSE_COLUMNS)


def budget_frame(analysis: BudgetAnalysis) -> pd.DataFrame:
    rows = [
        {
            "Category": category,
            "Budgeted": _money(data.budgeted),
            "Spent": _money(data.spent),
            "Remaining": _money(data.remaining),
            "Percent Used": round(float(data.percentage_used), 1),
            "Status": data.status.value,
        }
        for category, data in analysis.category_analysis.items()
    ]
    return pd.DataFrame(rows, columns=BUDGET_COLUMNS)


def budget_summary(analysis: BudgetAnalysis) -> Dict[str, Any]:
    return {
        "year": analysis.year,
        "month": analysis.month,
        "total_budget": analysis.total_budget,
        "total_spent": analysis.total_spent,
        "remaining": analysis.remaining_budget,
        "percentage_used": analysis.percentage_used,
        "categories": budget_frame(analysis),
    }


def goals_frame(goals: Iterable[SavingsGoal], now: datetime) -> pd.DataFrame:
    rows = [
        {
            "Title": g.title,
            "Category": g.category,
            "Priority": g.priority.value,
            "Status": g.status.value,
            "Target": _money(g.target_amount),
            "Saved": _money(g.current_amount),
            "Progress": round(float(progress(g)), 1),
            "Required/mo": _money(required_monthly_savings(g, now)),
            "On Track": is_on_track(g, now),
            "Target Date": g.target_date.date(),
        }
        for g in goals
    ]
    return pd.DataFrame(rows, columns=GOAL_COLUMNS)


def backup_snapshot(
    user_id: str,
    exported_at: datetime,
    profile: Optional[UserProfile],
    expenses: Sequence[ExpenseRecord],
    categories: Sequence[Category],
    goals: Sequence[SavingsGoal],
    budgets: Sequence[BudgetDefinition],
) -> Dict[str, Any]:
    return {
        "exported_at": exported_at.isoformat(),
        "user_id": user_id,
        "user_profile": profile_to_record(profile) if profile is not None else None,
        "expenses": [expense_to_record(e) for e in expenses],
        "categories": [category_to_record(c) for c in categories],
        "goals": [goal_to_record(g) for g in goals],
        "budgets": [budget_to_record(b) for b in budgets],
        "version": config.BACKUP_VERSION,
    }
