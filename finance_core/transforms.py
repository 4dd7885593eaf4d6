import json
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from dateutil import parser as date_parser

from finance_core import config
from finance_core.domain import (
    AlertType,
    BudgetAlert,
    BudgetDefinition,
    Category,
    ExpenseRecord,
    GoalStatus,
    GoalTransaction,
    Preferences,
    Priority,
    SavingsGoal,
    TransactionType,
    UserProfile,
)

Record = Dict[str, Any]


def load_snapshot(path: str) -> Dict[str, Dict[str, List[Record]]]:
    """Read a JSON seed file shaped ``{user_id: {kind: [record, ...]}}``."""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if value is None or value == "":
        return Decimal("0")
    # str() keeps floats like 0.1 from dragging binary noise along
    return Decimal(str(value))


def to_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        dt = value
    else:
        dt = date_parser.isoparse(str(value))
    return dt.replace(tzinfo=None) if dt.tzinfo is not None else dt


def _opt_datetime(value: Any) -> Optional[datetime]:
    return to_datetime(value) if value else None


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def expense_from_record(r: Mapping[str, Any]) -> ExpenseRecord:
    date = to_datetime(r["date"])
    return ExpenseRecord(
        id=r["id"],
        amount=to_decimal(r.get("amount")),
        category=r.get("category") or "",
        description=r.get("description"),
        date=date,
        created_at=to_datetime(r["created_at"]) if r.get("created_at") else date,
    )


def expense_to_record(e: ExpenseRecord) -> Record:
    return {
        "id": e.id,
        "amount": str(e.amount),
        "category": e.category,
        "description": e.description,
        "date": _iso(e.date),
        "created_at": _iso(e.created_at),
    }


def budget_from_record(r: Mapping[str, Any]) -> BudgetDefinition:
    return BudgetDefinition(
        id=r["id"],
        total_budget=to_decimal(r.get("total_budget")),
        category_budgets={k: to_decimal(v) for k, v in (r.get("category_budgets") or {}).items()},
        month=int(r["month"]),
        year=int(r["year"]),
        created_at=to_datetime(r["created_at"]),
        updated_at=to_datetime(r.get("updated_at") or r["created_at"]),
    )


def budget_to_record(b: BudgetDefinition) -> Record:
    return {
        "id": b.id,
        "total_budget": str(b.total_budget),
        "category_budgets": {k: str(v) for k, v in b.category_budgets.items()},
        "month": b.month,
        "year": b.year,
        "created_at": _iso(b.created_at),
        "updated_at": _iso(b.updated_at),
    }


def alert_from_record(r: Mapping[str, Any]) -> BudgetAlert:
    return BudgetAlert(
        id=r["id"],
        budget_id=r["budget_id"],
        type=AlertType(r["type"]),
        category=r.get("category"),
        message=r.get("message", ""),
        threshold=int(r["threshold"]),
        current_spent=to_decimal(r.get("current_spent")),
        budget_amount=to_decimal(r.get("budget_amount")),
        created_at=to_datetime(r["created_at"]),
        is_read=bool(r.get("is_read", False)),
    )


def alert_to_record(a: BudgetAlert) -> Record:
    return {
        "id": a.id,
        "budget_id": a.budget_id,
        "type": a.type.value,
        "category": a.category,
        "message": a.message,
        "threshold": a.threshold,
        "current_spent": str(a.current_spent),
        "budget_amount": str(a.budget_amount),
        "created_at": _iso(a.created_at),
        "is_read": a.is_read,
    }


def goal_from_record(r: Mapping[str, Any]) -> SavingsGoal:
    return SavingsGoal(
        id=r["id"],
        title=r["title"],
        description=r.get("description"),
        target_amount=to_decimal(r.get("target_amount")),
        current_amount=to_decimal(r.get("current_amount")),
        target_date=to_datetime(r["target_date"]),
        category=r.get("category") or "Other",
        priority=Priority(r.get("priority", "medium")),
        status=GoalStatus(r.get("status", "active")),
        created_at=to_datetime(r["created_at"]),
        updated_at=to_datetime(r.get("updated_at") or r["created_at"]),
        completed_at=_opt_datetime(r.get("completed_at")),
        icon=r.get("icon"),
        color=r.get("color"),
    )


def goal_to_record(g: SavingsGoal) -> Record:
    return {
        "id": g.id,
        "title": g.title,
        "description": g.description,
        "target_amount": str(g.target_amount),
        "current_amount": str(g.current_amount),
        "target_date": _iso(g.target_date),
        "category": g.category,
        "priority": g.priority.value,
        "status": g.status.value,
        "created_at": _iso(g.created_at),
        "updated_at": _iso(g.updated_at),
        "completed_at": _iso(g.completed_at),
        "icon": g.icon,
        "color": g.color,
    }


def goal_transaction_from_record(r: Mapping[str, Any]) -> GoalTransaction:
    return GoalTransaction(
        id=r["id"],
        goal_id=r["goal_id"],
        amount=to_decimal(r.get("amount")),
        type=TransactionType(r["type"]),
        description=r.get("description"),
        date=to_datetime(r["date"]),
        created_at=to_datetime(r.get("created_at") or r["date"]),
    )


def goal_transaction_to_record(t: GoalTransaction) -> Record:
    return {
        "id": t.id,
        "goal_id": t.goal_id,
        "amount": str(t.amount),
        "type": t.type.value,
        "description": t.description,
        "date": _iso(t.date),
        "created_at": _iso(t.created_at),
    }


def category_from_record(r: Mapping[str, Any]) -> Category:
    return Category(
        id=r["id"],
        name=r["name"],
        icon=r.get("icon", "ellipsis-horizontal"),
        color=r.get("color", "#95A5A6"),
        is_default=bool(r.get("is_default", False)),
        created_at=_opt_datetime(r.get("created_at")),
        updated_at=_opt_datetime(r.get("updated_at")),
    )


def category_to_record(c: Category) -> Record:
    return {
        "id": c.id,
        "name": c.name,
        "icon": c.icon,
        "color": c.color,
        "is_default": c.is_default,
        "created_at": _iso(c.created_at),
        "updated_at": _iso(c.updated_at),
    }


def profile_from_record(r: Mapping[str, Any]) -> UserProfile:
    prefs = r.get("preferences") or {}
    return UserProfile(
        uid=r.get("uid") or r["id"],
        name=r.get("name", ""),
        email=r.get("email", ""),
        currency=r.get("currency") or config.DEFAULT_CURRENCY,
        monthly_income=to_decimal(r.get("monthly_income")),
        monthly_budget=to_decimal(r.get("monthly_budget")),
        created_at=to_datetime(r["created_at"]),
        updated_at=to_datetime(r.get("updated_at") or r["created_at"]),
        preferences=Preferences(**prefs),
    )


def profile_to_record(p: UserProfile) -> Record:
    return {
        "id": p.uid,
        "uid": p.uid,
        "name": p.name,
        "email": p.email,
        "currency": p.currency,
        "monthly_income": str(p.monthly_income),
        "monthly_budget": str(p.monthly_budget),
        "created_at": _iso(p.created_at),
        "updated_at": _iso(p.updated_at),
        "preferences": {
            "notifications": p.preferences.notifications,
            "theme": p.preferences.theme,
            "language": p.preferences.language,
        },
    }
