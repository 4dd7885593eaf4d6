from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Mapping, Optional, Tuple


class AlertType(str, Enum):
    WARNING = "warning"
    EXCEEDED = "exceeded"


class SpendingStatus(str, Enum):
    SAFE = "safe"
    WARNING = "warning"
    EXCEEDED = "exceeded"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class GoalStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    PAUSED = "paused"
    CANCELLED = "cancelled"


class TransactionType(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"


@dataclass(frozen=True)
class UserContext:
    user_id: str  # opaque tenant key from the identity provider


@dataclass(frozen=True)
class ExpenseRecord:
    id: str
    amount: Decimal
    category: str
    date: datetime
    created_at: datetime
    description: Optional[str] = None


@dataclass(frozen=True)
class BudgetDefinition:
    id: str
    total_budget: Decimal
    category_budgets: Mapping[str, Decimal]
    month: int  # 1-12
    year: int
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class BudgetAlert:
    id: str
    budget_id: str
    type: AlertType
    category: Optional[str]  # None -> total budget
    message: str
    threshold: int
    current_spent: Decimal
    budget_amount: Decimal
    created_at: datetime
    is_read: bool = False


@dataclass(frozen=True)
class SavingsGoal:
    id: str
    title: str
    target_amount: Decimal
    current_amount: Decimal
    target_date: datetime
    category: str
    priority: Priority
    status: GoalStatus
    created_at: datetime
    updated_at: datetime
    description: Optional[str] = None
    completed_at: Optional[datetime] = None
    icon: Optional[str] = None
    color: Optional[str] = None


@dataclass(frozen=True)
class GoalTransaction:
    id: str
    goal_id: str
    amount: Decimal
    type: TransactionType
    date: datetime
    created_at: datetime
    description: Optional[str] = None


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    icon: str
    color: str
    is_default: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class Preferences:
    notifications: bool = True
    theme: str = "light"
    language: str = "en"


@dataclass(frozen=True)
class UserProfile:
    uid: str
    name: str
    email: str
    currency: str
    monthly_income: Decimal
    monthly_budget: Decimal
    created_at: datetime
    updated_at: datetime
    preferences: Preferences = field(default_factory=Preferences)


# Derived values, never persisted

@dataclass(frozen=True)
class CategoryAnalysis:
    budgeted: Decimal
    spent: Decimal
    remaining: Decimal
    percentage_used: Decimal
    status: SpendingStatus


@dataclass(frozen=True)
class BudgetAnalysis:
    budget_id: str
    year: int
    month: int
    total_budget: Decimal
    total_spent: Decimal
    remaining_budget: Decimal
    percentage_used: Decimal
    category_analysis: Mapping[str, CategoryAnalysis]
    alerts: Tuple[BudgetAlert, ...] = ()


@dataclass(frozen=True)
class MonthlyAggregation:
    year: int
    month: int
    expenses: Tuple[ExpenseRecord, ...]
    total_spent: Decimal
    category_totals: Mapping[str, Decimal]


@dataclass(frozen=True)
class GoalAnalysis:
    total_goals: int
    active_goals: int
    completed_goals: int
    total_target_amount: Decimal
    total_saved_amount: Decimal
    average_progress: Decimal
    upcoming_deadlines: Tuple[SavingsGoal, ...]
    recommendations: Tuple[str, ...]


# Partial updates: None means "leave unchanged"

@dataclass(frozen=True)
class BudgetPatch:
    total_budget: Optional[Decimal] = None
    category_budgets: Optional[Mapping[str, Decimal]] = None


@dataclass(frozen=True)
class GoalPatch:
    title: Optional[str] = None
    description: Optional[str] = None
    target_amount: Optional[Decimal] = None
    target_date: Optional[datetime] = None
    category: Optional[str] = None
    priority: Optional[Priority] = None
    status: Optional[GoalStatus] = None
    icon: Optional[str] = None
    color: Optional[str] = None


@dataclass(frozen=True)
class CategoryPatch:
    name: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None


@dataclass(frozen=True)
class PreferencesPatch:
    notifications: Optional[bool] = None
    theme: Optional[str] = None
    language: Optional[str] = None


@dataclass(frozen=True)
class ProfilePatch:
    name: Optional[str] = None
    currency: Optional[str] = None
    monthly_income: Optional[Decimal] = None
    monthly_budget: Optional[Decimal] = None
