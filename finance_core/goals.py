"""Savings goal tracking.

Pure computations over :class:`SavingsGoal` records: progress, pacing,
required contributions, the deposit/withdrawal state machine and the
portfolio-level analysis with its recommendation rules.

Goal lifecycle::

    active --(deposit reaches target)--> completed
    completed --(withdrawal drops below target)--> active

``paused`` and ``cancelled`` are only entered through an explicit
:class:`GoalPatch`; the transaction path never leaves or enters them.
"""

import logging
import math
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from decimal import Decimal
from functools import reduce
from typing import Callable, Dict, Iterable, NamedTuple, Optional, Sequence, Tuple
from uuid import uuid4

from finance_core import config
from finance_core.domain import (
    GoalAnalysis,
    GoalPatch,
    GoalStatus,
    GoalTransaction,
    Priority,
    SavingsGoal,
    TransactionType,
)
from finance_core.errors import InsufficientFunds, InvalidInput
from finance_core.functional import validate_amount, validate_new_goal

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")
ONE_DAY = timedelta(days=1)

GOAL_CATEGORIES = (
    "Emergency Fund",
    "Vacation",
    "Car",
    "House Down Payment",
    "Education",
    "Wedding",
    "Retirement",
    "Investment",
    "Electronics",
    "Health",
    "Other",
)

GOAL_ICONS = (
    "shield-checkmark",
    "airplane",
    "car-sport",
    "home",
    "school",
    "heart",
    "trending-up",
    "wallet",
    "phone-portrait",
    "medical",
    "ellipsis-horizontal",
)

GOAL_COLORS = (
    "#FF6B6B", "#4ECDC4", "#45B7D1", "#96CEB4", "#FFEAA7",
    "#DDA0DD", "#95A5A6", "#E17055", "#74B9FF", "#A29BFE",
    "#FD79A8", "#FDCB6E", "#6C5CE7", "#E84393", "#00B894",
)


def default_icon(category: str) -> str:
    """Icon paired with a catalogue category; unknown categories get the "other" icon."""
    if category in GOAL_CATEGORIES:
        return GOAL_ICONS[GOAL_CATEGORIES.index(category)]
    return GOAL_ICONS[-1]


def default_color(category: str) -> str:
    index = GOAL_CATEGORIES.index(category) if category in GOAL_CATEGORIES else len(GOAL_CATEGORIES) - 1
    return GOAL_COLORS[index % len(GOAL_COLORS)]


def progress(goal: SavingsGoal) -> Decimal:
    """Percent of the target saved, clamped to [0, 100]."""
    if goal.target_amount <= 0:
        return ZERO
    pct = goal.current_amount / goal.target_amount * HUNDRED
    return max(ZERO, min(HUNDRED, pct))


def required_monthly_savings(goal: SavingsGoal, now: datetime) -> Decimal:
    """Amount to save per month to hit the target on time.

    Overdue goals use a one month horizon, so the whole remainder is due.
    """
    months_remaining = max(1, math.ceil((goal.target_date - now) / timedelta(days=config.DAYS_PER_MONTH)))
    remaining = goal.target_amount - goal.current_amount
    return max(ZERO, remaining / Decimal(months_remaining))


def is_on_track(goal: SavingsGoal, now: datetime) -> bool:
    total_days = (goal.target_date - goal.created_at) / ONE_DAY
    actual = progress(goal)
    if total_days <= 0:
        # no time window to pace against
        return actual > 0
    days_passed = (now - goal.created_at) / ONE_DAY
    expected = min(HUNDRED, Decimal(days_passed) / Decimal(total_days) * HUNDRED)
    return actual >= expected * config.ON_TRACK_TOLERANCE


def is_overdue(goal: SavingsGoal, now: datetime) -> bool:
    return goal.target_date < now


def new_goal(
    title: str,
    target_amount: Decimal,
    target_date: datetime,
    now: datetime,
    category: str = "Other",
    priority: Priority = Priority.MEDIUM,
    description: Optional[str] = None,
    icon: Optional[str] = None,
    color: Optional[str] = None,
    goal_id: Optional[str] = None,
) -> SavingsGoal:
    checked = validate_new_goal(title, target_amount, target_date, now)
    if checked.is_left():
        raise InvalidInput.from_left(checked.get_error())
    return SavingsGoal(
        id=goal_id or str(uuid4()),
        title=checked.get(),
        description=description,
        target_amount=target_amount,
        current_amount=ZERO,
        target_date=target_date,
        category=category,
        priority=priority,
        status=GoalStatus.ACTIVE,
        created_at=now,
        updated_at=now,
        icon=icon or default_icon(category),
        color=color or default_color(category),
    )


def apply_transaction(
    goal: SavingsGoal,
    kind: TransactionType,
    amount: Decimal,
    now: datetime,
    description: Optional[str] = None,
    txn_id: Optional[str] = None,
) -> Tuple[SavingsGoal, GoalTransaction]:
    """Apply a deposit or withdrawal, returning the updated goal and its ledger entry.

    Raises InvalidInput for non-positive amounts and InsufficientFunds when a
    withdrawal exceeds the saved amount; the input goal is never modified.
    """
    checked = validate_amount(amount)
    if checked.is_left():
        raise InvalidInput.from_left(checked.get_error())

    changes: Dict[str, object] = {"updated_at": now}
    if kind is TransactionType.DEPOSIT:
        current = goal.current_amount + amount
        if current >= goal.target_amount and goal.status is GoalStatus.ACTIVE:
            changes.update(status=GoalStatus.COMPLETED, completed_at=now)
            logger.info("Goal %s reached its target", goal.id)
    else:
        if goal.current_amount < amount:
            logger.warning(
                "Rejected withdrawal of %s from goal %s holding %s", amount, goal.id, goal.current_amount
            )
            raise InsufficientFunds(goal.id, goal.current_amount, amount)
        current = goal.current_amount - amount
        if current < goal.target_amount and goal.status is GoalStatus.COMPLETED:
            changes.update(status=GoalStatus.ACTIVE, completed_at=None)
            logger.info("Goal %s dropped below its target and is active again", goal.id)
    changes["current_amount"] = current

    txn = GoalTransaction(
        id=txn_id or str(uuid4()),
        goal_id=goal.id,
        amount=amount,
        type=kind,
        description=description,
        date=now,
        created_at=now,
    )
    return replace(goal, **changes), txn


def balance_from_transactions(transactions: Iterable[GoalTransaction]) -> Decimal:
    return reduce(
        lambda acc, t: acc + t.amount if t.type is TransactionType.DEPOSIT else acc - t.amount,
        transactions,
        ZERO,
    )


def merge_goal(goal: SavingsGoal, patch: GoalPatch, now: datetime) -> SavingsGoal:
    changes = {
        name: value
        for name, value in vars(patch).items()
        if value is not None
    }
    changes["updated_at"] = now
    status = changes.get("status")
    if status is GoalStatus.COMPLETED and goal.completed_at is None:
        changes["completed_at"] = now
    elif status is not None and status is not GoalStatus.COMPLETED:
        changes["completed_at"] = None
    return replace(goal, **changes)


@dataclass(frozen=True)
class PortfolioSnapshot:
    goals: Tuple[SavingsGoal, ...]
    active: Tuple[SavingsGoal, ...]
    completed: Tuple[SavingsGoal, ...]
    now: datetime

    @classmethod
    def of(cls, goals: Iterable[SavingsGoal], now: datetime) -> "PortfolioSnapshot":
        goals = tuple(goals)
        return cls(
            goals=goals,
            active=tuple(g for g in goals if g.status is GoalStatus.ACTIVE),
            completed=tuple(g for g in goals if g.status is GoalStatus.COMPLETED),
            now=now,
        )

    def overdue(self) -> Tuple[SavingsGoal, ...]:
        return tuple(g for g in self.active if is_overdue(g, self.now))


class Rule(NamedTuple):
    name: str
    applies: Callable[[PortfolioSnapshot], bool]
    message: Callable[[PortfolioSnapshot], str]


def _low_progress(s: PortfolioSnapshot) -> bool:
    return any(progress(g) < config.LOW_PROGRESS_RATIO * HUNDRED for g in s.active)


RECOMMENDATION_RULES: Sequence[Rule] = (
    Rule(
        "first_goal",
        lambda s: not s.goals,
        lambda s: "Start by setting your first savings goal to begin your financial journey!",
    ),
    Rule(
        "overdue",
        lambda s: bool(s.overdue()),
        lambda s: (
            f"You have {len(s.overdue())} overdue goal(s). "
            "Consider extending deadlines or increasing contributions."
        ),
    ),
    Rule(
        "low_progress",
        _low_progress,
        lambda s: "Some goals have low progress. Consider setting up automatic transfers to stay on track.",
    ),
    Rule(
        "high_priority",
        lambda s: any(g.priority is Priority.HIGH for g in s.active),
        lambda s: "Focus on your high-priority goals first to maximize your financial impact.",
    ),
    Rule(
        "completed",
        lambda s: bool(s.completed),
        lambda s: (
            f"Congratulations on completing {len(s.completed)} goal(s)! "
            "Consider setting new challenging goals."
        ),
    ),
    Rule(
        "too_many_active",
        lambda s: len(s.active) > config.MAX_ACTIVE_GOALS,
        lambda s: "You have many active goals. Consider consolidating or prioritizing to improve focus.",
    ),
)


def recommendations(
    snapshot: PortfolioSnapshot, rules: Sequence[Rule] = RECOMMENDATION_RULES
) -> Tuple[str, ...]:
    return tuple(rule.message(snapshot) for rule in rules if rule.applies(snapshot))


def upcoming_deadlines(snapshot: PortfolioSnapshot) -> Tuple[SavingsGoal, ...]:
    horizon = snapshot.now + timedelta(days=config.DEADLINE_WINDOW_DAYS)
    due = (g for g in snapshot.active if g.target_date <= horizon)
    return tuple(sorted(due, key=lambda g: g.target_date))


def analyze_goals(goals: Iterable[SavingsGoal], now: datetime) -> GoalAnalysis:
    snapshot = PortfolioSnapshot.of(goals, now)
    all_goals = snapshot.goals
    average = (
        sum((progress(g) for g in all_goals), ZERO) / len(all_goals) if all_goals else ZERO
    )
    return GoalAnalysis(
        total_goals=len(all_goals),
        active_goals=len(snapshot.active),
        completed_goals=len(snapshot.completed),
        total_target_amount=sum((g.target_amount for g in all_goals), ZERO),
        total_saved_amount=sum((g.current_amount for g in all_goals), ZERO),
        average_progress=average,
        upcoming_deadlines=upcoming_deadlines(snapshot),
        recommendations=recommendations(snapshot),
    )
