"""Async service facades over an injected :class:`RecordStore`.

Every operation takes the caller's :class:`UserContext` explicitly; there is
no ambient session. Services hold no mutable state of their own, so each
call works from whatever snapshot the store returns. Read-modify-write
sequences (budget upsert, goal balance updates) are not atomic across
concurrent callers; goal balance and ledger entry are at least written in a
single ``put_many`` batch.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Mapping, NamedTuple, Optional, Tuple
from uuid import uuid4

from finance_core import budgets as budget_rules
from finance_core import categories as category_rules
from finance_core import config
from finance_core import goals as goal_rules
from finance_core import profiles as profile_rules
from finance_core import reports
from finance_core.aggregation import by_date_range, in_month
from finance_core.async_reports import budgets_for_last_months, monthly_history
from finance_core.domain import (
    BudgetAlert,
    BudgetAnalysis,
    BudgetDefinition,
    BudgetPatch,
    Category,
    CategoryPatch,
    ExpenseRecord,
    GoalAnalysis,
    GoalPatch,
    GoalStatus,
    GoalTransaction,
    PreferencesPatch,
    Priority,
    ProfilePatch,
    SavingsGoal,
    TransactionType,
    UserContext,
    UserProfile,
)
from finance_core.errors import InvalidInput, NotFound, Unauthenticated
from finance_core.functional import (
    Either,
    maybe,
    validate_amount,
    validate_budget,
    validate_date_range,
    validate_target_amount,
)
from finance_core.store import (
    ALERTS,
    BUDGETS,
    CATEGORIES,
    EXPENSES,
    GOAL_TRANSACTIONS,
    GOALS,
    PROFILES,
    RecordStore,
)
from finance_core.suggestions import suggest_budgets
from finance_core.transforms import (
    alert_from_record,
    alert_to_record,
    budget_from_record,
    budget_to_record,
    category_from_record,
    category_to_record,
    expense_from_record,
    expense_to_record,
    goal_from_record,
    goal_to_record,
    goal_transaction_from_record,
    goal_transaction_to_record,
    profile_from_record,
    profile_to_record,
)

logger = logging.getLogger(__name__)


def require_user(user: Optional[UserContext]) -> str:
    if user is None or not user.user_id:
        raise Unauthenticated()
    return user.user_id


def _ensure(result: Either):
    if result.is_left():
        raise InvalidInput.from_left(result.get_error())
    return result.get()


def _now(now: Optional[datetime]) -> datetime:
    return now if now is not None else datetime.now()


class ExpenseService:

    def __init__(self, store: RecordStore):
        self.store = store

    async def add_expense(
        self,
        user: UserContext,
        amount: Decimal,
        category: str,
        description: Optional[str] = None,
        date: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> ExpenseRecord:
        uid = require_user(user)
        _ensure(validate_amount(amount))
        now = _now(now)
        expense = ExpenseRecord(
            id=str(uuid4()),
            amount=amount,
            category=category,
            description=description,
            date=date or now,
            created_at=now,
        )
        await self.store.put(uid, EXPENSES, expense_to_record(expense))
        logger.info("Recorded expense %s of %s in %s", expense.id, amount, category or config.UNCATEGORIZED)
        return expense

    async def get_expenses(
        self,
        user: UserContext,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[ExpenseRecord]:
        uid = require_user(user)
        _ensure(validate_date_range(start, end))
        records = await self.store.query(uid, EXPENSES)
        expenses = filter(by_date_range(start, end), map(expense_from_record, records))
        return sorted(expenses, key=lambda e: e.date, reverse=True)

    async def get_expenses_for_month(self, user: UserContext, year: int, month: int) -> List[ExpenseRecord]:
        uid = require_user(user)
        records = await self.store.query(uid, EXPENSES)
        return [e for e in map(expense_from_record, records) if in_month(year, month)(e)]


class ProfileService:

    def __init__(self, store: RecordStore):
        self.store = store

    async def get_profile(self, user: UserContext) -> Optional[UserProfile]:
        uid = require_user(user)
        record = await self.store.get(uid, PROFILES, uid)
        return maybe(record).map(profile_from_record).get_or_else(None)

    async def create_profile(
        self,
        user: UserContext,
        name: str,
        email: str,
        monthly_income: Optional[Decimal] = None,
        now: Optional[datetime] = None,
    ) -> UserProfile:
        uid = require_user(user)
        profile = profile_rules.new_profile(uid, name, email, _now(now), monthly_income)
        await self.store.put(uid, PROFILES, profile_to_record(profile))
        return profile

    async def update_profile(
        self,
        user: UserContext,
        patch: ProfilePatch,
        preferences: Optional[PreferencesPatch] = None,
        now: Optional[datetime] = None,
    ) -> UserProfile:
        uid = require_user(user)
        current = await self.get_profile(user)
        if current is None:
            raise NotFound("profile", uid)
        updated = profile_rules.merge_profile(current, patch, _now(now), preferences)
        await self.store.put(uid, PROFILES, profile_to_record(updated))
        return updated

    async def currency_for(self, user: UserContext) -> str:
        profile = await self.get_profile(user)
        return maybe(profile).map(lambda p: p.currency).get_or_else(config.DEFAULT_CURRENCY)


class BudgetService:

    def __init__(
        self,
        store: RecordStore,
        expenses: Optional[ExpenseService] = None,
        profiles: Optional[ProfileService] = None,
    ):
        self.store = store
        self.expenses = expenses or ExpenseService(store)
        self.profiles = profiles or ProfileService(store)

    async def get_budget_for_month(self, user: UserContext, year: int, month: int) -> Optional[BudgetDefinition]:
        uid = require_user(user)
        records = await self.store.query(uid, BUDGETS, year=year, month=month)
        if not records:
            return None
        found = sorted(map(budget_from_record, records), key=lambda b: b.created_at)
        if len(found) > 1:
            logger.warning("Found %d budgets for %04d-%02d, using the oldest", len(found), year, month)
        return found[0]

    async def set_budget(
        self,
        user: UserContext,
        year: int,
        month: int,
        total_budget: Decimal,
        category_budgets: Mapping[str, Decimal],
        now: Optional[datetime] = None,
    ) -> str:
        uid = require_user(user)
        _ensure(validate_budget(total_budget, category_budgets, year, month))
        existing = await self.get_budget_for_month(user, year, month)
        budget = budget_rules.upsert_budget(existing, year, month, total_budget, category_budgets, _now(now))
        await self.store.put(uid, BUDGETS, budget_to_record(budget))
        logger.info(
            "%s budget %s for %04d-%02d", "Updated" if existing else "Created", budget.id, year, month
        )
        return budget.id

    async def update_budget(
        self, user: UserContext, budget_id: str, patch: BudgetPatch, now: Optional[datetime] = None
    ) -> BudgetDefinition:
        uid = require_user(user)
        record = await self.store.get(uid, BUDGETS, budget_id)
        if record is None:
            raise NotFound("budget", budget_id)
        current = budget_from_record(record)
        updated = budget_rules.merge_budget(current, patch, _now(now))
        _ensure(validate_budget(updated.total_budget, updated.category_budgets, updated.year, updated.month))
        await self.store.put(uid, BUDGETS, budget_to_record(updated))
        return updated

    async def analyze(self, user: UserContext, year: int, month: int) -> BudgetAnalysis:
        require_user(user)
        budget = await self.get_budget_for_month(user, year, month)
        if budget is None:
            raise NotFound("budget", f"{year:04d}-{month:02d}")
        expenses = await self.expenses.get_expenses_for_month(user, year, month)
        alerts = await self.get_alerts(user, budget.id)
        return budget_rules.analyze_budget(budget, expenses, alerts)

    async def check_alerts(
        self, user: UserContext, year: int, month: int, now: Optional[datetime] = None
    ) -> List[BudgetAlert]:
        """Record alerts for crossed thresholds and return the newly created ones.

        An alert already stored for the same budget, category and threshold
        is not created again.
        """
        uid = require_user(user)
        analysis = await self.analyze(user, year, month)
        currency = await self.profiles.currency_for(user)
        candidates = budget_rules.evaluate_alerts(analysis, _now(now), currency)
        fresh = budget_rules.dedupe_alerts(candidates, analysis.alerts)
        if fresh:
            await self.store.put_many(uid, [(ALERTS, alert_to_record(a)) for a in fresh])
        for alert in fresh:
            logger.info("Created %s alert for budget %s: %s", alert.type.value, alert.budget_id, alert.message)
        return fresh

    async def get_alerts(self, user: UserContext, budget_id: Optional[str] = None) -> List[BudgetAlert]:
        uid = require_user(user)
        filters = {"budget_id": budget_id} if budget_id else {}
        records = await self.store.query(uid, ALERTS, **filters)
        return sorted(map(alert_from_record, records), key=lambda a: a.created_at, reverse=True)

    async def mark_alert_read(self, user: UserContext, alert_id: str) -> BudgetAlert:
        uid = require_user(user)
        record = await self.store.get(uid, ALERTS, alert_id)
        if record is None:
            raise NotFound("alert", alert_id)
        alert = budget_rules.mark_read(alert_from_record(record))
        await self.store.put(uid, ALERTS, alert_to_record(alert))
        return alert

    async def suggest_budgets(self, user: UserContext, year: int, month: int) -> Dict[str, Decimal]:
        require_user(user)

        async def fetch(y: int, m: int) -> List[ExpenseRecord]:
            return await self.expenses.get_expenses_for_month(user, y, m)

        history = await monthly_history(fetch, year, month)
        return suggest_budgets(history)


class GoalService:

    def __init__(self, store: RecordStore):
        self.store = store

    async def create_goal(
        self,
        user: UserContext,
        title: str,
        target_amount: Decimal,
        target_date: datetime,
        category: str = "Other",
        priority: Priority = Priority.MEDIUM,
        description: Optional[str] = None,
        icon: Optional[str] = None,
        color: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> SavingsGoal:
        uid = require_user(user)
        goal = goal_rules.new_goal(
            title, target_amount, target_date, _now(now),
            category=category, priority=priority, description=description, icon=icon, color=color,
        )
        await self.store.put(uid, GOALS, goal_to_record(goal))
        logger.info("Created goal %s (%s) targeting %s", goal.id, goal.title, goal.target_amount)
        return goal

    async def get_goals(self, user: UserContext, status: Optional[GoalStatus] = None) -> List[SavingsGoal]:
        uid = require_user(user)
        filters = {"status": status.value} if status else {}
        records = await self.store.query(uid, GOALS, **filters)
        return sorted(map(goal_from_record, records), key=lambda g: g.created_at, reverse=True)

    async def get_goal(self, user: UserContext, goal_id: str) -> SavingsGoal:
        uid = require_user(user)
        record = await self.store.get(uid, GOALS, goal_id)
        if record is None:
            raise NotFound("goal", goal_id)
        return goal_from_record(record)

    async def update_goal(
        self, user: UserContext, goal_id: str, patch: GoalPatch, now: Optional[datetime] = None
    ) -> SavingsGoal:
        uid = require_user(user)
        goal = await self.get_goal(user, goal_id)
        if patch.target_amount is not None:
            _ensure(validate_target_amount(patch.target_amount))
        updated = goal_rules.merge_goal(goal, patch, _now(now))
        await self.store.put(uid, GOALS, goal_to_record(updated))
        return updated

    async def delete_goal(self, user: UserContext, goal_id: str) -> int:
        """Delete a goal and its ledger; returns how many transactions went with it."""
        uid = require_user(user)
        await self.get_goal(user, goal_id)
        removed = await self.store.delete_where(uid, GOAL_TRANSACTIONS, goal_id=goal_id)
        await self.store.delete(uid, GOALS, goal_id)
        logger.info("Deleted goal %s and %d transaction(s)", goal_id, removed)
        return removed

    async def _apply(
        self,
        user: UserContext,
        goal_id: str,
        kind: TransactionType,
        amount: Decimal,
        description: Optional[str],
        now: Optional[datetime],
    ) -> SavingsGoal:
        uid = require_user(user)
        goal = await self.get_goal(user, goal_id)
        updated, txn = goal_rules.apply_transaction(goal, kind, amount, _now(now), description)
        await self.store.put_many(
            uid,
            [(GOALS, goal_to_record(updated)), (GOAL_TRANSACTIONS, goal_transaction_to_record(txn))],
        )
        logger.debug("Applied %s of %s to goal %s", kind.value, amount, goal_id)
        return updated

    async def deposit(
        self,
        user: UserContext,
        goal_id: str,
        amount: Decimal,
        description: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> SavingsGoal:
        return await self._apply(user, goal_id, TransactionType.DEPOSIT, amount, description, now)

    async def withdraw(
        self,
        user: UserContext,
        goal_id: str,
        amount: Decimal,
        description: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> SavingsGoal:
        return await self._apply(user, goal_id, TransactionType.WITHDRAWAL, amount, description, now)

    async def get_goal_transactions(self, user: UserContext, goal_id: str) -> List[GoalTransaction]:
        uid = require_user(user)
        records = await self.store.query(uid, GOAL_TRANSACTIONS, goal_id=goal_id)
        return sorted(map(goal_transaction_from_record, records), key=lambda t: t.date, reverse=True)

    async def analyze_goals(self, user: UserContext, now: Optional[datetime] = None) -> GoalAnalysis:
        goals = await self.get_goals(user)
        return goal_rules.analyze_goals(goals, _now(now))


class CategoryService:

    def __init__(self, store: RecordStore):
        self.store = store

    async def get_categories(self, user: UserContext) -> Tuple[Category, ...]:
        uid = require_user(user)
        records = await self.store.query(uid, CATEGORIES)
        if not records:
            return category_rules.DEFAULT_CATEGORIES
        return tuple(sorted(map(category_from_record, records), key=lambda c: (not c.is_default, c.name)))

    async def get_category_by_name(self, user: UserContext, name: str) -> Optional[Category]:
        cats = await self.get_categories(user)
        return category_rules.find_by_name(cats, name).get_or_else(None)

    async def _persisted(self, uid: str) -> bool:
        return bool(await self.store.query(uid, CATEGORIES))

    async def add_category(
        self,
        user: UserContext,
        name: str,
        icon: Optional[str] = None,
        color: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Category:
        uid = require_user(user)
        cats = await self.get_categories(user)
        updated, created = category_rules.add_category(cats, name, icon, color, _now(now))
        # first write also materialises the defaults the user was seeing
        to_write = updated if not await self._persisted(uid) else (created,)
        await self.store.put_many(uid, [(CATEGORIES, category_to_record(c)) for c in to_write])
        return created

    async def update_category(
        self, user: UserContext, category_id: str, patch: CategoryPatch, now: Optional[datetime] = None
    ) -> Category:
        uid = require_user(user)
        cats = await self.get_categories(user)
        updated = category_rules.update_category(cats, category_id, patch, _now(now))
        changed = category_rules.find_by_id(updated, category_id).get_or_else(None)
        to_write = updated if not await self._persisted(uid) else (changed,)
        await self.store.put_many(uid, [(CATEGORIES, category_to_record(c)) for c in to_write])
        return changed

    async def delete_category(self, user: UserContext, category_id: str) -> None:
        uid = require_user(user)
        cats = await self.get_categories(user)
        category_rules.delete_category(cats, category_id)
        await self.store.delete(uid, CATEGORIES, category_id)

    async def reset_to_defaults(self, user: UserContext) -> Tuple[Category, ...]:
        uid = require_user(user)
        await self.store.delete_where(uid, CATEGORIES)
        return category_rules.DEFAULT_CATEGORIES


class ReportService:
    """Assembles report data from the other services."""

    def __init__(
        self,
        expenses: ExpenseService,
        budgets: BudgetService,
        goals: GoalService,
        categories: CategoryService,
        profiles: ProfileService,
    ):
        self.expenses = expenses
        self.budgets = budgets
        self.goals = goals
        self.categories = categories
        self.profiles = profiles

    async def expense_report(
        self,
        user: UserContext,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Dict[str, object]:
        expenses = await self.expenses.get_expenses(user, start, end)
        return {
            "currency": await self.profiles.currency_for(user),
            "start": start,
            "end": end,
            "summary": reports.expense_summary(expenses),
            "expenses": reports.expenses_frame(expenses),
        }

    async def budget_report(self, user: UserContext, year: int, month: int) -> Dict[str, object]:
        analysis = await self.budgets.analyze(user, year, month)
        report = reports.budget_summary(analysis)
        report["currency"] = await self.profiles.currency_for(user)
        return report

    async def goals_report(self, user: UserContext, now: Optional[datetime] = None):
        goals = await self.goals.get_goals(user)
        return reports.goals_frame(goals, _now(now))

    async def backup(self, user: UserContext, now: Optional[datetime] = None) -> Dict[str, object]:
        uid = require_user(user)
        now = _now(now)

        async def fetch_budget(y: int, m: int) -> Optional[BudgetDefinition]:
            return await self.budgets.get_budget_for_month(user, y, m)

        return reports.backup_snapshot(
            user_id=uid,
            exported_at=now,
            profile=await self.profiles.get_profile(user),
            expenses=await self.expenses.get_expenses(user),
            categories=await self.categories.get_categories(user),
            goals=await self.goals.get_goals(user),
            budgets=await budgets_for_last_months(fetch_budget, now),
        )


class FinanceServices(NamedTuple):
    expenses: ExpenseService
    budgets: BudgetService
    goals: GoalService
    categories: CategoryService
    profiles: ProfileService
    reports: ReportService


def build_services(store: RecordStore) -> FinanceServices:
    expenses = ExpenseService(store)
    profiles = ProfileService(store)
    budgets = BudgetService(store, expenses, profiles)
    goals = GoalService(store)
    categories = CategoryService(store)
    return FinanceServices(
        expenses=expenses,
        budgets=budgets,
        goals=goals,
        categories=categories,
        profiles=profiles,
        reports=ReportService(expenses, budgets, goals, categories, profiles),
    )
