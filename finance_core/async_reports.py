import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable, Iterable, List, Optional, Tuple

from dateutil.relativedelta import relativedelta

from finance_core import config
from finance_core.aggregation import aggregate_month, previous_months
from finance_core.domain import BudgetDefinition, ExpenseRecord, MonthlyAggregation

logger = logging.getLogger(__name__)

FetchMonth = Callable[[int, int], Awaitable[Iterable[ExpenseRecord]]]
FetchBudget = Callable[[int, int], Awaitable[Optional[BudgetDefinition]]]


async def monthly_history(
    fetch_month: FetchMonth,
    year: int,
    month: int,
    months: int = config.SUGGESTION_HISTORY_MONTHS,
) -> Tuple[MonthlyAggregation, ...]:
    """Fetch and aggregate the months preceding (year, month) concurrently.

    Returns one aggregation per month, most recent first.
    """
    async def month_aggregate(y: int, m: int) -> MonthlyAggregation:
        expenses = await fetch_month(y, m)
        return aggregate_month(expenses, y, m)

    window = previous_months(year, month, months)
    logger.debug("Aggregating %d months before %04d-%02d", len(window), year, month)
    results = await asyncio.gather(*(month_aggregate(y, m) for y, m in window))
    return tuple(results)


async def budgets_for_last_months(
    fetch_budget: FetchBudget,
    now: datetime,
    months: int = config.BACKUP_MONTHS,
) -> List[BudgetDefinition]:
    """Budgets of the current month and the ``months - 1`` before it, most recent first."""
    anchor = datetime(now.year, now.month, 1)
    keys = []
    for i in range(months):
        d = anchor - relativedelta(months=i)
        keys.append((d.year, d.month))
    found = await asyncio.gather(*(fetch_budget(y, m) for y, m in keys))
    return [b for b in found if b is not None]
