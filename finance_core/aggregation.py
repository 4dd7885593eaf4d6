from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from functools import reduce
from typing import Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from dateutil.relativedelta import relativedelta

from finance_core import config
from finance_core.domain import ExpenseRecord, MonthlyAggregation

ZERO = Decimal("0")


def in_month(year: int, month: int) -> Callable[[ExpenseRecord], bool]:
    def _filter(e: ExpenseRecord) -> bool:
        return e.date.year == year and e.date.month == month

    return _filter


def by_date_range(
    start: Optional[datetime], end: Optional[datetime]
) -> Callable[[ExpenseRecord], bool]:
    """Inclusive on both ends; a missing bound is open."""

    def _filter(e: ExpenseRecord) -> bool:
        if start is not None and e.date < start:
            return False
        if end is not None and e.date > end:
            return False
        return True

    return _filter


def category_of(e: ExpenseRecord) -> str:
    return e.category or config.UNCATEGORIZED


def total_spent(expenses: Iterable[ExpenseRecord]) -> Decimal:
    return reduce(lambda acc, e: acc + e.amount, expenses, ZERO)


def category_totals(expenses: Iterable[ExpenseRecord]) -> Dict[str, Decimal]:
    totals: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    for e in expenses:
        totals[category_of(e)] += e.amount
    return dict(totals)


def aggregate_month(
    expenses: Iterable[ExpenseRecord], year: int, month: int
) -> MonthlyAggregation:
    window = tuple(filter(in_month(year, month), expenses))
    return MonthlyAggregation(
        year=year,
        month=month,
        expenses=window,
        total_spent=total_spent(window),
        category_totals=category_totals(window),
    )


def previous_months(year: int, month: int, count: int) -> List[Tuple[int, int]]:
    """The ``count`` calendar months before (year, month), most recent first."""
    anchor = datetime(year, month, 1)
    months = []
    for i in range(1, count + 1):
        d = anchor - relativedelta(months=i)
        months.append((d.year, d.month))
    return months


def aggregate_history(
    expenses: Iterable[ExpenseRecord],
    year: int,
    month: int,
    months: int = config.SUGGESTION_HISTORY_MONTHS,
) -> Tuple[MonthlyAggregation, ...]:
    records = tuple(expenses)
    return tuple(aggregate_month(records, y, m) for y, m in previous_months(year, month, months))


def top_categories(totals: Mapping[str, Decimal], k: int) -> Iterator[Tuple[str, Decimal]]:
    ordered = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    for name, total in ordered[: max(0, k)]:
        yield name, total
