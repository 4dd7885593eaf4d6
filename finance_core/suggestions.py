from collections import defaultdict
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List

from finance_core import config
from finance_core.aggregation import aggregate_history
from finance_core.domain import ExpenseRecord, MonthlyAggregation

WHOLE = Decimal("1")


def suggest_budgets(history: Iterable[MonthlyAggregation]) -> Dict[str, Decimal]:
    """Suggested category budgets from prior months of spending.

    The average only counts months in which a category had spending, then a
    flat buffer is added and the result is rounded half-up to a whole unit.
    """
    occurrences: Dict[str, List[Decimal]] = defaultdict(list)
    for month in history:
        for category, amount in month.category_totals.items():
            occurrences[category].append(amount)

    suggestions = {}
    for category, amounts in occurrences.items():
        average = sum(amounts, Decimal("0")) / len(amounts)
        suggestions[category] = (average * config.SUGGESTION_BUFFER).quantize(WHOLE, rounding=ROUND_HALF_UP)
    return suggestions


def suggest_from_expenses(
    expenses: Iterable[ExpenseRecord],
    year: int,
    month: int,
    months: int = config.SUGGESTION_HISTORY_MONTHS,
) -> Dict[str, Decimal]:
    return suggest_budgets(aggregate_history(expenses, year, month, months))
