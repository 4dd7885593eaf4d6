"""Record store boundary.

The core talks to persistence only through :class:`RecordStore`: an async
document store keyed by user id and entity kind that returns raw records
(plain dicts with an ``"id"`` key). Conversions to domain types live in
:mod:`finance_core.transforms`.
"""

import asyncio
import copy
import logging
from collections import defaultdict
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

from finance_core.transforms import load_snapshot

logger = logging.getLogger(__name__)

EXPENSES = "expenses"
BUDGETS = "budgets"
ALERTS = "budget_alerts"
GOALS = "savings_goals"
GOAL_TRANSACTIONS = "goal_transactions"
CATEGORIES = "categories"
PROFILES = "profiles"

Record = Dict[str, Any]


class RecordStore(Protocol):

    async def get(self, user_id: str, kind: str, record_id: str) -> Optional[Record]:
        ...

    async def query(self, user_id: str, kind: str, **equals: Any) -> List[Record]:
        ...

    async def put(self, user_id: str, kind: str, record: Record) -> str:
        ...

    async def put_many(self, user_id: str, writes: Sequence[Tuple[str, Record]]) -> None:
        """Write several records as one atomic unit."""
        ...

    async def delete(self, user_id: str, kind: str, record_id: str) -> bool:
        ...

    async def delete_where(self, user_id: str, kind: str, **equals: Any) -> int:
        ...


class InMemoryRecordStore:
    """Dict-backed store for tests and local use.

    Records are deep-copied on the way in and out so callers never share
    state with the store.
    """

    def __init__(self, seed: Optional[Dict[str, Dict[str, List[Record]]]] = None):
        self._data: Dict[str, Dict[str, Dict[str, Record]]] = defaultdict(lambda: defaultdict(dict))
        for user_id, kinds in (seed or {}).items():
            for kind, records in kinds.items():
                for record in records:
                    self._data[user_id][kind][record["id"]] = copy.deepcopy(record)

    @classmethod
    def from_snapshot(cls, path: str) -> "InMemoryRecordStore":
        return cls(load_snapshot(path))

    def _bucket(self, user_id: str, kind: str) -> Dict[str, Record]:
        # plain .get so lookups never create empty buckets
        return self._data.get(user_id, {}).get(kind, {})

    async def get(self, user_id: str, kind: str, record_id: str) -> Optional[Record]:
        await asyncio.sleep(0)
        record = self._bucket(user_id, kind).get(record_id)
        return copy.deepcopy(record) if record is not None else None

    async def query(self, user_id: str, kind: str, **equals: Any) -> List[Record]:
        await asyncio.sleep(0)
        return [
            copy.deepcopy(r)
            for r in self._bucket(user_id, kind).values()
            if all(r.get(k) == v for k, v in equals.items())
        ]

    async def put(self, user_id: str, kind: str, record: Record) -> str:
        await asyncio.sleep(0)
        self._data[user_id][kind][record["id"]] = copy.deepcopy(record)
        logger.debug("Stored %s/%s/%s", user_id, kind, record["id"])
        return record["id"]

    async def put_many(self, user_id: str, writes: Sequence[Tuple[str, Record]]) -> None:
        await asyncio.sleep(0)
        staged = [(kind, copy.deepcopy(record)) for kind, record in writes]
        # no await between staging and applying: the batch lands as one unit
        for kind, record in staged:
            self._data[user_id][kind][record["id"]] = record
        logger.debug("Stored %d records for %s in one batch", len(staged), user_id)

    async def delete(self, user_id: str, kind: str, record_id: str) -> bool:
        await asyncio.sleep(0)
        return self._bucket(user_id, kind).pop(record_id, None) is not None

    async def delete_where(self, user_id: str, kind: str, **equals: Any) -> int:
        await asyncio.sleep(0)
        bucket = self._bucket(user_id, kind)
        doomed = [rid for rid, r in bucket.items() if all(r.get(k) == v for k, v in equals.items())]
        for rid in doomed:
            del bucket[rid]
        return len(doomed)
