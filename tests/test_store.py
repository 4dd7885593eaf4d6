import os
from datetime import datetime
from decimal import Decimal

import pytest

from finance_core import store
from finance_core.store import InMemoryRecordStore
from finance_core.transforms import (
    budget_from_record,
    expense_from_record,
    goal_from_record,
    goal_to_record,
    profile_from_record,
    to_datetime,
    to_decimal,
)

SEED = os.path.join(os.path.dirname(__file__), "data", "seed.json")


def test_to_decimal_avoids_float_noise():
    assert to_decimal(0.1) == Decimal("0.1")
    assert to_decimal("12.50") == Decimal("12.50")
    assert to_decimal(None) == 0
    assert to_decimal(7) == 7


def test_to_datetime_drops_timezone():
    dt = to_datetime("2025-03-05T10:00:00+05:30")
    assert dt == datetime(2025, 3, 5, 10, 0)
    assert dt.tzinfo is None
    assert to_datetime("2025-02-20") == datetime(2025, 2, 20)


def test_goal_record_keeps_decimal_and_enum_values():
    record = {
        "id": "g1",
        "title": "Trip",
        "target_amount": "1000",
        "current_amount": "250.25",
        "target_date": "2025-12-31T00:00:00",
        "priority": "high",
        "status": "completed",
        "created_at": "2025-01-01T00:00:00",
        "completed_at": "2025-06-01T00:00:00",
    }
    goal = goal_from_record(record)
    assert goal.current_amount == Decimal("250.25")
    assert goal.priority.value == "high"
    assert goal.completed_at == datetime(2025, 6, 1)
    assert goal.category == "Other"
    assert goal_to_record(goal)["current_amount"] == "250.25"


def test_profile_without_currency_uses_default():
    profile = profile_from_record({"id": "u1", "name": "A", "email": "a@x", "created_at": "2025-01-01"})
    assert profile.uid == "u1"
    assert profile.currency == "₹"
    assert profile.preferences.theme == "light"


@pytest.mark.asyncio
async def test_snapshot_seed_is_scoped_per_user():
    s = InMemoryRecordStore.from_snapshot(SEED)
    alice = [expense_from_record(r) for r in await s.query("alice", store.EXPENSES)]
    bob = await s.query("bob", store.EXPENSES)
    assert {e.id for e in alice} == {"e1", "e2", "e3"}
    assert [r["id"] for r in bob] == ["x1"]
    assert await s.query("carol", store.EXPENSES) == []

    by_id = {e.id: e for e in alice}
    assert by_id["e1"].date == datetime(2025, 3, 5, 10, 0)
    assert by_id["e2"].created_at == by_id["e2"].date
    assert by_id["e3"].amount == Decimal("0.1")

    budget = budget_from_record((await s.query("alice", store.BUDGETS, year=2025, month=3))[0])
    assert budget.category_budgets == {"Food": Decimal("300")}


@pytest.mark.asyncio
async def test_records_are_copied_in_and_out():
    s = InMemoryRecordStore()
    record = {"id": "r1", "nested": {"v": 1}}
    await s.put("u", "things", record)
    record["nested"]["v"] = 2
    fetched = await s.get("u", "things", "r1")
    assert fetched["nested"]["v"] == 1
    fetched["nested"]["v"] = 3
    assert (await s.get("u", "things", "r1"))["nested"]["v"] == 1


@pytest.mark.asyncio
async def test_put_many_delete_and_delete_where():
    s = InMemoryRecordStore()
    await s.put_many("u", [
        ("goals", {"id": "g1"}),
        ("txns", {"id": "t1", "goal_id": "g1"}),
        ("txns", {"id": "t2", "goal_id": "g1"}),
        ("txns", {"id": "t3", "goal_id": "g2"}),
    ])
    assert await s.delete_where("u", "txns", goal_id="g1") == 2
    assert [r["id"] for r in await s.query("u", "txns")] == ["t3"]
    assert await s.delete("u", "goals", "g1") is True
    assert await s.delete("u", "goals", "g1") is False
    assert await s.get("u", "goals", "g1") is None


@pytest.mark.asyncio
async def test_lookups_for_unknown_users_and_kinds_leave_store_untouched():
    s = InMemoryRecordStore()
    await s.put("u", "things", {"id": "r1"})

    assert await s.get("ghost", "things", "r1") is None
    assert await s.query("ghost", "things") == []
    assert await s.query("u", "other") == []
    assert await s.delete("ghost", "things", "r1") is False
    assert await s.delete_where("u", "other") == 0

    assert set(s._data) == {"u"}
    assert set(s._data["u"]) == {"things"}
