from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Optional

from finance_core import config
from finance_core.domain import Preferences, PreferencesPatch, ProfilePatch, UserProfile


def default_monthly_budget(monthly_income: Optional[Decimal]) -> Decimal:
    if not monthly_income:
        return Decimal("0")
    return monthly_income * config.DEFAULT_BUDGET_RATIO


def new_profile(
    uid: str,
    name: str,
    email: str,
    now: datetime,
    monthly_income: Optional[Decimal] = None,
) -> UserProfile:
    return UserProfile(
        uid=uid,
        name=name,
        email=email,
        currency=config.DEFAULT_CURRENCY,
        monthly_income=monthly_income or Decimal("0"),
        monthly_budget=default_monthly_budget(monthly_income),
        created_at=now,
        updated_at=now,
        preferences=Preferences(),
    )


def merge_preferences(prefs: Preferences, patch: PreferencesPatch) -> Preferences:
    return replace(prefs, **{k: v for k, v in vars(patch).items() if v is not None})


def merge_profile(
    profile: UserProfile,
    patch: ProfilePatch,
    now: datetime,
    preferences: Optional[PreferencesPatch] = None,
) -> UserProfile:
    changes = {k: v for k, v in vars(patch).items() if v is not None}
    if preferences is not None:
        changes["preferences"] = merge_preferences(profile.preferences, preferences)
    return replace(profile, updated_at=now, **changes)
