from datetime import datetime
from decimal import Decimal

import pytest

from finance_core.categories import (
    AVAILABLE_COLORS,
    AVAILABLE_ICONS,
    DEFAULT_CATEGORIES,
    add_category,
    delete_category,
    find_by_name,
    update_category,
)
from finance_core.domain import CategoryPatch, PreferencesPatch, ProfilePatch
from finance_core.errors import InvalidInput, NotFound
from finance_core.profiles import default_monthly_budget, merge_profile, new_profile

NOW = datetime(2025, 5, 1)


def test_defaults_are_marked_default():
    assert [c.name for c in DEFAULT_CATEGORIES] == [
        "Food", "Transport", "Entertainment", "Bills", "Shopping", "Health", "Others",
    ]
    assert all(c.is_default for c in DEFAULT_CATEGORIES)


def test_find_by_name_ignores_case():
    assert find_by_name(DEFAULT_CATEGORIES, "food").is_some()
    assert find_by_name(DEFAULT_CATEGORIES, "Pets").is_none()


def test_add_category():
    cats, created = add_category(DEFAULT_CATEGORIES, " Pets ", "heart", "#E17055", NOW)
    assert created.name == "Pets"
    assert not created.is_default
    assert created.created_at == NOW
    assert cats[-1] == created
    assert len(cats) == len(DEFAULT_CATEGORIES) + 1


@pytest.mark.parametrize("name", ["", "   ", "FOOD"])
def test_add_category_rejects_empty_or_duplicate_names(name):
    with pytest.raises(InvalidInput):
        add_category(DEFAULT_CATEGORIES, name, "heart", "#E17055", NOW)


def test_default_category_cannot_be_renamed_but_can_be_recoloured():
    with pytest.raises(InvalidInput):
        update_category(DEFAULT_CATEGORIES, "food", CategoryPatch(name="Meals"), NOW)
    cats = update_category(DEFAULT_CATEGORIES, "food", CategoryPatch(color="#000000"), NOW)
    food = find_by_name(cats, "Food").get_or_else(None)
    assert food.color == "#000000"
    assert food.updated_at == NOW


def test_rename_custom_category_checks_clashes():
    cats, pets = add_category(DEFAULT_CATEGORIES, "Pets", "heart", "#E17055", NOW, category_id="pets")
    with pytest.raises(InvalidInput):
        update_category(cats, "pets", CategoryPatch(name="Bills"), NOW)
    renamed = update_category(cats, "pets", CategoryPatch(name="Animals"), NOW)
    assert find_by_name(renamed, "Animals").is_some()


def test_delete_category():
    cats, _ = add_category(DEFAULT_CATEGORIES, "Pets", "heart", "#E17055", NOW, category_id="pets")
    assert delete_category(cats, "pets") == DEFAULT_CATEGORIES
    with pytest.raises(InvalidInput):
        delete_category(cats, "food")
    with pytest.raises(NotFound):
        delete_category(cats, "missing")
    with pytest.raises(NotFound):
        update_category(cats, "missing", CategoryPatch(name="x"), NOW)


def test_new_profile_defaults_budget_from_income():
    profile = new_profile("u1", "Asha", "asha@example.com", NOW, monthly_income=Decimal("50000"))
    assert profile.monthly_budget == Decimal("40000")
    assert profile.currency == "₹"
    assert default_monthly_budget(None) == 0


def test_merge_profile_and_preferences():
    profile = new_profile("u1", "Asha", "asha@example.com", NOW)
    later = datetime(2025, 6, 1)
    merged = merge_profile(profile, ProfilePatch(currency="$"), later, PreferencesPatch(theme="dark"))
    assert merged.currency == "$"
    assert merged.name == "Asha"
    assert merged.preferences.theme == "dark"
    assert merged.preferences.notifications is True
    assert merged.updated_at == later
    assert merged.created_at == NOW


def test_add_category_picks_defaults_from_palette():
    cats, first = add_category(DEFAULT_CATEGORIES, "Pets", None, None, NOW)
    assert first.icon == AVAILABLE_ICONS[-1]
    used = {c.color for c in DEFAULT_CATEGORIES}
    assert first.color in AVAILABLE_COLORS
    assert first.color not in used
    _, second = add_category(cats, "Garden", None, None, NOW)
    assert second.color != first.color
