from dataclasses import replace
from datetime import datetime
from typing import Optional, Tuple
from uuid import uuid4

from finance_core.domain import Category, CategoryPatch
from finance_core.errors import InvalidInput, NotFound
from finance_core.functional import Maybe, maybe

DEFAULT_CATEGORIES: Tuple[Category, ...] = (
    Category(id="food", name="Food", icon="restaurant", color="#FF6B6B", is_default=True),
    Category(id="transport", name="Transport", icon="car", color="#4ECDC4", is_default=True),
    Category(id="entertainment", name="Entertainment", icon="game-controller", color="#45B7D1", is_default=True),
    Category(id="bills", name="Bills", icon="receipt", color="#96CEB4", is_default=True),
    Category(id="shopping", name="Shopping", icon="bag", color="#FFEAA7", is_default=True),
    Category(id="health", name="Health", icon="medical", color="#DDA0DD", is_default=True),
    Category(id="others", name="Others", icon="ellipsis-horizontal", color="#95A5A6", is_default=True),
)

AVAILABLE_ICONS = (
    "restaurant", "car", "game-controller", "receipt", "bag", "medical",
    "home", "airplane", "book", "barbell", "gift", "heart",
    "school", "briefcase", "card", "phone", "laptop", "camera",
    "musical-notes", "shirt", "wine", "cafe", "bus", "bicycle",
    "ellipsis-horizontal",
)

AVAILABLE_COLORS = (
    "#FF6B6B", "#4ECDC4", "#45B7D1", "#96CEB4", "#FFEAA7",
    "#DDA0DD", "#95A5A6", "#E17055", "#74B9FF", "#A29BFE",
    "#FD79A8", "#FDCB6E", "#6C5CE7", "#E84393", "#00B894",
    "#00CEC9", "#0984E3", "#B2BEC3", "#636E72", "#2D3436",
)


def find_by_id(cats: Tuple[Category, ...], category_id: str) -> Maybe[Category]:
    return maybe(next((c for c in cats if c.id == category_id), None))


def find_by_name(cats: Tuple[Category, ...], name: str) -> Maybe[Category]:
    wanted = name.strip().lower()
    return maybe(next((c for c in cats if c.name.lower() == wanted), None))


def next_color(cats: Tuple[Category, ...]) -> str:
    used = {c.color for c in cats}
    return next((color for color in AVAILABLE_COLORS if color not in used), AVAILABLE_COLORS[0])


def add_category(
    cats: Tuple[Category, ...],
    name: str,
    icon: Optional[str],
    color: Optional[str],
    now: datetime,
    category_id: Optional[str] = None,
) -> Tuple[Tuple[Category, ...], Category]:
    """Append a custom category.

    Without an explicit icon the generic one is used; without a color the
    first palette entry no existing category uses is picked.
    """
    if not name or not name.strip():
        raise InvalidInput("Category name cannot be empty")
    if find_by_name(cats, name).is_some():
        raise InvalidInput(f"Category {name!r} already exists", details={"name": name})
    created = Category(
        id=category_id or str(uuid4()),
        name=name.strip(),
        icon=icon or AVAILABLE_ICONS[-1],
        color=color or next_color(cats),
        is_default=False,
        created_at=now,
        updated_at=now,
    )
    return cats + (created,), created


def update_category(
    cats: Tuple[Category, ...], category_id: str, patch: CategoryPatch, now: datetime
) -> Tuple[Category, ...]:
    current = find_by_id(cats, category_id).get_or_else(None)
    if current is None:
        raise NotFound("category", category_id)
    if current.is_default and patch.name is not None and patch.name != current.name:
        raise InvalidInput("Cannot modify default category name", details={"category_id": category_id})
    if patch.name is not None:
        clash = find_by_name(cats, patch.name).get_or_else(None)
        if clash is not None and clash.id != category_id:
            raise InvalidInput(f"Category {patch.name!r} already exists", details={"name": patch.name})

    changes = {k: v for k, v in vars(patch).items() if v is not None}
    updated = replace(current, updated_at=now, **changes)
    return tuple(updated if c.id == category_id else c for c in cats)


def delete_category(cats: Tuple[Category, ...], category_id: str) -> Tuple[Category, ...]:
    current = find_by_id(cats, category_id).get_or_else(None)
    if current is None:
        raise NotFound("category", category_id)
    if current.is_default:
        raise InvalidInput("Cannot delete default category", details={"category_id": category_id})
    return tuple(c for c in cats if c.id != category_id)
