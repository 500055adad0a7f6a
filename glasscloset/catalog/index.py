"""In-memory closet index: category filter, free-text search and date ordering."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Iterable, Sequence

from glasscloset.catalog.models import ClothingItem
from glasscloset.metrics.prometheus_exporter import closet_items

logger = logging.getLogger(__name__)


class ClosetCategory(str, Enum):
    """Display categories offered by the closet filter bar."""

    ALL = "All"
    TOPS = "Tops"
    BOTTOMS = "Bottoms"
    DRESSES = "Dresses"
    OUTERWEAR = "Outerwear"
    SHOES = "Shoes"
    ACCESSORIES = "Accessories"

    @classmethod
    def parse(cls, raw: "str | ClosetCategory") -> "ClosetCategory | None":
        if isinstance(raw, ClosetCategory):
            return raw
        normalized = raw.strip().lower()
        for category in cls:
            if category.value.lower() == normalized:
                return category
        return None


CATEGORY_KEYWORDS: dict[ClosetCategory, tuple[str, ...]] = {
    ClosetCategory.TOPS: ("shirt", "t-shirt", "blouse", "sweater", "hoodie", "sweatshirt", "tank top", "polo"),
    ClosetCategory.BOTTOMS: ("pants", "jeans", "shorts", "skirt", "trousers", "leggings"),
    ClosetCategory.DRESSES: ("dress", "gown", "jumpsuit"),
    ClosetCategory.OUTERWEAR: ("jacket", "coat", "blazer", "cardigan", "vest"),
    ClosetCategory.SHOES: ("shoes", "sneakers", "boots", "sandals", "heels"),
    ClosetCategory.ACCESSORIES: (
        "hat",
        "scarf",
        "gloves",
        "belt",
        "tie",
        "jewelry",
        "watch",
        "bag",
        "purse",
        "backpack",
    ),
}


def matches_category(garment_type: str, category: str | ClosetCategory) -> bool:
    """True when the garment type falls into the category; unknown categories match everything."""

    parsed = ClosetCategory.parse(category)
    if parsed is None or parsed is ClosetCategory.ALL:
        return True
    lowered = garment_type.lower()
    return any(keyword in lowered for keyword in CATEGORY_KEYWORDS[parsed])


def filter_by_category(items: Sequence[ClothingItem], category: str | ClosetCategory) -> list[ClothingItem]:
    return [item for item in items if matches_category(item.attributes.garment_type, category)]


def search_items(items: Sequence[ClothingItem], query: str) -> list[ClothingItem]:
    """Keep items whose searchable text contains every whitespace-separated term."""

    terms = query.lower().split()
    if not terms:
        return list(items)
    return [
        item
        for item in items
        if all(term in item.attributes.searchable_text() for term in terms)
    ]


def sorted_by_date_added(items: Iterable[ClothingItem]) -> list[ClothingItem]:
    """Newest first; items added at the same instant keep their relative order."""

    return sorted(items, key=lambda item: item.date_added, reverse=True)


class ClosetIndex:
    """
    Holds the user's clothing items and answers filter/search queries.

    The collection is an immutable tuple swapped in one assignment, so a query
    always runs against one consistent snapshot. Mutations are serialized by
    an asyncio lock.
    """

    def __init__(self, items: Iterable[ClothingItem] = ()) -> None:
        self._items: tuple[ClothingItem, ...] = tuple(items)
        self._lock = asyncio.Lock()
        closet_items.set(len(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def snapshot(self) -> tuple[ClothingItem, ...]:
        return self._items

    def get(self, item_id: str) -> ClothingItem | None:
        return next((item for item in self._items if item.id == item_id), None)

    def query(self, category: str | ClosetCategory = ClosetCategory.ALL, text: str = "") -> list[ClothingItem]:
        """Filtered, searched and date-sorted view of the current snapshot."""

        items = self._items
        return sorted_by_date_added(search_items(filter_by_category(items, category), text))

    async def replace(self, items: Iterable[ClothingItem]) -> None:
        async with self._lock:
            self._commit(tuple(items))

    async def add(self, item: ClothingItem) -> None:
        async with self._lock:
            remaining = tuple(existing for existing in self._items if existing.id != item.id)
            self._commit(remaining + (item,))

    async def remove(self, item_id: str) -> bool:
        """Drop the item with the given id; returns whether anything was removed."""

        async with self._lock:
            remaining = tuple(item for item in self._items if item.id != item_id)
            removed = len(remaining) != len(self._items)
            self._commit(remaining)
        if removed:
            logger.info("Removed clothing item %s from the closet index.", item_id)
        return removed

    def _commit(self, items: tuple[ClothingItem, ...]) -> None:
        self._items = items
        closet_items.set(len(items))
