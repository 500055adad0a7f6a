"""Tests for closet filtering, search and ordering."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from glasscloset.catalog.index import ClosetCategory, ClosetIndex, filter_by_category, matches_category
from glasscloset.catalog.models import ClothingAttributes, ClothingItem

BASE = datetime(2024, 5, 1, tzinfo=timezone.utc)


def _item(item_id: str, garment_type: str, days: int, **attrs: object) -> ClothingItem:
    return ClothingItem(
        id=item_id,
        attributes=ClothingAttributes(garment_type=garment_type, **attrs),  # type: ignore[arg-type]
        date_added=BASE + timedelta(days=days),
    )


@pytest.fixture
def closet() -> ClosetIndex:
    return ClosetIndex(
        [
            _item("hoodie", "Hoodie", 1, main_colors=["navy"], material="cotton"),
            _item("jeans", "Slim Jeans", 3, main_colors=["blue"], material="denim"),
            _item("coat", "wool coat", 2, main_colors=["navy"], material="wool"),
            _item("boots", "boots", 0, main_colors=["brown"], material="leather"),
        ],
    )


def test_all_category_returns_everything_newest_first(closet: ClosetIndex) -> None:
    assert [item.id for item in closet.query()] == ["jeans", "coat", "hoodie", "boots"]


@pytest.mark.parametrize(
    ("category", "expected"),
    [
        (ClosetCategory.TOPS, ["hoodie"]),
        ("Bottoms", ["jeans"]),
        ("outerwear", ["coat"]),
        (ClosetCategory.SHOES, ["boots"]),
        (ClosetCategory.DRESSES, []),
        ("Swimwear", ["jeans", "coat", "hoodie", "boots"]),
    ],
)
def test_category_filter(closet: ClosetIndex, category: str, expected: list[str]) -> None:
    assert [item.id for item in closet.query(category)] == expected


def test_category_keywords_are_substrings() -> None:
    assert matches_category("Cropped T-Shirt", ClosetCategory.TOPS)
    assert not matches_category("", ClosetCategory.TOPS)
    assert matches_category("", ClosetCategory.ALL)


def test_search_requires_every_term(closet: ClosetIndex) -> None:
    assert [item.id for item in closet.query(text="navy")] == ["coat", "hoodie"]
    assert [item.id for item in closet.query(text="Navy  COTTON")] == ["hoodie"]
    assert closet.query(text="navy denim") == []
    assert len(closet.query(text="   ")) == 4


def test_search_combines_with_category(closet: ClosetIndex) -> None:
    assert [item.id for item in closet.query("Outerwear", "navy")] == ["coat"]


def test_equal_dates_keep_insertion_order() -> None:
    closet = ClosetIndex([_item("a", "shirt", 0), _item("b", "shirt", 0), _item("c", "shirt", 1)])

    assert [item.id for item in closet.query()] == ["c", "a", "b"]


@pytest.mark.asyncio
async def test_add_replaces_same_id_and_remove(closet: ClosetIndex) -> None:
    await closet.add(_item("hoodie", "Zip Hoodie", 5))
    await closet.add(_item("dress", "summer dress", 4))

    assert len(closet) == 5
    assert closet.get("hoodie").attributes.garment_type == "Zip Hoodie"  # type: ignore[union-attr]
    assert [item.id for item in closet.query()][:2] == ["hoodie", "dress"]

    assert await closet.remove("dress")
    assert not await closet.remove("dress")
    assert closet.get("dress") is None


@pytest.mark.asyncio
async def test_replace_swaps_snapshot(closet: ClosetIndex) -> None:
    before = closet.snapshot()

    await closet.replace([_item("only", "tie", 0)])

    assert len(before) == 4
    assert [item.id for item in closet.snapshot()] == ["only"]


@pytest.mark.parametrize("category", [ClosetCategory.ALL, "All", "all"])
def test_all_filter_keeps_input_order(closet: ClosetIndex, category: str) -> None:
    items = list(closet.snapshot())

    assert filter_by_category(items, category) == items


@pytest.mark.asyncio
async def test_removed_item_never_reappears_during_concurrent_queries(closet: ClosetIndex) -> None:
    every_id = {"hoodie", "jeans", "coat", "boots"}
    observed: list[set[str]] = []

    async def read(rounds: int) -> None:
        for _ in range(rounds):
            observed.append({item.id for item in closet.query()})
            await asyncio.sleep(0)

    async def delete() -> bool:
        await asyncio.sleep(0)
        return await closet.remove("coat")

    results = await asyncio.gather(read(20), delete(), read(20))

    assert results[1] is True
    assert all(ids in (every_id, every_id - {"coat"}) for ids in observed)
    first_without = next(index for index, ids in enumerate(observed) if "coat" not in ids)
    assert all("coat" not in ids for ids in observed[first_without:])
    assert "coat" not in {item.id for item in closet.query()}
