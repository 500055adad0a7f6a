"""Clothing records, their decoder and the closet index."""

from .decoder import AttributeDecoder
from .index import ClosetCategory, ClosetIndex
from .models import ClothingAttributes, ClothingItem

__all__ = [
    "AttributeDecoder",
    "ClosetCategory",
    "ClosetIndex",
    "ClothingAttributes",
    "ClothingItem",
]
