"""Business logic for managing the user's closet."""

from __future__ import annotations

import logging

from glasscloset.api.client import AnalysisClient
from glasscloset.catalog.index import ClosetCategory, ClosetIndex
from glasscloset.catalog.models import ClothingItem

logger = logging.getLogger(__name__)


class ClosetService:
    """Facade over the backend item endpoints and the local closet index."""

    def __init__(self, client: AnalysisClient, index: ClosetIndex | None = None) -> None:
        self._client = client
        self.index = index or ClosetIndex()

    async def refresh(self) -> list[ClothingItem]:
        """Fetch every stored item and replace the index contents."""

        items = await self._client.fetch_items()
        await self.index.replace(items)
        return items

    async def delete(self, item_id: str) -> bool:
        """Delete the item remotely, then drop it from the index when the backend agreed."""

        deleted = await self._client.delete_item(item_id)
        if deleted:
            await self.index.remove(item_id)
        else:
            logger.warning("Clothing item %s was not deleted by the backend.", item_id)
        return deleted

    def list_items(
        self,
        category: str | ClosetCategory = ClosetCategory.ALL,
        query: str = "",
    ) -> list[ClothingItem]:
        """Return the filtered, searched, newest-first display list."""

        return self.index.query(category, query)

    def summarise_items(self) -> list[dict[str, str]]:
        """Return a lightweight summary of the closet."""

        return [
            {
                "id": item.id,
                "name": item.name,
                "added": item.date_added.isoformat(timespec="seconds"),
            }
            for item in self.index.query()
        ]
