# view.py
import logging
from typing import List, Optional

from .models import InventoryRecord
from .store import InventoryStore

logger = logging.getLogger(__name__)


class InventoryView:
    """Last fetched copy of the whole inventory, replaced wholesale on refresh."""

    def __init__(self, store: InventoryStore):
        self.store = store
        self.snapshot: List[InventoryRecord] = []
        self.refreshed = False

    async def refresh(self) -> List[InventoryRecord]:
        self.snapshot = list(await self.store.list_all())
        self.refreshed = True
        logger.debug(f"Inventory view refreshed with {len(self.snapshot)} items")
        return self.snapshot

    def filter(self, query: Optional[str] = None) -> List[InventoryRecord]:
        if not query:
            return list(self.snapshot)
        needle = query.lower()
        return [record for record in self.snapshot if needle in record.name.lower()]
