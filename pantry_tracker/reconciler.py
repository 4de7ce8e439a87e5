# reconciler.py
"""
Turns item names and detected labels into quantity changes in the store.

Each change is a read followed by a write. Two mutation chains racing on the
same name from different processes can lose an update (last write wins);
InventoryService serializes the chains of one process.
"""
import logging
from typing import Iterable, List, Optional

from .errors import InvalidName
from .models import InventoryRecord
from .store import InventoryStore

logger = logging.getLogger(__name__)


def validate_name(name):
    if not isinstance(name, str) or not name.strip():
        raise InvalidName(name)
    return name


class InventoryReconciler:
    def __init__(self, store: InventoryStore):
        self.store = store

    async def increment(self, name: str) -> InventoryRecord:
        validate_name(name)
        record = await self.store.get_record(name)
        quantity = 1 if record is None else record.quantity + 1
        await self.store.put_record(name, quantity)
        logger.info(f"Incremented {name!r} to {quantity}")
        return InventoryRecord(name=name, quantity=quantity)

    async def decrement(self, name: str) -> Optional[InventoryRecord]:
        validate_name(name)
        record = await self.store.get_record(name)
        if record is None:
            logger.info(f"Decrement of absent item {name!r} ignored")
            return None
        if record.quantity <= 1:
            await self.store.delete_record(name)
            logger.info(f"Removed {name!r}")
            return None
        quantity = record.quantity - 1
        await self.store.put_record(name, quantity)
        logger.info(f"Decremented {name!r} to {quantity}")
        return InventoryRecord(name=name, quantity=quantity)

    async def reconcile_detections(self, labels: Iterable[str]) -> List[InventoryRecord]:
        """
        Apply one increment per label, in order, each finishing before the
        next starts. Labels already applied stay applied if a later one fails.
        """
        applied = []
        for label in labels:
            applied.append(await self.increment(label))
        return applied
