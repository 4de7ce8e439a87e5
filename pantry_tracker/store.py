# store.py
"""
Inventory store adapters.

One document per item name in a named collection; the document body is
{"quantity": n}. No transactions and no retries: backend failures are raised
as StoreUnavailable and the caller decides what to do.
"""
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from google.api_core import exceptions as google_exceptions
from google.cloud import firestore

from .errors import InvalidName, StoreUnavailable
from .models import InventoryRecord

logger = logging.getLogger(__name__)


class InventoryStore(ABC):
    backend = "abstract"

    @abstractmethod
    async def get_record(self, name: str) -> Optional[InventoryRecord]:
        """Return the record for name, or None if there is none."""

    @abstractmethod
    async def put_record(self, name: str, quantity: int) -> None:
        """Create or fully replace the record for name."""

    @abstractmethod
    async def delete_record(self, name: str) -> None:
        """Delete the record for name. Deleting a missing record is not an error."""

    @abstractmethod
    async def list_all(self) -> List[InventoryRecord]:
        """Return every record. Order is unspecified."""


class MemoryInventoryStore(InventoryStore):
    backend = "memory"

    def __init__(self, initial: Optional[Dict[str, int]] = None):
        self._documents: Dict[str, Dict[str, int]] = {
            name: {"quantity": quantity} for name, quantity in (initial or {}).items()
        }

    async def get_record(self, name):
        document = self._documents.get(name)
        if document is None:
            return None
        return InventoryRecord(name=name, quantity=document["quantity"])

    async def put_record(self, name, quantity):
        self._documents[name] = {"quantity": quantity}

    async def delete_record(self, name):
        self._documents.pop(name, None)

    async def list_all(self):
        return [
            InventoryRecord(name=name, quantity=document["quantity"])
            for name, document in self._documents.items()
        ]


class FirestoreInventoryStore(InventoryStore):
    backend = "firestore"

    def __init__(self, client=None, collection: str = "inventory", project: Optional[str] = None):
        self.client = client or firestore.AsyncClient(project=project)
        self.collection_name = collection

    def _document(self, name):
        # Firestore document ids cannot contain a path separator.
        if "/" in name:
            raise InvalidName(name)
        return self.client.collection(self.collection_name).document(name)

    async def get_record(self, name):
        try:
            snapshot = await self._document(name).get()
        except google_exceptions.GoogleAPIError as e:
            raise StoreUnavailable(f"Failed to read {name!r}: {e}") from e
        if not snapshot.exists:
            return None
        return _to_record(name, snapshot.to_dict())

    async def put_record(self, name, quantity):
        try:
            await self._document(name).set({"quantity": quantity})
        except google_exceptions.GoogleAPIError as e:
            raise StoreUnavailable(f"Failed to write {name!r}: {e}") from e

    async def delete_record(self, name):
        try:
            await self._document(name).delete()
        except google_exceptions.GoogleAPIError as e:
            raise StoreUnavailable(f"Failed to delete {name!r}: {e}") from e

    async def list_all(self):
        records = []
        try:
            async for document in self.client.collection(self.collection_name).stream():
                record = _to_record(document.id, document.to_dict())
                if record is not None:
                    records.append(record)
        except google_exceptions.GoogleAPIError as e:
            raise StoreUnavailable(f"Failed to list {self.collection_name!r}: {e}") from e
        return records


def _to_record(name, data) -> Optional[InventoryRecord]:
    # Documents written by other clients may not hold a positive integer.
    quantity = (data or {}).get("quantity")
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        logger.warning(f"Ignoring malformed inventory document {name!r}: {data}")
        return None
    return InventoryRecord(name=name, quantity=quantity)


def create_store(config) -> InventoryStore:
    backend = config["STORE_BACKEND"].lower()
    if backend == "memory":
        logger.info("Using in-memory inventory store")
        return MemoryInventoryStore()
    if backend == "firestore":
        logger.info(f"Using Firestore collection {config['INVENTORY_COLLECTION']!r}")
        return FirestoreInventoryStore(
            collection=config["INVENTORY_COLLECTION"],
            project=config["FIRESTORE_PROJECT"],
        )
    raise ValueError(f"Unknown store backend: {config['STORE_BACKEND']}")
