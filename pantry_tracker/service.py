# service.py
import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from typing import List, Optional

from starlette.concurrency import run_in_threadpool

from .camera import CameraCapture
from .config import config
from .detection import Detector, decode_frame, decode_image
from .errors import DecodeFailure, InventoryError, ModelNotReady, StoreUnavailable
from .models import Detection, InventoryRecord
from .reconciler import InventoryReconciler
from .store import InventoryStore
from .view import InventoryView

logger = logging.getLogger(__name__)


@dataclass
class DetectionOutcome:
    """Result of a capture action that actually ran detection."""
    frame_id: str
    detections: List[Detection]
    applied: List[InventoryRecord] = field(default_factory=list)

    @property
    def labels(self):
        return [detection.label for detection in self.detections]


class InventoryService:
    """
    Runs user actions against the inventory: decode, detect, reconcile, then
    refresh the view.

    Mutations issued through one service run one at a time.
    """

    def __init__(self, store: InventoryStore, detector: Detector, camera_factory=None):
        self.store = store
        self.detector = detector
        self.reconciler = InventoryReconciler(store)
        self.view = InventoryView(store)
        self.camera_factory = camera_factory or (
            lambda url: CameraCapture(url, max_read_attempts=config["CAMERA_READ_ATTEMPTS"])
        )
        self._mutation_lock = asyncio.Lock()

    async def refresh(self):
        return await self.view.refresh()

    def search(self, query: Optional[str] = None) -> List[InventoryRecord]:
        return self.view.filter(query)

    async def add_item(self, name: str) -> InventoryRecord:
        async with self._mutation_lock:
            record = await self.reconciler.increment(name)
            await self._refresh_quietly()
        return record

    async def remove_item(self, name: str) -> Optional[InventoryRecord]:
        async with self._mutation_lock:
            record = await self.reconciler.decrement(name)
            await self._refresh_quietly()
        return record

    async def add_from_image(self, data: bytes, frame_id: Optional[str] = None) -> DetectionOutcome:
        try:
            frame = decode_image(data)
        except DecodeFailure as e:
            logger.warning(f"Uploaded image abandoned: {e}")
            raise
        return await self._detect_and_apply(frame, frame_id)

    async def add_from_frame(self, frame_b64: str, frame_id: Optional[str] = None) -> DetectionOutcome:
        try:
            frame = decode_frame(frame_b64)
        except DecodeFailure as e:
            logger.warning(f"Camera frame abandoned: {e}")
            raise
        return await self._detect_and_apply(frame, frame_id)

    async def add_from_camera(self, camera_url: str, frame_id: Optional[str] = None) -> DetectionOutcome:
        if not self.detector.ready:
            logger.warning("Camera capture abandoned: model is not loaded yet")
            raise ModelNotReady("Detection model is not loaded yet")
        camera = self.camera_factory(camera_url)
        frame = await run_in_threadpool(camera.grab_frame)
        return await self._detect_and_apply(frame, frame_id)

    async def _detect_and_apply(self, frame, frame_id=None) -> DetectionOutcome:
        frame_id = frame_id or str(uuid.uuid4())
        try:
            detections = await run_in_threadpool(self.detector.detect, frame)
        except ModelNotReady:
            logger.warning(f"Frame {frame_id} abandoned: model is not loaded yet")
            raise
        outcome = DetectionOutcome(frame_id=frame_id, detections=detections)
        logger.info(f"Frame {frame_id}: detected {outcome.labels}")

        async with self._mutation_lock:
            try:
                outcome.applied = await self.reconciler.reconcile_detections(outcome.labels)
            except InventoryError as e:
                logger.error(f"Frame {frame_id}: batch stopped after applying part of {outcome.labels}: {e}")
                await self._refresh_quietly()
                raise
            await self._refresh_quietly()
        return outcome

    async def _refresh_quietly(self):
        # The mutation is already stored; a failed refresh only leaves the view stale.
        try:
            await self.view.refresh()
        except StoreUnavailable as e:
            logger.warning(f"Inventory view could not be refreshed: {e}")
