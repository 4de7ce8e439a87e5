import cv2
import numpy as np
import pandas as pd
import pytest

from pantry_tracker.detection import Detector
from pantry_tracker.errors import StoreUnavailable
from pantry_tracker.service import InventoryService
from pantry_tracker.store import MemoryInventoryStore

COLUMNS = ["xmin", "ymin", "xmax", "ymax", "confidence", "class", "name"]


def prediction(name, confidence=0.9, box=(10, 20, 110, 220), class_id=0):
    return [*box, confidence, class_id, name]


class FakeResults:
    def __init__(self, rows):
        self.xyxy = [pd.DataFrame(rows, columns=COLUMNS)]

    def pandas(self):
        return self


class FakeModel:
    """Mimics the YOLOv5 hub model: model(frame).pandas().xyxy[0]."""

    def __init__(self, rows=()):
        self.rows = list(rows)
        self.frames = []

    def __call__(self, frame):
        self.frames.append(frame)
        return FakeResults(self.rows)


class FailingStore(MemoryInventoryStore):
    """Memory store whose writes for selected names fail."""

    def __init__(self, fail_names=(), initial=None):
        super().__init__(initial)
        self.fail_names = set(fail_names)

    async def put_record(self, name, quantity):
        if name in self.fail_names:
            raise StoreUnavailable(f"write refused for {name}")
        await super().put_record(name, quantity)


def encode_jpeg(width=64, height=48):
    frame = np.full((height, width, 3), 127, dtype=np.uint8)
    _, buffer = cv2.imencode('.jpg', frame)
    return buffer.tobytes()


@pytest.fixture
def jpeg_bytes():
    return encode_jpeg()


@pytest.fixture
def store():
    return MemoryInventoryStore()


@pytest.fixture
def fake_model():
    return FakeModel([prediction("cat"), prediction("dog", 0.4), prediction("cat", 0.7)])


@pytest.fixture
def detector(fake_model):
    return Detector(model_loader=lambda: fake_model).load()


@pytest.fixture
def service(store, detector):
    return InventoryService(store, detector)
