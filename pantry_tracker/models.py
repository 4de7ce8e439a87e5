# models.py
from typing import Dict, List, Optional
from pydantic import BaseModel, Field


class InventoryRecord(BaseModel):
    name: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1)

    @property
    def display_name(self) -> str:
        return self.name[:1].upper() + self.name[1:]


class Detection(BaseModel):
    label: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    bounding_box: Dict[str, float]


class ItemRequest(BaseModel):
    name: str


class FrameRequest(BaseModel):
    # base64 JPEG/PNG, optionally as a data URL (data:image/jpeg;base64,...)
    frame: str


class CameraRequest(BaseModel):
    camera_url: str


class InventoryItem(BaseModel):
    name: str
    display_name: str
    quantity: int

    @classmethod
    def from_record(cls, record: InventoryRecord) -> "InventoryItem":
        return cls(name=record.name, display_name=record.display_name, quantity=record.quantity)


class InventoryResponse(BaseModel):
    items: List[InventoryItem]
    total_count: int
    query: Optional[str] = None


class ItemResponse(BaseModel):
    name: str
    quantity: int
    inventory: InventoryResponse


class DetectionResponse(BaseModel):
    frame_id: str
    detections: List[Detection]
    applied_labels: List[str]
    inventory: InventoryResponse
