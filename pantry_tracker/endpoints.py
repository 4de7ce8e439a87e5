# endpoints.py
import logging
from typing import Optional
from fastapi import APIRouter, Depends, File, HTTPException, Query, Path, Request, UploadFile
from .errors import CameraUnavailable, DecodeFailure, InvalidName, ModelNotReady, StoreUnavailable
from .models import (
    CameraRequest,
    DetectionResponse,
    FrameRequest,
    InventoryItem,
    InventoryResponse,
    ItemRequest,
    ItemResponse,
)
from .service import DetectionOutcome, InventoryService

logger = logging.getLogger(__name__)
router = APIRouter()


def get_service(request: Request) -> InventoryService:
    return request.app.state.service


def to_http_error(e: Exception) -> HTTPException:
    if isinstance(e, InvalidName):
        return HTTPException(status_code=422, detail=str(e))
    if isinstance(e, (DecodeFailure, CameraUnavailable)):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, ModelNotReady):
        return HTTPException(status_code=503, detail=str(e))
    if isinstance(e, StoreUnavailable):
        return HTTPException(status_code=503, detail=f"Inventory store unavailable: {e}")
    logger.exception(f"Unexpected error: {e}")
    return HTTPException(status_code=500, detail=f"Internal error: {e}")


def inventory_response(service: InventoryService, query: Optional[str] = None) -> InventoryResponse:
    records = service.search(query)
    return InventoryResponse(
        items=[InventoryItem.from_record(record) for record in records],
        total_count=len(records),
        query=query or None,
    )


def detection_response(service: InventoryService, outcome: DetectionOutcome) -> DetectionResponse:
    return DetectionResponse(
        frame_id=outcome.frame_id,
        detections=outcome.detections,
        applied_labels=[record.name for record in outcome.applied],
        inventory=inventory_response(service),
    )


@router.get("/inventory", response_model=InventoryResponse)
async def list_inventory(
    q: Optional[str] = Query(None, description="Case-insensitive name filter"),
    service: InventoryService = Depends(get_service),
):
    return inventory_response(service, q)


@router.post("/inventory/refresh", response_model=InventoryResponse)
async def refresh_inventory(service: InventoryService = Depends(get_service)):
    try:
        await service.refresh()
    except StoreUnavailable as e:
        raise to_http_error(e)
    return inventory_response(service)


@router.post("/inventory/items", response_model=ItemResponse, status_code=201)
async def add_item(request: ItemRequest, service: InventoryService = Depends(get_service)):
    try:
        record = await service.add_item(request.name)
    except Exception as e:
        raise to_http_error(e)
    return ItemResponse(name=record.name, quantity=record.quantity, inventory=inventory_response(service))


@router.delete("/inventory/items/{name:path}", response_model=ItemResponse)
async def remove_item(
    name: str = Path(..., description="Name of the item to decrement"),
    service: InventoryService = Depends(get_service),
):
    try:
        record = await service.remove_item(name)
    except Exception as e:
        raise to_http_error(e)
    quantity = record.quantity if record is not None else 0
    return ItemResponse(name=name, quantity=quantity, inventory=inventory_response(service))


@router.post("/inventory/detect/upload", response_model=DetectionResponse)
async def detect_upload(
    file: UploadFile = File(...),
    frame_id: Optional[str] = None,
    service: InventoryService = Depends(get_service),
):
    image_data = await file.read()
    try:
        outcome = await service.add_from_image(image_data, frame_id)
    except Exception as e:
        raise to_http_error(e)
    return detection_response(service, outcome)


@router.post("/inventory/detect/frame", response_model=DetectionResponse)
async def detect_frame(
    request: FrameRequest,
    frame_id: Optional[str] = None,
    service: InventoryService = Depends(get_service),
):
    try:
        outcome = await service.add_from_frame(request.frame, frame_id)
    except Exception as e:
        raise to_http_error(e)
    return detection_response(service, outcome)


@router.post("/inventory/detect/camera", response_model=DetectionResponse)
async def detect_camera(
    request: CameraRequest,
    frame_id: Optional[str] = None,
    service: InventoryService = Depends(get_service),
):
    try:
        outcome = await service.add_from_camera(request.camera_url, frame_id)
    except Exception as e:
        raise to_http_error(e)
    return detection_response(service, outcome)


@router.get("/health")
async def health(service: InventoryService = Depends(get_service)):
    return {
        "status": "ok",
        "model_ready": service.detector.ready,
        "model_error": service.detector.load_error,
        "store_backend": service.store.backend,
        "inventory_loaded": service.view.refreshed,
        "item_count": len(service.view.snapshot),
    }
