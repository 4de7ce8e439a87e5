# app.py
import asyncio
import logging
from contextlib import asynccontextmanager
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from .config import config
from .detection import Detector
from .endpoints import router as api_router
from .errors import StoreUnavailable
from .service import InventoryService
from .store import create_store

logger = logging.getLogger(__name__)


async def load_model_in_background(detector: Detector):
    try:
        await asyncio.to_thread(detector.load)
    except Exception:
        logger.exception("Model failed to load; image detection stays unavailable.")


def create_app(service: InventoryService = None, preload_model: bool = None) -> FastAPI:
    if preload_model is None:
        preload_model = config["PRELOAD_MODEL"]

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.service is None:
            app.state.service = InventoryService(create_store(config), Detector())
        current = app.state.service

        if preload_model and not current.detector.ready:
            app.state.model_task = asyncio.create_task(load_model_in_background(current.detector))

        try:
            await current.refresh()
            logger.info(f"Loaded {len(current.view.snapshot)} inventory items")
        except StoreUnavailable:
            logger.exception("Initial inventory load failed; use /inventory/refresh to retry.")
        yield

        task = app.state.model_task
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                logger.info("Background model load cancelled at shutdown.")
        app.state.model_task = None

    app = FastAPI(
        title="Pantry Tracker",
        description="Quantity-tracked inventory fed by manual entry and YOLOv5 object detection",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.service = service
    app.state.model_task = None

    # Enable CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Allow all origins – change if needed.
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include API routes
    app.include_router(api_router)
    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run("pantry_tracker.app:app", host=config["HOST"], port=config["PORT"])
