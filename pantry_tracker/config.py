# config.py
import logging
import os
from pathlib import Path

# Configuration (can be overridden with environment variables)
config = {
    "MODEL_PATH": os.environ.get("MODEL_PATH", ""),
    "MODEL_REPO": os.environ.get("MODEL_REPO", "ultralytics/yolov5"),
    "MODEL_NAME": os.environ.get("MODEL_NAME", "yolov5s"),
    "CONFIDENCE_THRESHOLD": float(os.environ.get("CONFIDENCE_THRESHOLD", 0.0)),
    "USE_GPU": os.environ.get("USE_GPU", "auto"),
    "PRELOAD_MODEL": os.environ.get("PRELOAD_MODEL", "true").lower() == "true",
    "STORE_BACKEND": os.environ.get("STORE_BACKEND", "firestore"),
    "FIRESTORE_PROJECT": os.environ.get("FIRESTORE_PROJECT") or None,
    "INVENTORY_COLLECTION": os.environ.get("INVENTORY_COLLECTION", "inventory"),
    "CAMERA_READ_ATTEMPTS": int(os.environ.get("CAMERA_READ_ATTEMPTS", 3)),
    "HOST": os.environ.get("HOST", "0.0.0.0"),
    "PORT": int(os.environ.get("PORT", 8026)),
    "LOG_LEVEL": os.environ.get("LOG_LEVEL", "INFO"),
}

# Configure logging
logging.basicConfig(
    level=getattr(logging, config["LOG_LEVEL"].upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

MODEL_PATH = Path(config["MODEL_PATH"]) if config["MODEL_PATH"] else None
CONFIDENCE_THRESHOLD = config["CONFIDENCE_THRESHOLD"]

if MODEL_PATH is not None and not MODEL_PATH.exists():
    raise FileNotFoundError(f"Model file not found: {MODEL_PATH}")
