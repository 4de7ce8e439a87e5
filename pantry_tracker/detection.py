# detection.py
import base64
import binascii
import logging
import threading
import cv2
import numpy as np
from .config import config, MODEL_PATH, CONFIDENCE_THRESHOLD
from .errors import DecodeFailure, ModelNotReady
from .models import Detection

logger = logging.getLogger(__name__)


def load_yolov5():
    """Load the pretrained YOLOv5 model (COCO classes, or local custom weights)."""
    import torch

    if config["USE_GPU"] == "auto":
        device = torch.device('cuda' if torch.cuda.is_available() else 'cpu')
    else:
        use_gpu = config["USE_GPU"].lower() == "true" and torch.cuda.is_available()
        device = torch.device('cuda' if use_gpu else 'cpu')

    try:
        if MODEL_PATH is not None:
            logger.info(f"Loading custom model from {MODEL_PATH}")
            model = torch.hub.load(config["MODEL_REPO"], 'custom', path=str(MODEL_PATH))
        else:
            logger.info(f"Loading {config['MODEL_NAME']} from {config['MODEL_REPO']}")
            model = torch.hub.load(config["MODEL_REPO"], config["MODEL_NAME"], pretrained=True)
        model.to(device)
        model.eval()
    except Exception:
        logger.exception("Error loading YOLOv5 model.")
        raise
    logger.info(f"Model loaded successfully on {device}.")
    return model


class Detector:
    """
    Wraps the object detection model.

    load() is slow and must finish before detect() can be used; detect()
    raises ModelNotReady until then.
    """

    def __init__(self, model_loader=None, confidence_threshold=CONFIDENCE_THRESHOLD):
        self.model_loader = model_loader or load_yolov5
        self.confidence_threshold = confidence_threshold
        self.model = None
        self.load_error = None
        self._load_lock = threading.Lock()

    @property
    def ready(self):
        return self.model is not None

    def load(self):
        with self._load_lock:
            if self.model is None:
                try:
                    self.model = self.model_loader()
                except Exception as e:
                    self.load_error = str(e)
                    raise
                self.load_error = None
        return self

    def detect(self, frame):
        """
        Detect objects in a BGR frame.
        Returns one Detection per detected instance.
        """
        if self.model is None:
            raise ModelNotReady("Detection model is not loaded yet")

        try:
            frame_rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        except cv2.error as e:
            raise DecodeFailure("Error converting image to RGB") from e

        results = self.model(frame_rgb)
        predictions = results.pandas().xyxy[0]
        detections = []

        for _, prediction in predictions.iterrows():
            confidence = float(prediction.get('confidence', 0))
            if confidence < self.confidence_threshold:
                continue
            x1, y1, x2, y2 = (float(prediction[k]) for k in ('xmin', 'ymin', 'xmax', 'ymax'))
            detections.append(Detection(
                label=str(prediction.get('name', 'unknown')),
                confidence=min(max(confidence, 0.0), 1.0),
                bounding_box={
                    "x": x1,
                    "y": y1,
                    "width": x2 - x1,
                    "height": y2 - y1,
                },
            ))

        logger.debug(f"Detected {len(detections)} objects")
        return detections


def decode_image(data):
    """Decode encoded image bytes (JPEG, PNG, ...) to a BGR frame."""
    if not data:
        raise DecodeFailure("Empty image data")
    nparr = np.frombuffer(data, np.uint8)
    try:
        frame = cv2.imdecode(nparr, cv2.IMREAD_COLOR)
    except cv2.error as e:
        raise DecodeFailure(f"Failed to decode image: {e}") from e
    if frame is None:
        raise DecodeFailure("Invalid image file.")
    return frame


def decode_frame(frame_b64):
    """Decode a base64 image string, or a data URL as produced by a browser webcam screenshot."""
    if frame_b64.startswith("data:"):
        _, _, frame_b64 = frame_b64.partition(",")
    try:
        img_bytes = base64.b64decode("".join(frame_b64.split()), validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeFailure(f"Failed to decode image: {e}") from e
    return decode_image(img_bytes)
