# camera.py
import logging
import time
import cv2
from .errors import CameraUnavailable

logger = logging.getLogger(__name__)


class CameraCapture:
    """Grabs a single frame from a camera device index or stream URL."""

    def __init__(self, camera_url, max_read_attempts=3, backoff=0.5):
        self.camera_url = int(camera_url) if str(camera_url).isdigit() else camera_url
        self.max_read_attempts = max_read_attempts
        self.backoff = backoff
        self.resolution = None

    def _open(self):
        cap = cv2.VideoCapture(self.camera_url)
        if not cap.isOpened():
            cap.release()
            return None
        self.resolution = f"{int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))}x{int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))}"
        return cap

    def grab_frame(self):
        cap = None
        try:
            for attempt in range(1, self.max_read_attempts + 1):
                if cap is None:
                    cap = self._open()
                if cap is not None:
                    success, frame = cap.read()
                    if success and frame is not None:
                        logger.info(f"Captured frame ({self.resolution}) from {self.camera_url}")
                        return frame
                    logger.warning(f"Failed to read frame from {self.camera_url}")
                    cap.release()
                    cap = None
                else:
                    logger.warning(f"Failed to open camera stream: {self.camera_url}")
                if attempt < self.max_read_attempts:
                    logger.info(f"Reconnect attempt {attempt}/{self.max_read_attempts - 1} for {self.camera_url}")
                    time.sleep(self.backoff * 2 ** (attempt - 1))
        finally:
            if cap is not None:
                cap.release()
        logger.error(f"No frame from {self.camera_url} after {self.max_read_attempts} attempts")
        raise CameraUnavailable(f"Could not read a frame from {self.camera_url}")
