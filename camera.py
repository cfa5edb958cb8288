import logging
import time
from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np

from frame_rate import FpsMeter

logger = logging.getLogger(__name__)


@dataclass
class CameraFrame:
    frame: Optional[np.ndarray]
    timestamp: float
    ok: bool


class CameraStream:
    def __init__(self, camera_index: int = 0, width: int = 600, height: int = 500, target_fps: int = 30):
        self.camera_index = camera_index
        self.width = width
        self.height = height
        self.target_fps = target_fps
        self._capture: Optional[cv2.VideoCapture] = None
        self._last_time = time.time()
        self.fps_meter = FpsMeter()

    @property
    def fps(self) -> float:
        return self.fps_meter.fps

    def open(self) -> bool:
        capture = cv2.VideoCapture(self.camera_index)
        if not capture.isOpened():
            logger.error("[Camera] could not open camera %d", self.camera_index)
            capture.release()
            return False
        capture.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        capture.set(cv2.CAP_PROP_FPS, self.target_fps)
        self._capture = capture
        self.fps_meter.reset()
        logger.info("[Camera] opened camera %d at %dx%d", self.camera_index, self.width, self.height)
        return True

    def read(self) -> CameraFrame:
        if self._capture is None:
            return CameraFrame(None, time.time(), False)

        ok, frame = self._capture.read()
        now = time.time()
        if not ok:
            return CameraFrame(None, now, False)

        # Some webcams ignore the requested size; keep the pixel space the classifier sees stable.
        if frame.shape[1] != self.width or frame.shape[0] != self.height:
            frame = cv2.resize(frame, (self.width, self.height))

        if self.target_fps > 0:
            min_frame_time = 1.0 / float(self.target_fps)
            elapsed = now - self._last_time
            if elapsed < min_frame_time:
                time.sleep(min_frame_time - elapsed)
                now = time.time()
        self._last_time = now
        self.fps_meter.tick(now)
        return CameraFrame(frame, now, True)

    def release(self) -> None:
        if self._capture is not None:
            self._capture.release()
            self._capture = None
