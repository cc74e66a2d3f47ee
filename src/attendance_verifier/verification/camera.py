from __future__ import annotations

import logging
import threading
from typing import ClassVar, Optional, Set, Tuple

import cv2
import numpy as np

from ..core.constants import DEFAULT_CAMERA_DEVICE_ID, DEFAULT_CAMERA_RESOLUTION
from ..core.exceptions import CameraUnavailable
from .session import FrameSource

logger = logging.getLogger(__name__)


class OpenCVCameraSource(FrameSource):
    """Camera frames through OpenCV, one owner per device."""

    _devices_in_use: ClassVar[Set[int]] = set()
    _devices_lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(
        self,
        device_id: int = DEFAULT_CAMERA_DEVICE_ID,
        resolution: Tuple[int, int] = DEFAULT_CAMERA_RESOLUTION,
    ):
        self.device_id = int(device_id)
        self.resolution = resolution
        self._cap: Optional[cv2.VideoCapture] = None

    def open(self) -> None:
        with self._devices_lock:
            if self.device_id in self._devices_in_use:
                raise CameraUnavailable(f"Camera {self.device_id} is already in use by another session")
            self._devices_in_use.add(self.device_id)

        cap = cv2.VideoCapture(self.device_id)
        if not cap.isOpened():
            cap.release()
            with self._devices_lock:
                self._devices_in_use.discard(self.device_id)
            raise CameraUnavailable(f"Cannot open camera {self.device_id}")

        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.resolution[0])
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.resolution[1])
        # Keep only the newest frame; stale frames are useless to the scanner.
        cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)
        self._cap = cap

        logger.info(
            "Camera %s opened at %dx%d",
            self.device_id,
            int(cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
            int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
        )

    def read(self) -> Optional[np.ndarray]:
        if self._cap is None:
            return None
        ok, frame = self._cap.read()
        if not ok:
            logger.debug("Camera %s returned no frame", self.device_id)
            return None
        return frame

    def release(self) -> None:
        if self._cap is None:
            return
        self._cap.release()
        self._cap = None
        with self._devices_lock:
            self._devices_in_use.discard(self.device_id)
