from __future__ import annotations

from typing import Optional

import cv2
import face_recognition
import numpy as np
from PIL import Image

from ..verification.model import BiometricProbe


def to_rgb_array(frame) -> np.ndarray:
    """face_recognition wants a contiguous uint8 RGB array."""
    if isinstance(frame, Image.Image):
        return np.ascontiguousarray(np.asarray(frame.convert("RGB")), dtype=np.uint8)

    img = np.asarray(frame)
    if img.ndim == 2:
        img = cv2.cvtColor(img, cv2.COLOR_GRAY2BGR)
    elif img.shape[2] == 4:
        img = cv2.cvtColor(img, cv2.COLOR_BGRA2BGR)
    rgb = cv2.cvtColor(img, cv2.COLOR_BGR2RGB)
    return np.ascontiguousarray(rgb, dtype=np.uint8)


class FaceDescriptorDecoder:
    """Extracts the 128-d descriptor of the largest face in a frame."""

    def __init__(self, *, model: str = "hog", upsample: int = 1):
        self._model = model
        self._upsample = int(upsample)

    def decode(self, frame) -> Optional[BiometricProbe]:
        rgb = to_rgb_array(frame)
        boxes = face_recognition.face_locations(rgb, number_of_times_to_upsample=self._upsample, model=self._model)
        if not boxes:
            return None

        # (top, right, bottom, left); the closest person has the largest box.
        largest = max(boxes, key=lambda b: (b[2] - b[0]) * (b[1] - b[3]))
        encodings = face_recognition.face_encodings(rgb, [largest])
        if not encodings:
            return None
        return BiometricProbe.of(encodings[0])
