from __future__ import annotations

from typing import Optional

import cv2
import numpy as np
from PIL import Image
from pyzbar.pyzbar import ZBarSymbol
from pyzbar.pyzbar import decode as pyzbar_decode

from ..verification.model import CodeProbe


def to_pil(frame) -> Image.Image:
    """Accept a PIL image or an OpenCV BGR array."""
    if isinstance(frame, Image.Image):
        return frame.convert("RGB")
    array = np.asarray(frame)
    if array.ndim == 2:
        return Image.fromarray(array)
    return Image.fromarray(cv2.cvtColor(array, cv2.COLOR_BGR2RGB))


class QRCodeDecoder:
    """Reads the first QR code visible in a frame."""

    def decode(self, frame) -> Optional[CodeProbe]:
        decoded = pyzbar_decode(to_pil(frame), symbols=[ZBarSymbol.QRCODE])
        if not decoded:
            return None
        payload = decoded[0].data.decode("utf-8", errors="replace").strip()
        if not payload:
            return None
        return CodeProbe(payload=payload)
