from __future__ import annotations

import io
import json

import qrcode

from ..core.enums import Population


def badge_payload(population: Population, person_id: int) -> str:
    """The structured payload printed on a student/teacher badge."""
    return json.dumps({"personId": int(person_id), "type": Population(population).value}, separators=(",", ":"))


def render_badge_png(payload: str, *, box_size: int = 10, border: int = 2) -> bytes:
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
    )
    qr.add_data(payload)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()
