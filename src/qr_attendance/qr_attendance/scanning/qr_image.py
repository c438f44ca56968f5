from __future__ import annotations

import io
from typing import BinaryIO

import qrcode
from PIL import Image
from pyzbar.pyzbar import decode as pyzbar_decode

from ..core.exceptions import EmptyPayload


def render_payload_png(payload: str, *, box_size: int = 10, border: int = 4) -> bytes:
    """Render a payload string as a PNG QR code."""

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


def decode_qr_image(stream: BinaryIO) -> str:
    """Decode the first QR code found in an uploaded image."""

    img = Image.open(stream).convert("RGB")
    decoded = pyzbar_decode(img)
    if not decoded:
        raise EmptyPayload("No QR code found in the image")
    return decoded[0].data.decode("utf-8").strip()
