"""Scannable image rendering for issued QR codes."""

import io
import json

import qrcode

from herbtrace.qr.models import QRCode


def qr_payload(code: QRCode, reference: str) -> str:
    """JSON payload embedded in the printed tag."""
    return json.dumps(
        {
            "id": str(code.id),
            "url": code.verification_url,
            "type": code.entity_kind.value,
            "number": reference,
        },
        sort_keys=True,
    )


def render_png(code: QRCode, reference: str, box_size: int = 10, border: int = 4) -> bytes:
    """Render a code as PNG bytes.

    Args:
        code: Issued code
        reference: Lot number or plant tag printed alongside
        box_size: Pixels per module
        border: Quiet zone width in modules

    Returns:
        PNG image bytes
    """
    qr = qrcode.QRCode(
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
    )
    qr.add_data(qr_payload(code, reference))
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()
