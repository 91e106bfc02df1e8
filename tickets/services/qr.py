import base64
import io

import qrcode
from qrcode.exceptions import DataOverflowError

from ..core.errors import AppError, ErrorKind


class QrEncodingError(AppError):
    kind = ErrorKind.INTERNAL
    default_detail = "The URL could not be encoded as a QR code"


def encode(url: str, box_size: int = 10, border: int = 4) -> bytes:
    """Render ``url`` as a QR code and return the PNG bytes."""
    qr = qrcode.QRCode(
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
    )
    qr.add_data(url)
    try:
        qr.make(fit=True)
    except (DataOverflowError, ValueError) as exc:
        # newer qrcode releases report overflow as an invalid version
        raise QrEncodingError(f"URL of {len(url)} characters is too long for a QR code") from exc

    img = qr.make_image(fill_color="black", back_color="white")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def encode_base64(url: str, box_size: int = 10, border: int = 4) -> str:
    """Same image as ``encode``, base64 encoded for inline ``data:`` URIs."""
    return base64.b64encode(encode(url, box_size=box_size, border=border)).decode()
