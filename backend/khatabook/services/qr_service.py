"""Customer QR codes: JSON payload rendered as a PNG."""
import json
import logging
import re
import time
from io import BytesIO
from typing import Optional

import qrcode
from qrcode.constants import ERROR_CORRECT_M

from khatabook.core.config import settings
from khatabook.core.exceptions import InvalidQRPayload
from khatabook.models.customer import Customer
from khatabook.schemas.customer import CustomerQRPayload

logger = logging.getLogger(__name__)


def customer_qr_payload(customer: Customer, timestamp_ms: Optional[int] = None) -> str:
    """'{"type": "customer", "id": ..., "name": ..., "timestamp": <epoch ms>}'"""
    payload = CustomerQRPayload(
        id=customer.id,
        name=customer.name,
        timestamp=timestamp_ms if timestamp_ms is not None else int(time.time() * 1000),
    )
    return json.dumps(payload.model_dump())


def render_qr_png(data: str) -> BytesIO:
    qr = qrcode.QRCode(
        error_correction=ERROR_CORRECT_M,
        box_size=settings.QR_BOX_SIZE,
        border=settings.QR_BORDER,
    )
    qr.add_data(data)
    qr.make(fit=True)
    image = qr.make_image(fill_color="black", back_color="white")

    buffer = BytesIO()
    image.save(buffer)  # PNG by default
    buffer.seek(0)
    return buffer


def qr_filename(customer_name: str) -> str:
    """qr-<name-with-dashes>.png"""
    slug = re.sub(r"\s+", "-", customer_name.strip()).lower()
    # Header-safe: Content-Disposition is latin-1
    slug = re.sub(r"[^a-z0-9-]", "", slug) or "customer"
    return f"qr-{slug}.png"


def parse_customer_qr(data: str) -> CustomerQRPayload:
    """
    Decode a scanned payload.

    Raises:
        InvalidQRPayload: not JSON or not a customer payload.
    """
    try:
        raw = json.loads(data)
    except (TypeError, json.JSONDecodeError) as e:
        raise InvalidQRPayload("QR payload is not JSON") from e
    if not isinstance(raw, dict) or raw.get("type") != "customer":
        raise InvalidQRPayload("QR payload is not a customer code")
    try:
        return CustomerQRPayload.model_validate(raw)
    except ValueError as e:
        raise InvalidQRPayload("QR payload is missing customer fields") from e
