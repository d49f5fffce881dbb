"""Shrinking of inlined images and text for the local snapshot."""

from __future__ import annotations

import base64
import io
import logging
from dataclasses import dataclass

from PIL import Image

log = logging.getLogger("dashmanager.images")


@dataclass(frozen=True)
class SnapshotLimits:
    """Size caps applied to entities before they are written locally."""

    name: int = 100
    email: int = 120
    phone: int = 30
    text: int = 500
    address: int = 250
    # data URLs longer than this many characters are re-encoded
    image_chars: int = 50_000
    image_width: int = 300
    jpeg_quality: int = 60


def truncate(value: str | None, limit: int) -> str | None:
    if value is None or len(value) <= limit:
        return value
    return value[:limit]


def is_data_url(value: str | None) -> bool:
    return bool(value) and value.startswith("data:") and "," in value


def downscale_data_url(value: str | None, limits: SnapshotLimits) -> str | None:
    """Return ``value`` bounded to ``limits``.

    URLs and small payloads pass through unchanged. Oversized ``data:`` URLs
    are resized to at most ``limits.image_width`` pixels wide and re-encoded
    as JPEG. Payloads that cannot be decoded return ``None``.
    """
    if not is_data_url(value) or len(value) <= limits.image_chars:
        return value
    payload = value.partition(",")[2]
    try:
        raw = base64.b64decode(payload, validate=True)
        with Image.open(io.BytesIO(raw)) as img:
            img = img.convert("RGB")
            if img.width > limits.image_width:
                height = max(1, round(img.height * limits.image_width / img.width))
                img = img.resize(
                    (limits.image_width, height), Image.Resampling.LANCZOS
                )
            buf = io.BytesIO()
            img.save(buf, format="JPEG", quality=limits.jpeg_quality, optimize=True)
    except (ValueError, OSError) as exc:
        log.warning("Dropping undecodable image payload (%d chars): %s", len(value), exc)
        return None
    encoded = base64.b64encode(buf.getvalue()).decode("ascii")
    log.debug("Downscaled image payload from %d to %d chars", len(value), len(encoded))
    return f"data:image/jpeg;base64,{encoded}"
