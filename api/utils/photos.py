"""Clock-in/out photo storage (base64 payloads written under PHOTO_DIR)."""
from __future__ import annotations

import base64
import binascii
import uuid
from pathlib import Path

from config import settings

MAX_PHOTO_BYTES = 5 * 1024 * 1024

_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}


def decode_photo(data: str) -> tuple[bytes, str]:
    """
    Decode a base64 photo (raw or data URL) into (bytes, file extension).

    Raises:
        ValueError: bad base64, unsupported media type, or too large
    """
    ext = "jpg"
    payload = data.strip()
    if payload.startswith("data:"):
        header, _, payload = payload.partition(",")
        media_type = header[5:].split(";")[0].lower()
        if media_type not in _EXTENSIONS:
            raise ValueError(f"Unsupported photo type: {media_type}")
        ext = _EXTENSIONS[media_type]

    try:
        raw = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError("Photo is not valid base64") from e
    if not raw:
        raise ValueError("Photo is empty")
    if len(raw) > MAX_PHOTO_BYTES:
        raise ValueError("Photo exceeds 5 MB")
    return raw, ext


def store_photo(raw: bytes, ext: str, worker_id: int, kind: str) -> str:
    """Write decoded bytes and return the path relative to PHOTO_DIR, e.g. "42/clock_in_<uuid>.jpg"."""
    rel = Path(str(worker_id)) / f"{kind}_{uuid.uuid4().hex}.{ext}"
    target = Path(settings.PHOTO_DIR) / rel
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(raw)
    return rel.as_posix()


def save_photo(data: str, worker_id: int, kind: str) -> str:
    raw, ext = decode_photo(data)
    return store_photo(raw, ext, worker_id, kind)
