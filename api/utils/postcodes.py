"""UK postcode validation, formatting and geocoding (postcodes.io)."""
from __future__ import annotations

import logging
import re
from typing import Optional

import httpx
from sqlalchemy.orm import Session

from config import settings
from models import UKPostcode

logger = logging.getLogger(__name__)

UK_POSTCODE_RE = re.compile(r"^([A-Z]{1,2}[0-9][A-Z0-9]?)\s*([0-9][A-Z]{2})$", re.IGNORECASE)


class PostcodeLookupError(Exception):
    """Raised when the geocoder cannot be reached or answers with an error."""
    pass


class PostcodeRateLimited(PostcodeLookupError):
    """postcodes.io answered 429."""
    pass


def is_valid_uk_postcode(postcode: str | None) -> bool:
    return bool(postcode) and bool(UK_POSTCODE_RE.match(postcode.strip()))


def format_postcode(postcode: str) -> str:
    """Uppercase, drop spaces, then put one space before the inward code.

    >>> format_postcode("sw1a1aa")
    'SW1A 1AA'
    """
    cleaned = postcode.upper().replace(" ", "")
    if len(cleaned) >= 5:
        return f"{cleaned[:-3]} {cleaned[-3:]}"
    return cleaned


def lookup_postcode(
    db: Session,
    postcode: str,
    client: Optional[httpx.Client] = None,
) -> Optional[dict]:
    """
    Resolve a UK postcode to coordinates.

    Checks the uk_postcodes cache first, then postcodes.io. Successful
    remote lookups are cached.

    Returns:
        {"postcode", "latitude", "longitude"} or None when postcode is unknown

    Raises:
        ValueError: invalid postcode format
        PostcodeRateLimited: upstream 429
        PostcodeLookupError: network failure or unexpected upstream status
    """
    if not is_valid_uk_postcode(postcode):
        raise ValueError(f"Invalid UK postcode: {postcode}")
    formatted = format_postcode(postcode)

    cached = db.query(UKPostcode).filter(UKPostcode.postcode == formatted).first()
    if cached:
        return {"postcode": cached.postcode, "latitude": cached.latitude, "longitude": cached.longitude}

    url = f"{settings.POSTCODES_API_URL.rstrip('/')}/postcodes/{formatted.replace(' ', '')}"
    own_client = client is None
    if own_client:
        client = httpx.Client(timeout=settings.POSTCODES_TIMEOUT_S)
    try:
        response = client.get(url)
    except httpx.HTTPError as e:
        logger.warning("postcode lookup failed for %s: %s", formatted, e)
        raise PostcodeLookupError(f"Postcode service unavailable: {e}") from e
    finally:
        if own_client:
            client.close()

    if response.status_code == 404:
        return None
    if response.status_code == 429:
        raise PostcodeRateLimited("Postcode service rate limit exceeded")
    if response.status_code != 200:
        logger.warning("postcode lookup for %s returned %s", formatted, response.status_code)
        raise PostcodeLookupError(f"Postcode service error: {response.status_code}")

    try:
        body = response.json()
    except ValueError as e:
        logger.warning("postcode lookup for %s returned a non-JSON body", formatted)
        raise PostcodeLookupError("Postcode service returned an invalid response") from e
    if not isinstance(body, dict):
        raise PostcodeLookupError("Postcode service returned an invalid response")

    result = body.get("result") or {}
    lat, lng = result.get("latitude"), result.get("longitude")
    if lat is None or lng is None:
        return None

    db.merge(UKPostcode(postcode=formatted, latitude=lat, longitude=lng))
    db.commit()
    return {"postcode": formatted, "latitude": lat, "longitude": lng}
