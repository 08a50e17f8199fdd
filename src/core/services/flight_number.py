"""Flight-number normalization."""

from __future__ import annotations

import logging
import re

import httpx

from core.errors import ProviderError
from core.interfaces.providers import FlightNumberExtractor

logger = logging.getLogger(__name__)

FLIGHT_NUMBER_RE = re.compile(r"[A-Z]{2,3}\d{3,4}")
NOT_FOUND = "NOT_FOUND"


def is_canonical_flight_number(value: str) -> bool:
    return FLIGHT_NUMBER_RE.fullmatch(value) is not None


async def normalize_flight_number(
    raw: str,
    *,
    extractor: FlightNumberExtractor,
) -> str | None:
    """Return a canonical flight number for `raw`, or `None` when there is none.

    Canonical input is returned verbatim without calling the extractor.
    """

    if is_canonical_flight_number(raw):
        return raw
    if not raw or not raw.strip():
        return None

    try:
        extracted = await extractor.extract_flight_number(raw)
    except (ProviderError, httpx.HTTPError) as exc:
        logger.warning("Flight number extraction failed: %s", exc)
        return None
    except Exception:
        logger.exception("Flight number extraction raised unexpectedly")
        return None

    if not extracted:
        return None
    candidate = "".join(extracted.split()).upper()
    if candidate == NOT_FOUND or not is_canonical_flight_number(candidate):
        return None
    return candidate
