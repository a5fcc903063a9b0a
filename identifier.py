"""
identifier.py — derive a product name ("visual fingerprint") from a photo
and/or a free-text description.

Never raises: a failed model call simply means "no fingerprint", and the
text description (or the placeholder) takes over.
"""
from __future__ import annotations

import logging
from typing import Optional

from errors import ProviderError
from providers.base import VisionLanguageService
from search_backends.normalize import clean_query

logger = logging.getLogger(__name__)

UNKNOWN_PRODUCT = "Unknown Product"

IDENTIFY_PROMPT = (
    "Identify this product. Return ONLY the Brand and specific Model Name. "
    "No extra text."
)


async def fingerprint_image(service: VisionLanguageService, image: bytes) -> str:
    """Brand + model for the photo, or '' when the model fails."""
    try:
        raw = await service.generate(
            IDENTIFY_PROMPT,
            image,
            max_output_tokens=50,
            temperature=0.1,
        )
    except ProviderError as exc:
        logger.warning("Visual fingerprint failed: %s", exc)
        return ""

    lines = [ln.strip().strip('"').strip() for ln in (raw or "").splitlines()]
    return next((ln for ln in lines if ln), "")


async def identify(
    service: VisionLanguageService,
    image: Optional[bytes] = None,
    text: Optional[str] = None,
) -> str:
    """
    Product name for the search. Order: image fingerprint → normalised text →
    UNKNOWN_PRODUCT. Always returns a non-empty string.
    """
    name = ""
    if image:
        name = await fingerprint_image(service, image)
        if name:
            logger.info("Identified from image: %s", name)

    if not name and text:
        name = clean_query(text)
        if name:
            logger.info("Identified from text: %s", name)

    return name or UNKNOWN_PRODUCT
