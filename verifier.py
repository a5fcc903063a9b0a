"""
verifier.py — semantic re-check of raw candidates by the Vision-Language Service.

The model is a soft oracle: it may only ever narrow the list. If its reply is
not a non-empty JSON array of valid indices, the input list comes back
unchanged.
"""
from __future__ import annotations

import logging
from typing import Optional, Sequence

import config
from errors import ProviderError, VerificationParseError
from providers.base import VisionLanguageService, parse_json_response
from search_backends.base import ProductCandidate

logger = logging.getLogger(__name__)

VERIFY_PROMPT = """Context: User is analyzing: "{context}".

Task: Identify items that are the Visual Match of the user's product.

Rules:
1. Accept different brand names (white label/factory unbranded is GOOD).
2. Reject parts, accessories, or boxes (e.g. if user wants a drone, reject "propellers only").
3. Reject completely different items.

Return a JSON array of indices for the matching items.

List:
{listing}

Output JSON: [0, 2, 5...]"""


def build_listing(candidates: Sequence[ProductCandidate]) -> str:
    return "\n".join(
        f"[{i}] {c.description} ({c.vendor}) - ${c.price}"
        for i, c in enumerate(candidates)
    )


def _decode_indices(raw: str) -> list[int]:
    try:
        data = parse_json_response(raw, "verifier")
    except ValueError as exc:
        raise VerificationParseError(str(exc)) from exc

    if not isinstance(data, list):
        raise VerificationParseError(f"expected a JSON array, got {type(data).__name__}")
    if not data:
        raise VerificationParseError("empty index array")

    indices = []
    for value in data:
        # bool is an int subclass, so true/false are not indices
        if isinstance(value, bool) or not isinstance(value, int):
            raise VerificationParseError(f"non-integer index {value!r}")
        indices.append(value)
    return indices


def parse_indices(raw: Optional[str]) -> Optional[list[int]]:
    """Indices the model accepted, or None when the reply is unusable."""
    try:
        return _decode_indices(raw or "")
    except VerificationParseError as exc:
        logger.warning("Verification reply unusable (%s) — keeping raw results", exc)
        return None


def apply_indices(
    candidates: list[ProductCandidate],
    indices: Optional[list[int]],
) -> list[ProductCandidate]:
    """Keep the candidates at `indices` (original order); identity when nothing usable."""
    if not indices:
        return candidates
    wanted = set(indices)
    kept = [c for i, c in enumerate(candidates) if i in wanted]
    if not kept:
        logger.warning("Verification indices %s out of range — keeping raw results", indices)
        return candidates
    return kept


async def verify(
    service: VisionLanguageService,
    candidates: list[ProductCandidate],
    context: str,
) -> list[ProductCandidate]:
    """Ask the model which candidates really are the product described by `context`."""
    if not candidates:
        return []

    listed = candidates[: config.VERIFY_MAX_ITEMS]
    prompt = VERIFY_PROMPT.format(context=context, listing=build_listing(listed))

    try:
        raw = await service.generate(prompt, json_mode=True)
    except ProviderError as exc:
        logger.warning("Verification failed, returning raw results: %s", exc)
        return candidates

    indices = parse_indices(raw)
    if indices:
        # only positions that were actually shown to the model count
        indices = [i for i in indices if 0 <= i < len(listed)]
    verified = apply_indices(candidates, indices)
    logger.info("Verifier kept %d/%d candidates", len(verified), len(candidates))
    return verified
