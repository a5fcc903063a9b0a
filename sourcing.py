"""
sourcing.py — public interface for product sourcing.

Callers import only from here:
  from sourcing import run_search, AnalysisResult

Pipeline (strictly sequential — every stage feeds the next):
  1. Identify      → product name (placeholder when nothing works)
  2. Reference     → canonical image URL, or none
  3. Visual search → only when a reference exists
  4. Keyword search → only when step 3 produced nothing
  5. Verify        → model narrows the list (never empties it)
  6. Sort          → cheapest first
  7. Aggregate     → AnalysisResult, or NotFound when nothing survived

Provider failures never escape a stage; they look exactly like "no results".
Only ConfigurationError (before any network call) and NotFound reach the caller.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Awaitable, Callable, Mapping, Optional, Sequence

import config
import key_store
from errors import ConfigurationError, NotFound
from identifier import identify
from key_store import Credentials
from providers.base import VisionLanguageService, decode_image
from providers.manager import build_service
from reference import resolve_reference
from search_backends.base import ProductCandidate, SearchBackend
from search_backends.lens_backend import VisualSearchBackend
from search_backends.normalize import extract_price
from search_backends.serpapi import SerpApiClient
from search_backends.shopping_backend import KeywordSearchBackend
from verifier import verify

logger = logging.getLogger(__name__)

__all__ = [
    "AnalysisResult", "MarketAnalysis", "SearchContext", "SourcingPipeline",
    "first_non_empty", "run_search",
]

METHOD_VISUAL   = "Global Search"
METHOD_FALLBACK = "Text Fallback"

HONESTY_SCORE      = 95
UNCERTAINTY_REASON = "Verified SerpApi Results"

Stage = tuple[str, Callable[[], Awaitable[list[ProductCandidate]]]]


# ── Data model ────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SearchContext:
    """What the pipeline knows about the target so far."""
    product_name: str
    target_price: float = 0.0           # 0 = unknown
    canonical_url: Optional[str] = None
    method: str = METHOD_VISUAL         # which strategy produced the results


@dataclass(frozen=True)
class MarketAnalysis:
    average_market_price: str           # e.g. "$24.50"
    honesty_score: int
    uncertainty_reason: str


@dataclass(frozen=True)
class AnalysisResult:
    product_name: str
    identified_model: str               # method label, e.g. "Text Fallback"
    original_estimated_price: float
    market_analysis: MarketAnalysis
    options: tuple[ProductCandidate, ...] = field(default_factory=tuple)
    search_image_used: str = ""
    visual_analysis: str = ""

    def to_dict(self) -> dict:
        """JSON-ready shape consumed by the UI layer."""
        return {
            "productName":            self.product_name,
            "identifiedModel":        self.identified_model,
            "originalEstimatedPrice": self.original_estimated_price,
            "marketAnalysis": {
                "averageMarketPrice": self.market_analysis.average_market_price,
                "honestyScore":       self.market_analysis.honesty_score,
                "uncertaintyReason":  self.market_analysis.uncertainty_reason,
            },
            "options":                [o.to_dict() for o in self.options],
            "searchImageUsed":        self.search_image_used,
            "visualAnalysis":         self.visual_analysis,
        }


# ── Helpers ───────────────────────────────────────────────────────────────────

async def first_non_empty(stages: Sequence[Stage]) -> tuple[str, list[ProductCandidate]]:
    """
    Run stages in order and return (label, candidates) for the first one
    that finds anything. When all are empty, the last label tried is returned.
    """
    label = ""
    for label, run in stages:
        found = await run()
        logger.info("Stage '%s' → %d candidates", label, len(found))
        if found:
            return label, found
    return label, []


def dedupe(candidates: list[ProductCandidate]) -> list[ProductCandidate]:
    """Drop repeat offers for the same URL; first occurrence wins."""
    seen: set[str] = set()
    result = []
    for c in candidates:
        if c.url in seen:
            continue
        seen.add(c.url)
        result.append(c)
    return result


def summarize(context: SearchContext, options: list[ProductCandidate]) -> AnalysisResult:
    mean = sum(o.price for o in options) / len(options)
    basis = "Visual Reference" if context.canonical_url else "Text Description"
    return AnalysisResult(
        product_name             = context.product_name,
        identified_model         = context.method,
        original_estimated_price = context.target_price,
        market_analysis          = MarketAnalysis(
            average_market_price = f"${mean:.2f}",
            honesty_score        = HONESTY_SCORE,
            uncertainty_reason   = UNCERTAINTY_REASON,
        ),
        options                  = tuple(options),
        search_image_used        = context.canonical_url or "",
        visual_analysis          = f"Identified as {context.product_name}. Search based on {basis}.",
    )


# ── Orchestrator ──────────────────────────────────────────────────────────────

class SourcingPipeline:
    """One configured pipeline. Stateless between run() calls."""

    def __init__(
        self,
        service: VisionLanguageService,
        client: SerpApiClient,
        visual: Optional[SearchBackend] = None,
        keyword: Optional[SearchBackend] = None,
    ) -> None:
        self._service = service
        self._client  = client
        self._visual  = visual or VisualSearchBackend(client)
        self._keyword = keyword or KeywordSearchBackend(client)

    async def run(
        self,
        image: Optional[bytes] = None,
        text: Optional[str] = None,
        reference_url: Optional[str] = None,
        target_price: float = 0.0,
    ) -> AnalysisResult:
        # ── 1. Identification ────────────────────────────────────────────────
        name = await identify(self._service, image, text)
        context = SearchContext(product_name=name, target_price=target_price)

        # ── 2. Canonical reference ───────────────────────────────────────────
        canonical = await resolve_reference(
            self._client, name, image_provided=bool(image), reference_url=reference_url,
        )
        context = replace(context, canonical_url=canonical)

        # ── 3 + 4. Visual search, keyword fallback ───────────────────────────
        stages: list[Stage] = []
        backends: list[SearchBackend] = []
        if canonical:
            stages.append((METHOD_VISUAL, lambda: self._visual.search(canonical)))
            backends.append(self._visual)
        stages.append((METHOD_FALLBACK, lambda: self._keyword.search(name)))
        backends.append(self._keyword)
        logger.info("Search plan for '%s': %s", name, " → ".join(b.name for b in backends))

        method, options = await first_non_empty(stages)
        context = replace(context, method=method)
        options = dedupe(options)

        # ── 5. Verification ──────────────────────────────────────────────────
        if options:
            if config.VERIFY_INPUT_CAP > 0:
                options = options[: config.VERIFY_INPUT_CAP]
            verified = await verify(self._service, options, name)
            options = verified or options

        # ── 6. Cheapest first (stable on ties) ───────────────────────────────
        options.sort(key=lambda o: o.price)

        # ── 7. Outcome ───────────────────────────────────────────────────────
        if not options:
            logger.info("No candidates for '%s' after all fallbacks", name)
            raise NotFound(name)

        result = summarize(context, options)
        logger.info(
            "Search '%s' via %s → %d options, avg %s",
            name, method, len(options), result.market_analysis.average_market_price,
        )
        return result


# ── Public entry point ────────────────────────────────────────────────────────

async def run_search(
    image: Optional[str] = None,
    text: Optional[str] = None,
    reference_url: Optional[str] = None,
    target_price: Optional[str] = None,
    *,
    credentials: Optional[Credentials] = None,
    overrides: Optional[Mapping[str, str]] = None,
) -> AnalysisResult:
    """
    Find cheaper offers for a product.

    Args:
        image:         base64 photo (bare or data: URL), optional.
        text:          free-text description, optional.
        reference_url: link to a product image, optional.
        target_price:  price the user currently pays, e.g. "$129.99", optional.
        credentials:   explicit keys; resolved from env/overrides when omitted.
        overrides:     user-supplied keys, consulted after the environment.

    Raises:
        ConfigurationError: a required key is missing (no network call made).
        NotFound:           nothing survived, including the keyword fallback.
    """
    creds = credentials or key_store.resolve(overrides)
    if not creds.serpapi_key:
        raise ConfigurationError("SERPAPI_API_KEY is not set.")
    service = build_service(creds)

    image_bytes = None
    if image:
        try:
            image_bytes = decode_image(image)
        except ValueError as exc:
            logger.warning("Ignoring unreadable image payload: %s", exc)

    pipeline = SourcingPipeline(service, SerpApiClient(creds.serpapi_key))
    return await pipeline.run(
        image=image_bytes,
        text=text,
        reference_url=reference_url,
        target_price=float(extract_price(target_price)),
    )
