"""
Provider-agnostic helpers applied to raw search results.

Every adapter flattens its provider's item into a plain dict using these
generic keys before calling anything here:

  link, product_link, related_content_link   — candidate URLs, best first
  title, description                         — listing text
  thumbnail, image                           — listing image
  price, extracted_price                     — number or price string
"""
from __future__ import annotations

import re
from typing import Any, Optional
from urllib.parse import quote, urlsplit

import config

_NON_QUERY_CHARS = re.compile(r"[^a-zA-Z0-9\s]")
_PRICE_RE        = re.compile(r"[0-9,]+(\.[0-9]+)?")


# ── Text normaliser ───────────────────────────────────────────────────────────

def clean_query(text: Optional[str], max_words: Optional[int] = None) -> str:
    """
    Make free text safe to use as a search term.
    Punctuation becomes a space, whitespace collapses, and only the first
    max_words words are kept (providers degrade on long queries).
    """
    if not text:
        return ""
    limit = config.QUERY_MAX_WORDS if max_words is None else max_words
    words = _NON_QUERY_CHARS.sub(" ", str(text)).split()
    return " ".join(words[:limit])


# ── Price extractor ───────────────────────────────────────────────────────────

def extract_price(raw: Any) -> float:
    """Coerce '$1,249.99', 'From 12.50 USD', 42 … to a number. 0 when absent."""
    if isinstance(raw, bool):
        return 0
    if isinstance(raw, (int, float)):
        return raw
    if not raw:
        return 0
    m = _PRICE_RE.search(str(raw))
    if not m:
        return 0
    digits = m.group(0).replace(",", "")
    try:
        return float(digits)
    except ValueError:
        # a run of separators only, e.g. ","
        return 0


# ── URL resolver ──────────────────────────────────────────────────────────────

def as_text(value: Any) -> Optional[str]:
    """Non-empty string or None. Providers occasionally put numbers or objects in URL fields."""
    if isinstance(value, str) and value:
        return value
    return None


def resolve_url(item: dict) -> str:
    """
    Waterfall — first usable value wins:
      direct link → product page → related content → shopping search for the
      title → fixed fallback.
    """
    for key in ("link", "product_link", "related_content_link"):
        url = as_text(item.get(key))
        if url:
            return url
    title = item.get("title") or item.get("description") or ""
    if title:
        return f"{config.SHOPPING_SEARCH_URL}{quote(str(title), safe='')}"
    return config.FALLBACK_URL


# ── Candidate validator ───────────────────────────────────────────────────────

def _host(url: str) -> str:
    if not isinstance(url, str):
        return ""
    try:
        return (urlsplit(url).hostname or "").lower()
    except ValueError:
        return ""


def is_video_host(url: Optional[str]) -> bool:
    if not url:
        return False
    host = _host(url)
    return any(host == d or host.endswith("." + d) for d in config.VIDEO_DOMAINS)


def is_valid_product(item: dict) -> bool:
    """
    Conservative gate applied to every raw result before it becomes a
    ProductCandidate. Rejects video hosts, review videos, image-less listings
    and listings without a positive price.
    """
    image = as_text(item.get("thumbnail")) or as_text(item.get("image")) or ""
    urls  = (item.get("link"), item.get("url"), resolve_url(item), image)
    if any(is_video_host(u) for u in urls):
        return False

    title = str(item.get("title") or item.get("description") or "").lower()
    if "review" in title and "video" in title:
        return False

    if not image:
        return False

    price = extract_price(item.get("price") or item.get("extracted_price"))
    return price > 0
