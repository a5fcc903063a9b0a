"""
SerpApi HTTP client shared by every search engine we use.

Engines:
  google_images    → canonical reference image lookup (reference.py)
  google_lens      → reverse-image / visual search   (lens_backend.py)
  google_shopping  → keyword shopping search          (shopping_backend.py)

API docs: https://serpapi.com/search-api

Any transport, HTTP or payload problem is raised as ProviderError; callers
decide whether that means "no results".
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional

import aiohttp

import config
from errors import ProviderError

logger = logging.getLogger(__name__)


class SerpApiClient:

    def __init__(self, api_key: str, timeout: Optional[float] = None) -> None:
        self._key     = api_key
        self._timeout = timeout

    async def query(self, engine: str, params: dict) -> dict:
        """Single GET against the search endpoint. Returns the decoded JSON body."""
        query_params = {"engine": engine, **{k: str(v) for k, v in params.items()}}
        query_params["api_key"] = self._key

        timeout = self._timeout if self._timeout is not None else config.HTTP_TIMEOUT
        t0 = time.monotonic()
        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(
                    config.SERPAPI_URL,
                    params=query_params,
                    timeout=aiohttp.ClientTimeout(total=timeout),
                ) as resp:
                    if resp.status != 200:
                        text = await resp.text()
                        raise ProviderError(f"SerpApi {engine} error {resp.status}: {text[:200]}")
                    data = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            raise ProviderError(f"SerpApi {engine} request failed: {exc!r}") from exc

        latency_ms = int((time.monotonic() - t0) * 1000)

        if not isinstance(data, dict):
            raise ProviderError(f"SerpApi {engine} returned {type(data).__name__}, expected object")
        if data.get("error"):
            raise ProviderError(f"SerpApi {engine}: {data['error']}")

        logger.debug("SerpApi %s OK in %dms", engine, latency_ms)
        return data
