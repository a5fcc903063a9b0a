"""
Tests for search_backends/shopping_backend.py.

Covers:
  - shopping_results → ProductCandidate mapping (tier, vendor fallbacks, condition)
  - quality score from rating (round half up, clamped, default 8)
  - request params: normalised query, price-ascending sort, server cap
  - provider failure / empty query → empty list
"""
from __future__ import annotations

import pytest

import config
from conftest import FakeSerpApi
from errors import ProviderError
from search_backends.shopping_backend import KeywordSearchBackend, quality_from_rating


def shopping_item(i: int, **overrides) -> dict:
    item = {
        "position":        i + 1,
        "title":           f"Drone X200 listing {i}",
        "product_link":    f"https://www.google.com/shopping/product/{i}",
        "source":          f"Store {i}",
        "price":           f"${20 + i}.00",
        "extracted_price": 20.0 + i,
        "thumbnail":       f"https://img.example.com/s{i}.jpg",
        "rating":          4.5,
    }
    item.update(overrides)
    return item


@pytest.mark.asyncio
class TestKeywordSearch:
    async def test_maps_shopping_results(self):
        fake = FakeSerpApi({"google_shopping": {"shopping_results": [shopping_item(0)]}})
        results = await KeywordSearchBackend(fake).search("Acme Drone X200")

        assert len(results) == 1
        c = results[0]
        assert c.tier == "Market Option"
        assert c.vendor == "Store 0"
        assert c.price == 20.0
        assert c.url == "https://www.google.com/shopping/product/0"
        assert c.probable_flaws == "New"
        assert c.quality_score == 9
        assert c.confidence_score == 80

    async def test_request_params(self):
        fake = FakeSerpApi({"google_shopping": {"shopping_results": []}})
        await KeywordSearchBackend(fake).search("Acme Drone X200 (Grey) — 2024!")

        engine, params = fake.calls[0]
        assert engine == "google_shopping"
        assert params["q"] == "Acme Drone X200 Grey 2024"
        assert params["sort"] == config.SHOPPING_SORT
        assert params["num"] == config.SHOPPING_NUM_RESULTS
        assert params["gl"] == config.SEARCH_COUNTRY

    async def test_direct_link_preferred(self):
        item = shopping_item(0, link="https://store.example.com/x200")
        fake = FakeSerpApi({"google_shopping": {"shopping_results": [item]}})
        results = await KeywordSearchBackend(fake).search("x200")
        assert results[0].url == "https://store.example.com/x200"

    async def test_price_string_used_without_extracted_price(self):
        item = shopping_item(0, extracted_price=None, price="$1,049.50")
        fake = FakeSerpApi({"google_shopping": {"shopping_results": [item]}})
        results = await KeywordSearchBackend(fake).search("x200")
        assert results[0].price == 1049.5

    async def test_vendor_fallbacks(self):
        items = [
            shopping_item(0, source=None, merchant={"name": "Merchant Co"}),
            shopping_item(1, source=None),
        ]
        fake = FakeSerpApi({"google_shopping": {"shopping_results": items}})
        results = await KeywordSearchBackend(fake).search("x200")
        assert [c.vendor for c in results] == ["Merchant Co", "Global Marketplace"]

    async def test_condition_becomes_flaws(self):
        item = shopping_item(0, second_hand_condition="refurbished")
        fake = FakeSerpApi({"google_shopping": {"shopping_results": [item]}})
        results = await KeywordSearchBackend(fake).search("x200")
        assert results[0].probable_flaws == "refurbished"

    async def test_drops_invalid_items(self):
        items = [
            shopping_item(0),
            shopping_item(1, thumbnail=""),
            shopping_item(2, extracted_price=0, price="Free"),
            shopping_item(3, link="https://youtu.be/abc"),
        ]
        fake = FakeSerpApi({"google_shopping": {"shopping_results": items}})
        results = await KeywordSearchBackend(fake).search("x200")
        assert [c.vendor for c in results] == ["Store 0"]

    async def test_non_list_results_returns_empty(self):
        fake = FakeSerpApi({"google_shopping": {"shopping_results": {"first": shopping_item(0)}}})
        assert await KeywordSearchBackend(fake).search("x200") == []

    async def test_non_string_link_ignored(self):
        fake = FakeSerpApi({"google_shopping": {"shopping_results": [shopping_item(0, link=12345)]}})
        results = await KeywordSearchBackend(fake).search("x200")

        assert len(results) == 1
        assert results[0].url == "https://www.google.com/shopping/product/0"

    async def test_provider_error_returns_empty(self):
        fake = FakeSerpApi({"google_shopping": ProviderError("timeout")})
        assert await KeywordSearchBackend(fake).search("x200") == []

    async def test_empty_query_makes_no_call(self):
        fake = FakeSerpApi()
        assert await KeywordSearchBackend(fake).search("!!!") == []
        assert fake.calls == []


class TestQualityFromRating:
    @pytest.mark.parametrize("rating,score", [
        (4.5, 9),
        (4.25, 9),      # 8.5 rounds half up
        (3.0, 6),
        (5, 10),
        (0.1, 1),       # clamped to 1
        (7, 10),        # clamped to 10
        (None, 8),
        ("n/a", 8),
        (0, 8),
        ("4.0", 8),
    ])
    def test_scores(self, rating, score):
        assert quality_from_rating(rating) == score
