"""
Tests for identifier.py.

Covers:
  - image fingerprint: prompt constraints, first line only, failure → ''
  - text fallback via clean_query
  - placeholder when nothing identifies the product
"""
from __future__ import annotations

import pytest

from conftest import make_service
from errors import ProviderError
from identifier import UNKNOWN_PRODUCT, fingerprint_image, identify

IMAGE = b"\xff\xd8\xff\xe0jpeg"


@pytest.mark.asyncio
class TestFingerprintImage:
    async def test_returns_model_answer(self):
        service = make_service(["  Acme Drone X200 \n"])
        assert await fingerprint_image(service, IMAGE) == "Acme Drone X200"

    async def test_low_temperature_and_small_token_ceiling(self):
        service = make_service(["Acme Drone X200"])
        await fingerprint_image(service, IMAGE)

        args, kwargs = service.generate.call_args
        assert args[1] == IMAGE
        assert "ONLY the Brand" in args[0]
        assert kwargs["temperature"] <= 0.2
        assert kwargs["max_output_tokens"] <= 64

    async def test_keeps_first_non_empty_line(self):
        service = make_service(['\n"Acme Drone X200"\nThis is a quadcopter.'])
        assert await fingerprint_image(service, IMAGE) == "Acme Drone X200"

    async def test_provider_error_returns_empty(self):
        service = make_service([ProviderError("timeout")])
        assert await fingerprint_image(service, IMAGE) == ""


@pytest.mark.asyncio
class TestIdentify:
    async def test_image_wins_over_text(self):
        service = make_service(["Acme Drone X200"])
        assert await identify(service, IMAGE, "some drone") == "Acme Drone X200"

    async def test_text_fallback_when_image_fails(self):
        service = make_service([ProviderError("down")])
        assert await identify(service, IMAGE, "cheap drone, with 4K camera!") == "cheap drone with 4K camera"

    async def test_text_fallback_when_model_returns_blank(self):
        service = make_service(["   "])
        assert await identify(service, IMAGE, "red mug") == "red mug"

    async def test_text_only_makes_no_model_call(self):
        service = make_service()
        assert await identify(service, None, "red mug") == "red mug"
        service.generate.assert_not_called()

    async def test_placeholder_when_nothing_works(self):
        service = make_service([ProviderError("down")])
        assert await identify(service, IMAGE, "") == UNKNOWN_PRODUCT == "Unknown Product"

    async def test_placeholder_for_punctuation_only_text(self):
        assert await identify(make_service(), None, "???") == UNKNOWN_PRODUCT
