"""
Tests for providers/base.py — shared helpers.

Covers:
  - parse_json_response: plain JSON, fenced JSON, arrays, invalid JSON
  - strip_code_fences
  - decode_image: bare base64, data URL, garbage
  - detect_mime: magic-byte sniffing
"""
from __future__ import annotations

import base64

import pytest

from providers.base import decode_image, detect_mime, parse_json_response, strip_code_fences

PNG_HEADER = b"\x89PNG\r\n\x1a\n" + b"\x00" * 8


class TestParseJsonResponse:
    def test_plain_array(self):
        assert parse_json_response("[0, 2, 5]", "test") == [0, 2, 5]

    def test_plain_object(self):
        assert parse_json_response('{"a": 1}', "test") == {"a": 1}

    def test_json_fenced_with_backticks(self):
        assert parse_json_response("```json\n[1, 3]\n```", "test") == [1, 3]

    def test_json_fenced_without_language_hint(self):
        assert parse_json_response("```\n[1]\n```", "test") == [1]

    def test_leading_trailing_whitespace(self):
        assert parse_json_response("  \n [4] \n ", "test") == [4]

    def test_invalid_json_raises_value_error(self):
        with pytest.raises(ValueError, match="JSON parse error"):
            parse_json_response("These look like matches: 1 and 2", "test")

    def test_empty_raises_value_error(self):
        with pytest.raises(ValueError):
            parse_json_response("", "test")


class TestStripCodeFences:
    def test_inline_fences(self):
        assert strip_code_fences("```json[1]```") == "[1]"

    def test_none(self):
        assert strip_code_fences(None) == ""


class TestDecodeImage:
    def test_bare_base64(self):
        payload = base64.b64encode(PNG_HEADER).decode()
        assert decode_image(payload) == PNG_HEADER

    def test_data_url(self):
        payload = "data:image/png;base64," + base64.b64encode(PNG_HEADER).decode()
        assert decode_image(payload) == PNG_HEADER

    def test_garbage_raises_value_error(self):
        with pytest.raises(ValueError):
            decode_image("not base64 at all!!")


class TestDetectMime:
    def test_png(self):
        assert detect_mime(PNG_HEADER) == "image/png"

    def test_gif(self):
        assert detect_mime(b"GIF89a....") == "image/gif"

    def test_webp(self):
        assert detect_mime(b"RIFF\x00\x00\x00\x00WEBPVP8 ") == "image/webp"

    def test_riff_that_is_not_webp_defaults_to_jpeg(self):
        assert detect_mime(b"RIFF\x00\x00\x00\x00WAVEfmt ") == "image/jpeg"

    def test_default_jpeg(self):
        assert detect_mime(b"\xff\xd8\xff\xe0") == "image/jpeg"
