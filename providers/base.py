"""
Shared types and base class for all Vision-Language Service providers.

A provider answers two kinds of request:
  generate() — one-shot text (optionally with an image, optionally JSON-only)
  chat()     — multi-turn conversation with a system instruction
"""
from __future__ import annotations

import base64
import binascii
import json
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional, Sequence

logger = logging.getLogger(__name__)

DEFAULT_MAX_OUTPUT_TOKENS = 1024

_DATA_URL_RE = re.compile(r"^data:[^;,]+;base64,", re.IGNORECASE)
_FENCE_RE    = re.compile(r"```(?:json)?", re.IGNORECASE)


@dataclass(frozen=True)
class ChatMessage:
    role: str       # "user" | "model"
    text: str


# ── Helpers ────────────────────────────────────────────────────────────────────

def decode_image(payload: str) -> bytes:
    """
    Decode a base64 image payload. Accepts a bare base64 string or a
    data:<mime>;base64,... URL. Raises ValueError when it isn't base64.
    """
    data = _DATA_URL_RE.sub("", payload.strip())
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"Image payload is not valid base64: {exc}") from exc


def detect_mime(image_bytes: bytes) -> str:
    if image_bytes[:8] == b"\x89PNG\r\n\x1a\n":
        return "image/png"
    if image_bytes[:4] == b"GIF8":
        return "image/gif"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"


def strip_code_fences(raw: str) -> str:
    """Remove ```json / ``` markers a model wraps around JSON output."""
    return _FENCE_RE.sub("", raw or "").strip()


def parse_json_response(raw: str, provider_name: str) -> Any:
    """
    Parse JSON from a model response, handling markdown fences gracefully.
    Raises ValueError on parse failure.
    """
    text = strip_code_fences(raw)
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        logger.warning("[%s] Non-JSON response: %s", provider_name, (raw or "")[:300])
        raise ValueError(f"[{provider_name}] JSON parse error: {exc}") from exc


# ── Abstract base ──────────────────────────────────────────────────────────────

class VisionLanguageService(ABC):
    """Base class all Vision-Language Service providers must implement."""

    name: str           # e.g. "google"
    model_id: str       # e.g. "gemini-2.0-flash-001"

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        image: Optional[bytes] = None,
        *,
        max_output_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        json_mode: bool = False,
        system_instruction: Optional[str] = None,
    ) -> str:
        """Return the model's text reply. Raises ProviderError on any failure."""
        ...

    @abstractmethod
    async def chat(
        self,
        history: Sequence[ChatMessage],
        message: str,
        system_instruction: Optional[str] = None,
    ) -> str:
        """Continue a conversation. Raises ProviderError on any failure."""
        ...

    @property
    def full_name(self) -> str:
        return f"{self.name}/{self.model_id}"
