"""
Google Gemini provider — uses the google-genai SDK.

Gemini is the default backing service: it is the cheapest multimodal model
we support and is the only one with a native JSON response mode that can
return a bare array (used by the verifier).
"""
from __future__ import annotations

import logging
import time
from typing import Optional, Sequence

from google import genai
from google.genai import types as genai_types

import config
from errors import ProviderError
from providers.base import (
    DEFAULT_MAX_OUTPUT_TOKENS, ChatMessage, VisionLanguageService, detect_mime,
)

logger = logging.getLogger(__name__)

_SAFETY_OFF = [
    genai_types.SafetySetting(category="HARM_CATEGORY_HARASSMENT",        threshold="OFF"),
    genai_types.SafetySetting(category="HARM_CATEGORY_HATE_SPEECH",       threshold="OFF"),
    genai_types.SafetySetting(category="HARM_CATEGORY_SEXUALLY_EXPLICIT", threshold="OFF"),
    genai_types.SafetySetting(category="HARM_CATEGORY_DANGEROUS_CONTENT", threshold="OFF"),
]


class GeminiProvider(VisionLanguageService):

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        chat_model: Optional[str] = None,
    ):
        self.name       = "google"
        self.model_id   = model or config.SEARCH_MODEL
        self.chat_model = chat_model or config.CHAT_MODEL
        self._client    = genai.Client(api_key=api_key)

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
        gen_config = genai_types.GenerateContentConfig(
            system_instruction=system_instruction,
            temperature=temperature,
            max_output_tokens=max_output_tokens or DEFAULT_MAX_OUTPUT_TOKENS,
            response_mime_type="application/json" if json_mode else None,
            safety_settings=_SAFETY_OFF,
        )

        contents: list = []
        if image:
            contents.append(genai_types.Part.from_bytes(data=image, mime_type=detect_mime(image)))
        contents.append(prompt)

        t0 = time.monotonic()
        try:
            response = await self._client.aio.models.generate_content(
                model=self.model_id,
                contents=contents,
                config=gen_config,
            )
        except Exception as exc:
            raise ProviderError(f"[{self.full_name}] generate failed: {exc}") from exc

        latency_ms = int((time.monotonic() - t0) * 1000)
        logger.info("[%s] generate OK — latency=%dms json=%s", self.full_name, latency_ms, json_mode)
        return response.text or ""

    async def chat(
        self,
        history: Sequence[ChatMessage],
        message: str,
        system_instruction: Optional[str] = None,
    ) -> str:
        contents = [
            genai_types.Content(
                role="model" if m.role == "model" else "user",
                parts=[genai_types.Part(text=m.text)],
            )
            for m in history
            if m.text
        ]

        t0 = time.monotonic()
        try:
            session = self._client.aio.chats.create(
                model=self.chat_model,
                config=genai_types.GenerateContentConfig(system_instruction=system_instruction),
                history=contents,
            )
            response = await session.send_message(message)
        except Exception as exc:
            raise ProviderError(f"[google/{self.chat_model}] chat failed: {exc}") from exc

        latency_ms = int((time.monotonic() - t0) * 1000)
        logger.info("[google/%s] chat OK — latency=%dms", self.chat_model, latency_ms)
        return response.text or ""
