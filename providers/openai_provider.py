"""
OpenAI provider — gpt-4o / gpt-4o-mini via the official async client.

JSON mode note: OpenAI's response_format={"type": "json_object"} only ever
emits an object, while the verifier asks for a bare array, so json_mode is
honoured through the prompt alone here.
"""
from __future__ import annotations

import base64
import logging
import time
from typing import Optional, Sequence

from openai import AsyncOpenAI

import config
from errors import ProviderError
from providers.base import (
    DEFAULT_MAX_OUTPUT_TOKENS, ChatMessage, VisionLanguageService, detect_mime,
)

logger = logging.getLogger(__name__)


class OpenAIProvider(VisionLanguageService):

    def __init__(self, api_key: str, model: Optional[str] = None):
        self.name = "openai"
        self.model_id = model or config.OPENAI_MODEL
        self._client = AsyncOpenAI(api_key=api_key)

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
        if image:
            b64 = base64.b64encode(image).decode()
            content = [
                {
                    "type": "image_url",
                    "image_url": {
                        "url": f"data:{detect_mime(image)};base64,{b64}",
                        "detail": "high",
                    },
                },
                {"type": "text", "text": prompt},
            ]
        else:
            content = prompt

        messages = []
        if system_instruction:
            messages.append({"role": "system", "content": system_instruction})
        messages.append({"role": "user", "content": content})

        kwargs = {}
        if temperature is not None:
            kwargs["temperature"] = temperature

        return await self._complete(
            messages,
            max_tokens=max_output_tokens or DEFAULT_MAX_OUTPUT_TOKENS,
            **kwargs,
        )

    async def chat(
        self,
        history: Sequence[ChatMessage],
        message: str,
        system_instruction: Optional[str] = None,
    ) -> str:
        messages = []
        if system_instruction:
            messages.append({"role": "system", "content": system_instruction})
        for m in history:
            if m.text:
                role = "assistant" if m.role == "model" else "user"
                messages.append({"role": role, "content": m.text})
        messages.append({"role": "user", "content": message})
        return await self._complete(messages, max_tokens=DEFAULT_MAX_OUTPUT_TOKENS)

    async def _complete(self, messages: list, **kwargs) -> str:
        t0 = time.monotonic()
        try:
            response = await self._client.chat.completions.create(
                model=self.model_id,
                messages=messages,
                **kwargs,
            )
        except Exception as exc:
            raise ProviderError(f"[{self.full_name}] request failed: {exc}") from exc

        latency_ms = int((time.monotonic() - t0) * 1000)
        logger.info("[%s] OK — latency=%dms", self.full_name, latency_ms)
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""
