"""
Anthropic provider — Claude 3 family via the official async client.

Claude has no JSON response mode; json_mode relies on the prompt, and the
verifier strips any code fences before parsing.
"""
from __future__ import annotations

import base64
import logging
import time
from typing import Optional, Sequence

import anthropic

import config
from errors import ProviderError
from providers.base import (
    DEFAULT_MAX_OUTPUT_TOKENS, ChatMessage, VisionLanguageService, detect_mime,
)

logger = logging.getLogger(__name__)


class AnthropicProvider(VisionLanguageService):

    def __init__(self, api_key: str, model: Optional[str] = None):
        self.name = "anthropic"
        self.model_id = model or config.ANTHROPIC_MODEL
        self._client = anthropic.AsyncAnthropic(api_key=api_key)

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
        content: list = []
        if image:
            content.append({
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": detect_mime(image),
                    "data": base64.b64encode(image).decode(),
                },
            })
        content.append({"type": "text", "text": prompt})

        kwargs = {}
        if system_instruction:
            kwargs["system"] = system_instruction
        if temperature is not None:
            kwargs["temperature"] = temperature

        return await self._create(
            [{"role": "user", "content": content}],
            max_tokens=max_output_tokens or DEFAULT_MAX_OUTPUT_TOKENS,
            **kwargs,
        )

    async def chat(
        self,
        history: Sequence[ChatMessage],
        message: str,
        system_instruction: Optional[str] = None,
    ) -> str:
        messages: list[dict] = []
        for m in history:
            if not m.text:
                continue
            role = "assistant" if m.role == "model" else "user"
            # Claude requires the conversation to open with a user turn
            if not messages and role == "assistant":
                continue
            if messages and messages[-1]["role"] == role:
                messages[-1]["content"] += "\n\n" + m.text
            else:
                messages.append({"role": role, "content": m.text})

        if messages and messages[-1]["role"] == "user":
            messages[-1]["content"] += "\n\n" + message
        else:
            messages.append({"role": "user", "content": message})

        kwargs = {"system": system_instruction} if system_instruction else {}
        return await self._create(messages, max_tokens=DEFAULT_MAX_OUTPUT_TOKENS, **kwargs)

    async def _create(self, messages: list, **kwargs) -> str:
        t0 = time.monotonic()
        try:
            message = await self._client.messages.create(
                model=self.model_id,
                messages=messages,
                **kwargs,
            )
        except Exception as exc:
            raise ProviderError(f"[{self.full_name}] request failed: {exc}") from exc

        latency_ms = int((time.monotonic() - t0) * 1000)
        logger.info("[%s] OK — latency=%dms", self.full_name, latency_ms)
        return "".join(
            block.text for block in message.content if getattr(block, "type", "") == "text"
        )
