"""
assistant.py — conversational helper shown next to the search results.

Forwards the conversation (plus the product being analysed, when there is
one) to the Vision-Language Service. Never raises for provider trouble: the
user sees a fixed error string instead.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Mapping, Optional, Sequence

import config
import key_store
from errors import ProviderError
from key_store import Credentials
from providers.base import ChatMessage
from providers.manager import build_service

if TYPE_CHECKING:
    from sourcing import AnalysisResult

logger = logging.getLogger(__name__)

CONNECTION_ERROR = "Connection Error."


def system_instruction(context: Optional["AnalysisResult"] = None) -> str:
    parts = [f"You are {config.ASSISTANT_NAME}."]
    if context is not None:
        parts.append(f"Context: User is analyzing {context.product_name}.")
        if context.options:
            cheapest = context.options[0]
            parts.append(
                f"Cheapest verified offer: {cheapest.description} from "
                f"{cheapest.vendor} at ${cheapest.price:.2f}."
            )
    parts.append("Help the user negotiate or evaluate suppliers.")
    return " ".join(parts)


async def chat(
    history: Sequence[ChatMessage],
    new_message: str,
    context: Optional["AnalysisResult"] = None,
    *,
    credentials: Optional[Credentials] = None,
    overrides: Optional[Mapping[str, str]] = None,
) -> str:
    """Reply to new_message. Raises ConfigurationError only when no model key exists."""
    creds = credentials or key_store.resolve(overrides)
    service = build_service(creds)

    try:
        reply = await service.chat(history, new_message, system_instruction(context))
    except ProviderError as exc:
        logger.warning("Chat failed: %s", exc)
        return CONNECTION_ERROR
    return reply or CONNECTION_ERROR
