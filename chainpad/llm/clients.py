# FILE: chainpad/llm/clients.py
"""
OpenAI chat client used by the chat assistant.

Single async entrypoint: chat_completion(...). Failures are wrapped in
ExternalServiceError with a human-readable prefix; nothing is retried.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from chainpad.errors import ExternalServiceError
from chainpad.settings import get_settings

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 1000
DEFAULT_TIMEOUT_SECONDS = 60


@dataclass
class LlmUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass
class LlmReply:
    content: str
    model: str
    usage: LlmUsage = field(default_factory=LlmUsage)


def _make_client(api_key: str, timeout_seconds: int):
    from openai import AsyncOpenAI

    return AsyncOpenAI(api_key=api_key, timeout=timeout_seconds)


def _build_messages(messages: List[Dict[str, Any]], system_prompt: Optional[str]) -> List[Dict[str, Any]]:
    out: List[Dict[str, Any]] = []
    if system_prompt:
        out.append({"role": "system", "content": system_prompt})
    out.extend(m for m in messages if m.get("role") != "system")
    return out


def _usage_from(response: Any) -> LlmUsage:
    usage = getattr(response, "usage", None)
    if usage is None:
        return LlmUsage()
    return LlmUsage(
        prompt_tokens=int(getattr(usage, "prompt_tokens", 0) or 0),
        completion_tokens=int(getattr(usage, "completion_tokens", 0) or 0),
        total_tokens=int(getattr(usage, "total_tokens", 0) or 0),
    )


def is_llm_configured() -> bool:
    return bool(get_settings().openai_api_key)


async def chat_completion(
    messages: List[Dict[str, Any]],
    *,
    system_prompt: Optional[str] = None,
    model: Optional[str] = None,
    temperature: float = DEFAULT_TEMPERATURE,
    max_tokens: int = DEFAULT_MAX_TOKENS,
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
) -> LlmReply:
    """
    Run one chat completion and return the first choice.

    Raises:
        ExternalServiceError: API key missing, or the API call failed
    """
    settings = get_settings()
    if not settings.openai_api_key:
        raise ExternalServiceError(
            "Failed to process your request",
            details="OPENAI_API_KEY is not set",
        )

    model_id = model or settings.openai_model
    client = _make_client(settings.openai_api_key, timeout_seconds)

    try:
        response = await client.chat.completions.create(
            model=model_id,
            messages=_build_messages(messages, system_prompt),
            temperature=temperature,
            max_tokens=max_tokens,
        )
    except Exception as e:
        logger.error("[llm] OpenAI call failed (model=%s): %s", model_id, e)
        raise ExternalServiceError("Failed to process your request", details=str(e))

    content = ""
    if response.choices:
        content = response.choices[0].message.content or ""
    if not content:
        content = "Sorry, I could not generate a response"

    reply = LlmReply(content=content, model=getattr(response, "model", None) or model_id, usage=_usage_from(response))
    logger.info("[llm] %s replied (%d tokens)", reply.model, reply.usage.total_tokens)
    return reply
