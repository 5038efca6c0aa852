from __future__ import annotations

import logging

import httpx

from common.config import OpenAISettings

logger = logging.getLogger(__name__)


async def chat_completion(
    messages: list[dict[str, str]],
    settings: OpenAISettings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    """Call an OpenAI-compatible /chat/completions and return the assistant message content."""
    settings = settings or OpenAISettings()
    url = f"{settings.base_url.rstrip('/')}/chat/completions"

    payload = {
        "model": settings.model,
        "messages": messages,
        "temperature": settings.temperature,
        "max_tokens": settings.max_tokens,
    }
    headers = {"Authorization": f"Bearer {settings.api_key}"}

    async with httpx.AsyncClient(timeout=settings.timeout_s, transport=transport) as client:
        resp = await client.post(url, json=payload, headers=headers)
        resp.raise_for_status()
        data = resp.json()
        return data["choices"][0]["message"]["content"] or ""
