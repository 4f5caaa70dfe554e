"""Async OpenAI helper using the v1 SDK.

This implementation prefers the low-cost model by default and reads the
standard `OPENAI_API_KEY` (with legacy fallback) from the environment when
not provided explicitly.
"""

from __future__ import annotations

import os
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI


class OpenAIEngine:
    def __init__(self, api_key: str | None = None, model: str | None = None):
        raw_key = api_key or os.getenv("OPENAI_API_KEY") or os.getenv("OPEN_AI_API_KEY")
        self.api_key = raw_key or ""
        self.model = (model or os.getenv("OPENAI_MODEL") or "gpt-4o-mini").strip()
        self._client = AsyncOpenAI(api_key=self.api_key) if self.api_key else None

    @property
    def configured(self) -> bool:
        return self._client is not None

    async def chat_completion(
        self,
        messages: List[dict[str, Any]],
        temperature: float = 0.7,
        *,
        max_tokens: Optional[int] = None,
        model: Optional[str] = None,
        json_mode: bool = False,
    ) -> str:
        if not self._client:
            raise RuntimeError("OpenAI client is not configured")
        kwargs: Dict[str, Any] = {
            "model": model or self.model,
            "messages": messages,
            "temperature": temperature,
        }
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        completion = await self._client.chat.completions.create(**kwargs)
        choice = completion.choices[0]
        content = getattr(choice.message, "content", "") or ""
        return content.strip()

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
