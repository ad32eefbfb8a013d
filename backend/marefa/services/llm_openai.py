"""
OpenAI Chat Completions Adapter

Calls the Chat Completions REST endpoint over httpx. One request per
reply, bounded by LLM_TIMEOUT_SECONDS, no retry.
"""
import logging
from typing import List

import httpx

from .llm_base import ChatModelService, ChatTurn, ChatCompletion
from ..config import settings
from ..core.errors import GenerationFailed

logger = logging.getLogger("uvicorn.error")


class OpenAIChatService(ChatModelService):
    """OpenAI Chat Completions Service"""

    def __init__(self):
        self.api_key = settings.openai_api_key
        self.api_url = settings.openai_api_url
        self.model = settings.openai_model
        self.timeout = settings.llm_timeout_seconds

    @property
    def name(self) -> str:
        return "OpenAI Chat Completions"

    def is_available(self) -> bool:
        """Check if API key is configured"""
        return bool(self.api_key)

    async def complete(
        self,
        turns: List[ChatTurn],
        temperature: float,
        max_tokens: int,
    ) -> ChatCompletion:
        if not self.is_available():
            raise GenerationFailed(f"{self.name}: API key not configured")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": self.model,
            "messages": [t.to_dict() for t in turns],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(self.api_url, headers=headers, json=payload)
                resp.raise_for_status()
                result = resp.json()
        except httpx.TimeoutException:
            logger.error("[llm] %s timed out after %ss", self.name, self.timeout)
            raise GenerationFailed()
        except httpx.HTTPStatusError as e:
            logger.error("[llm] %s returned HTTP %s", self.name, e.response.status_code)
            raise GenerationFailed()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("[llm] %s request failed: %r", self.name, e)
            raise GenerationFailed()

        try:
            choice = result["choices"][0]
            content = (choice.get("message") or {}).get("content") or ""
        except (KeyError, IndexError, TypeError):
            logger.error("[llm] %s returned an unexpected payload", self.name)
            raise GenerationFailed()

        return ChatCompletion(
            content=content,
            model=result.get("model"),
            finish_reason=choice.get("finish_reason"),
        )


# Global service instance
openai_chat_service = OpenAIChatService()
