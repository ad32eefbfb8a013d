"""
Chat Model Service Factory

Uses OpenAI Chat Completions for assistant replies
"""
import logging

from .llm_base import ChatModelService
from .llm_openai import openai_chat_service

logger = logging.getLogger("uvicorn.error")


def get_chat_model_service() -> ChatModelService:
    """
    Get chat model service

    Returns:
    - ChatModelService: OpenAI Chat Completions service instance

    Note:
    - Need to configure OPENAI_API_KEY in .env; without it every reply
      fails with GenerationFailed (the user message is still stored)
    - Used as a FastAPI dependency, so tests override it
    """
    if not openai_chat_service.is_available():
        logger.warning("[llm] OpenAI Chat Completions not available. Configure OPENAI_API_KEY in .env")
    return openai_chat_service
