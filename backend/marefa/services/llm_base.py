"""
Chat Model Service Abstract Interface

Provides a unified interface for language-model providers that answer a
chat (OpenAI Chat Completions today).
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Literal, Optional


@dataclass
class ChatTurn:
    """One prompt message sent to the provider"""
    role: Literal["system", "user", "assistant"]
    content: str

    def to_dict(self) -> dict:
        return {"role": self.role, "content": self.content}


@dataclass
class ChatCompletion:
    """Provider reply"""
    content: str
    model: Optional[str] = None
    finish_reason: Optional[str] = None


class ChatModelService(ABC):
    """Chat Model Service Abstract Base Class"""

    @abstractmethod
    async def complete(
        self,
        turns: List[ChatTurn],
        temperature: float,
        max_tokens: int,
    ) -> ChatCompletion:
        """
        Generate the assistant reply for a conversation.

        Parameters:
        - turns: system instruction followed by the conversation history
        - temperature: sampling temperature
        - max_tokens: upper bound on generated tokens

        Raises:
        - GenerationFailed: on any provider error or timeout
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if service is available"""
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Service name (e.g., "OpenAI Chat Completions")"""
        pass
