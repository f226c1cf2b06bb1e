"""Provider capability interface and result type."""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict, List, Optional
import logging

from bizpilot.schemas.chat import ToolObservation

logger = logging.getLogger(__name__)

ChatMessages = List[Dict[str, str]]

DEFAULT_TEMPERATURE = 0.4


@dataclass
class ProviderOutcome:
    """Result of one provider attempt; error is set when the attempt failed."""
    text: str = ""
    citations: List[str] = field(default_factory=list)
    observations: List[ToolObservation] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.text.strip())

    @classmethod
    def failure(cls, reason: str) -> "ProviderOutcome":
        return cls(error=reason)


class Provider(ABC):
    """
    A chat-completion backend.

    Subclasses implement _complete() and, when supports_streaming is True,
    stream(). generate() never raises: any exception becomes a failed outcome.
    """

    name = "provider"
    supports_streaming = False

    @property
    @abstractmethod
    def available(self) -> bool:
        """True when the provider has the credentials it needs"""

    @abstractmethod
    async def _complete(self, messages: ChatMessages, user_id: Optional[str]) -> ProviderOutcome:
        pass

    async def generate(self, messages: ChatMessages, user_id: Optional[str] = None) -> ProviderOutcome:
        try:
            outcome = await self._complete(messages, user_id)
        except Exception as e:
            # Upstream detail stays in the log, never in the reply
            logger.error(f"Provider {self.name} failed: {e.__class__.__name__}: {str(e)[:200]}")
            return ProviderOutcome.failure(e.__class__.__name__)

        if outcome.error is None and not outcome.text.strip():
            return ProviderOutcome.failure("empty response")
        return outcome

    def stream(self, messages: ChatMessages) -> AsyncIterator[str]:
        """Async iterator of text chunks in arrival order. May raise."""
        raise NotImplementedError(f"{self.name} does not support streaming")
