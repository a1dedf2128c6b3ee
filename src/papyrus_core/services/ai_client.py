"""
Language-model collaborator.

The pipeline only depends on ``CompletionClient.complete``; tests substitute
a deterministic stub, production wires ``OpenAICompletionClient``.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from openai import AsyncOpenAI

logger = logging.getLogger(__name__)


class CompletionClient(ABC):
    """A text-completion capability."""

    @abstractmethod
    async def complete(
        self,
        prompt: str,
        system_instruction: str,
        temperature: float = 0.3,
        max_tokens: int = 2000,
        model: Optional[str] = None,
    ) -> str:
        """Return the model's reply text for ``prompt``."""
        pass


class OpenAICompletionClient(CompletionClient):
    """Chat-completions backed client."""

    def __init__(self, api_key: str = "", default_model: str = "gpt-4",
                 client: Optional[AsyncOpenAI] = None):
        self.api_key = api_key
        self.default_model = default_model
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        # Created on first use; the SDK falls back to OPENAI_API_KEY when no key is given
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.api_key or None)
        return self._client

    async def complete(
        self,
        prompt: str,
        system_instruction: str,
        temperature: float = 0.3,
        max_tokens: int = 2000,
        model: Optional[str] = None,
    ) -> str:
        model_name = model or self.default_model
        logger.debug(f"Requesting completion from {model_name} (max_tokens={max_tokens})")

        response = await self.client.chat.completions.create(
            model=model_name,
            messages=[
                {"role": "system", "content": system_instruction},
                {"role": "user", "content": prompt},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
        )
        return response.choices[0].message.content or ""
