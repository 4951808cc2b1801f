# vibecheck/services/completion_client.py
from openai import AsyncOpenAI, OpenAIError
from typing import Dict, List, Optional
import logging

logger = logging.getLogger(__name__)

class CompletionClient:
    """
    Chat-completions client for any OpenAI-compatible endpoint.

    complete() returns the text of the first choice or None. It never
    raises: a missing key, transport error or empty response all give None.
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        base_url: str,
        temperature: float = 0.8,
        timeout: float = 90.0
    ):
        self.model = model
        self.temperature = temperature
        self._client = AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout) if api_key else None

    @property
    def configured(self) -> bool:
        return self._client is not None

    async def complete(self, messages: List[Dict[str, str]], max_tokens: int = 1500) -> Optional[str]:
        if self._client is None:
            logger.error("SYNTHETIC_API_KEY not set")
            return None

        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=messages,
                max_tokens=max_tokens,
                temperature=self.temperature,
            )
        except OpenAIError as e:
            logger.error(f"Completion API error: {e}")
            return None

        if not response.choices:
            logger.warning("Completion API returned no choices")
            return None
        return response.choices[0].message.content or None
