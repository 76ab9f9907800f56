"""
LLM client for the assessment service.

Talks to any OpenAI-compatible chat completion endpoint. Used by the question
generator and the report narrative synthesizer.
"""

import json
import logging
from typing import Any

import httpx

from profiling.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)


class LLMResponseError(ValueError):
    """Raised when the model returns something that is not the expected JSON."""


class LLMClient:
    """
    Thin async wrapper around a chat completion endpoint.

    Errors are never swallowed here: HTTP failures and unparseable output
    propagate to the caller, which decides whether to retry.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings or get_settings()
        self.base_url = self.settings.llm_base_url.rstrip("/")
        self.headers = {
            "Authorization": f"Bearer {self.settings.llm_api_key}",
            "Content-Type": "application/json",
        }

        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=float(self.settings.llm_timeout_seconds),
            transport=transport,
        )

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    # =========================================================================
    # RESPONSE HANDLING
    # =========================================================================

    @staticmethod
    def _extract_content(result: dict) -> str:
        """Extract text content from API response, handling list/dict formats."""
        choices = result.get("choices") or [{}]
        content = choices[0].get("message", {}).get("content", "")

        # Multi-part responses carry a list of text chunks
        if isinstance(content, list):
            text_parts = []
            for part in content:
                if isinstance(part, str):
                    text_parts.append(part)
                elif isinstance(part, dict) and "text" in part:
                    text_parts.append(part["text"])
            content = "".join(text_parts)

        return content if isinstance(content, str) else str(content)

    @staticmethod
    def extract_json(text: str) -> Any:
        """
        Pull the first JSON object or array out of a model response.

        Models often wrap JSON in prose or markdown fences, so we slice from the
        first opening bracket to the matching last closing one.

        Raises:
            LLMResponseError: If no valid JSON is found
        """
        candidates = []
        for open_char, close_char in (("[", "]"), ("{", "}")):
            start = text.find(open_char)
            end = text.rfind(close_char) + 1
            if start >= 0 and end > start:
                candidates.append((start, text[start:end]))

        # Whichever structure starts first is the outer one
        for _, snippet in sorted(candidates):
            try:
                return json.loads(snippet)
            except json.JSONDecodeError:
                continue

        raise LLMResponseError(f"No JSON found in model response: {text[:200]!r}")

    # =========================================================================
    # CALLS
    # =========================================================================

    async def complete(
        self,
        prompt: str,
        system: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 4096,
    ) -> str:
        """
        Send a single-turn chat completion.

        Args:
            prompt: User message
            system: Optional system message
            temperature: Sampling temperature
            max_tokens: Maximum tokens in response

        Returns:
            Model response text
        """
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        payload = {
            "model": self.settings.llm_model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }

        try:
            response = await self.client.post("/chat/completions", json=payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"LLM API error: {e}")
            raise

        return self._extract_content(response.json())

    async def complete_json(
        self,
        prompt: str,
        system: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 4096,
    ) -> Any:
        """Send a completion and parse the JSON payload out of the reply."""
        text = await self.complete(
            prompt,
            system=system,
            temperature=temperature,
            max_tokens=max_tokens,
        )
        return self.extract_json(text)
