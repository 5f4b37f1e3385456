"""
LLM Integration
Single-shot chat completions against an OpenAI-compatible endpoint
"""

import httpx

from config import (
    OPENAI_API_KEY,
    OPENAI_BASE_URL,
    LLM_MODEL,
    LLM_MAX_TOKENS
)
from mealfit.upstream import UpstreamClient


class CompletionClient(UpstreamClient):
    """Sends one user message and returns the first choice's text"""
    provider = "openai"

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str = OPENAI_API_KEY,
        base_url: str = OPENAI_BASE_URL,
        model: str = LLM_MODEL,
        max_tokens: int = LLM_MAX_TOKENS
    ):
        super().__init__(client, base_url)
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }

    async def complete(self, prompt: str) -> str:
        """
        Returns the completion text, or "" when the response carries none.
        An empty answer is not an error here; callers decide what it means.
        """
        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": self.max_tokens
        }
        data = await self._make_request("POST", "/chat/completions", json=payload)

        if not isinstance(data, dict):
            return ""
        choices = data.get("choices") or []
        if not choices:
            return ""
        return (choices[0].get("message") or {}).get("content") or ""
