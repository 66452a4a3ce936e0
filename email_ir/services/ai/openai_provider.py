"""
Email IR OpenAI Provider

Integration with OpenAI's Chat Completions API for stage inference.
"""

import logging
import asyncio
from typing import Optional, Dict

import aiohttp

from .base import (
    BaseAIProvider,
    AIResponse,
    AIProviderError,
    AIConfigurationError,
    AIRateLimitError,
    AITimeoutError,
)

logger = logging.getLogger(__name__)


class OpenAIProvider(BaseAIProvider):
    """
    OpenAI GPT API provider.
    """

    provider_name = "openai"
    default_model = "gpt-4o-mini"

    API_URL = "https://api.openai.com/v1/chat/completions"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: int = 60,
        organization: Optional[str] = None,
    ):
        super().__init__(api_key, model, timeout)
        self.organization = organization

    def _get_headers(self) -> Dict[str, str]:
        """Get API request headers."""
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }
        if self.organization:
            headers["OpenAI-Organization"] = self.organization
        return headers

    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.2,
        max_tokens: int = 2000,
        json_mode: bool = True,
    ) -> AIResponse:
        """Generate text using OpenAI GPT."""
        if not self.is_configured():
            raise AIConfigurationError("OpenAI API key not configured")

        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        payload = {
            "model": self.model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": messages,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        timeout = aiohttp.ClientTimeout(total=self.timeout)

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(
                    self.API_URL,
                    headers=self._get_headers(),
                    json=payload,
                ) as response:
                    data = await response.json(content_type=None)

                    if response.status == 200:
                        choice = data.get("choices", [{}])[0]
                        content = choice.get("message", {}).get("content", "") or ""
                        usage = data.get("usage", {})

                        return AIResponse(
                            content=content,
                            model=data.get("model", self.model),
                            tokens_used=usage.get("total_tokens", 0),
                            finish_reason=choice.get("finish_reason", "unknown"),
                            raw_response=data,
                        )

                    if response.status == 429:
                        raise AIRateLimitError("OpenAI rate limit exceeded")
                    if response.status == 401:
                        raise AIConfigurationError("Invalid OpenAI API key")

                    error = data.get("error") if isinstance(data, dict) else None
                    error_msg = error.get("message", str(error)) if isinstance(error, dict) else str(data)
                    raise AIProviderError(f"OpenAI API error ({response.status}): {error_msg}")

        except asyncio.TimeoutError:
            raise AITimeoutError(f"OpenAI request timed out after {self.timeout}s")
        except aiohttp.ClientError as e:
            raise AIProviderError(f"OpenAI connection error: {e}")
