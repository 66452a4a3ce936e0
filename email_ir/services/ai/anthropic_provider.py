"""
Email IR Anthropic Claude Provider

Integration with Anthropic's Messages API for stage inference.
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


class AnthropicProvider(BaseAIProvider):
    """
    Anthropic Claude API provider.
    """

    provider_name = "anthropic"
    default_model = "claude-3-5-sonnet-20241022"

    API_URL = "https://api.anthropic.com/v1/messages"
    API_VERSION = "2023-06-01"

    def _get_headers(self) -> Dict[str, str]:
        """Get API request headers."""
        return {
            "Content-Type": "application/json",
            "x-api-key": self.api_key,
            "anthropic-version": self.API_VERSION,
        }

    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.2,
        max_tokens: int = 2000,
        json_mode: bool = True,
    ) -> AIResponse:
        """
        Generate text using Claude.

        The Messages API has no JSON switch; `json_mode` appends an
        instruction to the system prompt instead.
        """
        if not self.is_configured():
            raise AIConfigurationError("Anthropic API key not configured")

        system = system_prompt or ""
        if json_mode:
            system = (system + "\n\nRespond with a single JSON object and nothing else.").strip()

        payload = {
            "model": self.model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [
                {"role": "user", "content": prompt}
            ],
        }
        if system:
            payload["system"] = system

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
                        content = ""
                        for block in data.get("content", []):
                            if block.get("type") == "text":
                                content += block.get("text", "")

                        usage = data.get("usage", {})
                        tokens = usage.get("input_tokens", 0) + usage.get("output_tokens", 0)

                        return AIResponse(
                            content=content,
                            model=data.get("model", self.model),
                            tokens_used=tokens,
                            finish_reason=data.get("stop_reason", "unknown"),
                            raw_response=data,
                        )

                    if response.status == 429:
                        raise AIRateLimitError("Anthropic rate limit exceeded")
                    if response.status == 401:
                        raise AIConfigurationError("Invalid Anthropic API key")

                    error = data.get("error") if isinstance(data, dict) else None
                    error_msg = error.get("message", str(error)) if isinstance(error, dict) else str(data)
                    raise AIProviderError(f"Anthropic API error ({response.status}): {error_msg}")

        except asyncio.TimeoutError:
            raise AITimeoutError(f"Anthropic request timed out after {self.timeout}s")
        except aiohttp.ClientError as e:
            raise AIProviderError(f"Anthropic connection error: {e}")
