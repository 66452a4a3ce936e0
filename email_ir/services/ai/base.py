"""
Email IR AI Provider Base Class

Abstract base class for LLM providers.
"""

import logging
import json
from abc import ABC, abstractmethod
from typing import Optional, Dict, Any
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class AIResponse:
    """Response from AI provider."""
    content: str
    model: str
    tokens_used: int
    finish_reason: str
    raw_response: Optional[Dict[str, Any]] = None


class AIProviderError(Exception):
    """Base exception for AI provider errors."""
    pass


class AIConfigurationError(AIProviderError):
    """API key or configuration missing."""
    pass


class AIRateLimitError(AIProviderError):
    """Rate limit exceeded."""
    pass


class AITimeoutError(AIProviderError):
    """Request timed out."""
    pass


class AIResponseParseError(AIProviderError):
    """Failed to parse AI response."""
    pass


class BaseAIProvider(ABC):
    """
    Abstract base class for AI providers.

    Providers make exactly one request per `generate` call; retries,
    backoff and fallback belong to the inference client.
    """

    provider_name: str = "base"
    default_model: str = ""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: int = 60,
    ):
        """
        Initialize provider.

        Args:
            api_key: API key for provider
            model: Model to use (defaults to provider default)
            timeout: Request timeout in seconds
        """
        self.api_key = api_key
        self.model = model or self.default_model
        self.timeout = timeout
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def is_configured(self) -> bool:
        """Check if API key is configured."""
        return bool(self.api_key)

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.2,
        max_tokens: int = 2000,
        json_mode: bool = True,
    ) -> AIResponse:
        """
        Generate text from prompt.

        Args:
            prompt: User prompt
            system_prompt: Optional system prompt
            temperature: Sampling temperature (0-1)
            max_tokens: Maximum tokens in response
            json_mode: Ask the provider for a JSON object where supported

        Returns:
            AIResponse with generated content
        """
        pass

    def parse_json_response(self, content: str) -> Dict[str, Any]:
        """
        Parse JSON from AI response.

        Handles responses with markdown code blocks or prose around the object.
        """
        content = (content or "").strip()

        if '```json' in content:
            start = content.find('```json') + 7
            end = content.find('```', start)
            if end > start:
                content = content[start:end].strip()
        elif '```' in content:
            start = content.find('```') + 3
            end = content.find('```', start)
            if end > start:
                content = content[start:end].strip()

        if not content.startswith('{'):
            start = content.find('{')
            if start >= 0:
                depth = 0
                for i, c in enumerate(content[start:], start):
                    if c == '{':
                        depth += 1
                    elif c == '}':
                        depth -= 1
                        if depth == 0:
                            content = content[start:i + 1]
                            break

        try:
            parsed = json.loads(content)
        except json.JSONDecodeError as e:
            raise AIResponseParseError(f"Invalid JSON: {e}")

        if not isinstance(parsed, dict):
            raise AIResponseParseError(f"Expected a JSON object, got {type(parsed).__name__}")
        return parsed

    def get_provider_info(self) -> Dict[str, Any]:
        """Get provider information."""
        return {
            'name': self.provider_name,
            'model': self.model,
            'configured': self.is_configured(),
        }
