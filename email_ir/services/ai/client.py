"""
Email IR Inference Client

Black-box inference capability: (instruction, target schema) -> validated
object. Manages providers, applies the retry policy to every call and
falls back to a secondary provider when the preferred one is exhausted.
"""

import asyncio
import logging
from typing import Optional, Dict, List, Type, TypeVar

from pydantic import BaseModel

from email_ir.utils.exceptions import RetryExhaustedError, SchemaValidationError
from email_ir.utils.retry import RetryPolicy, with_retry
from email_ir.utils.validation import validate_payload

from .base import BaseAIProvider, AIProviderError, AIConfigurationError
from .anthropic_provider import AnthropicProvider
from .openai_provider import OpenAIProvider
from .prompts import SYSTEM_PROMPT, build_schema_block

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def is_retryable(error: BaseException) -> bool:
    """Configuration problems will not fix themselves between attempts."""
    return not isinstance(error, AIConfigurationError)


class InferenceClient:
    """
    Schema-constrained inference over one or more LLM providers.
    """

    def __init__(
        self,
        anthropic_api_key: Optional[str] = None,
        openai_api_key: Optional[str] = None,
        preferred_provider: str = "openai",
        fallback_enabled: bool = True,
        retry_policy: Optional[RetryPolicy] = None,
        timeout: int = 60,
        openai_model: Optional[str] = None,
        anthropic_model: Optional[str] = None,
    ):
        """
        Initialize inference client.

        Args:
            anthropic_api_key: Anthropic API key
            openai_api_key: OpenAI API key
            preferred_provider: Preferred provider ("anthropic" or "openai")
            fallback_enabled: Try another configured provider when the preferred one is exhausted
            retry_policy: Attempts, backoff and per-attempt timeout for each provider
            timeout: Per-request HTTP timeout in seconds
        """
        self.providers: Dict[str, BaseAIProvider] = {}
        self.preferred_provider = preferred_provider
        self.fallback_enabled = fallback_enabled
        self.retry_policy = retry_policy or RetryPolicy()

        if anthropic_api_key:
            self.providers["anthropic"] = AnthropicProvider(
                api_key=anthropic_api_key, model=anthropic_model, timeout=timeout
            )
        if openai_api_key:
            self.providers["openai"] = OpenAIProvider(
                api_key=openai_api_key, model=openai_model, timeout=timeout
            )

    def register_provider(self, provider: BaseAIProvider):
        """Add or replace a provider under its own name."""
        self.providers[provider.provider_name] = provider

    def is_configured(self) -> bool:
        """Check if any provider is configured."""
        return any(p.is_configured() for p in self.providers.values())

    def get_configured_providers(self) -> List[str]:
        """Get list of configured provider names."""
        return [name for name, provider in self.providers.items() if provider.is_configured()]

    def get_provider(self, name: Optional[str] = None) -> Optional[BaseAIProvider]:
        """
        Get a provider by name or return preferred provider.

        Falls back to any configured provider when the preferred one is missing.
        """
        if name and name in self.providers:
            return self.providers[name]

        if self.preferred_provider in self.providers:
            provider = self.providers[self.preferred_provider]
            if provider.is_configured():
                return provider

        for provider in self.providers.values():
            if provider.is_configured():
                return provider

        return None

    def _get_fallback_provider(self, primary: BaseAIProvider) -> Optional[BaseAIProvider]:
        """Get fallback provider different from primary."""
        for provider in self.providers.values():
            if provider is not primary and provider.is_configured():
                return provider
        return None

    async def infer(
        self,
        instruction: str,
        schema: Type[M],
        ctx=None,
        system_prompt: str = SYSTEM_PROMPT,
        max_tokens: int = 2000,
        temperature: float = 0.2,
    ) -> M:
        """
        Run one schema-constrained inference.

        Args:
            instruction: Stage prompt
            schema: Pydantic model the response must validate against
            ctx: Optional StageContext for log correlation
            system_prompt: System prompt
            max_tokens: Maximum tokens in response
            temperature: Sampling temperature

        Returns:
            Validated instance of `schema`

        Raises:
            AIConfigurationError: no provider configured
            RetryExhaustedError: every attempt on every provider failed
        """
        provider = self.get_provider()
        if not provider:
            raise AIConfigurationError("No AI provider configured")

        prompt = f"{instruction}\n\n{build_schema_block(schema)}"
        stage = ctx.stage if ctx is not None else schema.__name__

        try:
            return await self._infer_with_retry(provider, prompt, schema, stage, system_prompt, max_tokens, temperature)

        except (RetryExhaustedError, AIProviderError) as e:
            if not self.fallback_enabled:
                raise
            fallback = self._get_fallback_provider(provider)
            if not fallback:
                raise
            logger.warning(f"{stage}: {provider.provider_name} failed ({e}); falling back to {fallback.provider_name}")
            return await self._infer_with_retry(fallback, prompt, schema, stage, system_prompt, max_tokens, temperature)

    async def _infer_with_retry(
        self,
        provider: BaseAIProvider,
        prompt: str,
        schema: Type[M],
        stage: str,
        system_prompt: str,
        max_tokens: int,
        temperature: float,
    ) -> M:
        async def attempt() -> M:
            response = await provider.generate(
                prompt=prompt,
                system_prompt=system_prompt,
                temperature=temperature,
                max_tokens=max_tokens,
                json_mode=True,
            )
            data = provider.parse_json_response(response.content)
            return validate_payload(schema, data)

        return await with_retry(
            attempt,
            self.retry_policy,
            name=f"{stage} inference via {provider.provider_name}",
            retry_on=(AIProviderError, SchemaValidationError, asyncio.TimeoutError, ValueError),
            should_retry=is_retryable,
        )


# Singleton instance
_inference_client: Optional[InferenceClient] = None


def init_inference_client(settings) -> InferenceClient:
    """Initialize the global inference client from settings."""
    global _inference_client
    _inference_client = InferenceClient(
        anthropic_api_key=settings.anthropic_api_key,
        openai_api_key=settings.openai_api_key,
        preferred_provider=settings.ai_provider,
        fallback_enabled=settings.ai_fallback_enabled,
        retry_policy=RetryPolicy.from_settings(settings),
        timeout=settings.ai_request_timeout,
        openai_model=settings.openai_model,
        anthropic_model=settings.anthropic_model,
    )
    return _inference_client


def get_inference_client() -> Optional[InferenceClient]:
    """Get the global inference client instance."""
    return _inference_client
