"""
Email IR AI Module

Schema-constrained inference over LLM providers and the model-backed
pipeline stages.
"""

from .base import (
    BaseAIProvider,
    AIResponse,
    AIProviderError,
    AIConfigurationError,
    AIRateLimitError,
    AITimeoutError,
    AIResponseParseError,
)

from .anthropic_provider import AnthropicProvider
from .openai_provider import OpenAIProvider

from .client import (
    InferenceClient,
    init_inference_client,
    get_inference_client,
)

from .prompts import SYSTEM_PROMPT

from .header_analyzer import HeaderAnalyzer
from .behavioral_analyzer import BehavioralAnalyzer
from .intent_analyzer import IntentAnalyzer
from .triage import TriageClassifier
from .risk_assessor import RiskAssessor
from .report_writer import ReportWriter

__all__ = [
    # Base
    'BaseAIProvider',
    'AIResponse',
    'AIProviderError',
    'AIConfigurationError',
    'AIRateLimitError',
    'AITimeoutError',
    'AIResponseParseError',

    # Providers
    'AnthropicProvider',
    'OpenAIProvider',

    # Client
    'InferenceClient',
    'init_inference_client',
    'get_inference_client',

    # Prompts
    'SYSTEM_PROMPT',

    # Stages
    'HeaderAnalyzer',
    'BehavioralAnalyzer',
    'IntentAnalyzer',
    'TriageClassifier',
    'RiskAssessor',
    'ReportWriter',
]
