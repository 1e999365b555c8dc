"""Turn collected highlights into finished articles with a generative-text provider."""

from .config import ProviderCredentials, RetryPolicy, ThinkingToolConfig
from .llm import (
    AuthError,
    ContentBlockedError,
    ExhaustedRetriesError,
    MalformedResponseError,
    ProviderError,
    ProviderFailure,
    ProviderTimeoutError,
    RateLimitError,
    ResilientInvoker,
    TopicParseError,
    build_provider_client,
)
from .session import SessionInactiveError, ThinkingSession, build_agents
from .writing import (
    ArticleComposer,
    ArticleLength,
    ArticlePipeline,
    GenerationOptions,
    Persona,
    TopicSuggestion,
    TopicSynthesizer,
    WizardController,
    WizardState,
    transition,
)

__all__ = [
    "ProviderCredentials",
    "RetryPolicy",
    "ThinkingToolConfig",
    "AuthError",
    "ContentBlockedError",
    "ExhaustedRetriesError",
    "MalformedResponseError",
    "ProviderError",
    "ProviderFailure",
    "ProviderTimeoutError",
    "RateLimitError",
    "ResilientInvoker",
    "TopicParseError",
    "build_provider_client",
    "SessionInactiveError",
    "ThinkingSession",
    "build_agents",
    "ArticleComposer",
    "ArticleLength",
    "ArticlePipeline",
    "GenerationOptions",
    "Persona",
    "TopicSuggestion",
    "TopicSynthesizer",
    "WizardController",
    "WizardState",
    "transition",
]
