"""Provider clients and the retry boundary around them."""

from .errors import (
    AuthError,
    ContentBlockedError,
    ExhaustedRetriesError,
    MalformedResponseError,
    ProviderError,
    ProviderFailure,
    ProviderTimeoutError,
    RateLimitError,
    TopicParseError,
)
from .invoker import ProgressSink, ResilientInvoker, TextProvider
from .providers import (
    PROVIDER_CLIENTS,
    AnthropicClient,
    GeminiClient,
    LangChainCompatibleClient,
    OpenAIClient,
    ProviderClient,
    ProviderRequest,
    build_provider_client,
)

__all__ = [
    "AuthError",
    "ContentBlockedError",
    "ExhaustedRetriesError",
    "MalformedResponseError",
    "ProviderError",
    "ProviderFailure",
    "ProviderTimeoutError",
    "RateLimitError",
    "TopicParseError",
    "ProgressSink",
    "ResilientInvoker",
    "TextProvider",
    "PROVIDER_CLIENTS",
    "AnthropicClient",
    "GeminiClient",
    "LangChainCompatibleClient",
    "OpenAIClient",
    "ProviderClient",
    "ProviderRequest",
    "build_provider_client",
]
