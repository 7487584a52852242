"""Model transport abstraction layer."""

from workctl.config.models import LLMSettings
from workctl.llm.base import ModelTransport
from workctl.llm.claude import ClaudeTransport
from workctl.llm.models import (
    ContentBlock,
    ModelRequest,
    ModelResponse,
    TextBlock,
    TokenUsage,
    ToolResultBlock,
    ToolSpec,
    ToolUseBlock,
    TransportError,
    Turn,
)
from workctl.llm.openai_adapter import OpenAITransport

_PROVIDER_MAP: dict[str, type[ModelTransport]] = {
    "anthropic": ClaudeTransport,
    "openai": OpenAITransport,
}


def create_transport(settings: LLMSettings, api_key: str) -> ModelTransport:
    """Create a model transport for the configured provider."""
    cls = _PROVIDER_MAP.get(settings.provider)
    if cls is None:
        raise ValueError(
            f"Unsupported LLM provider: {settings.provider!r}. "
            f"Supported: {', '.join(_PROVIDER_MAP)}"
        )
    return cls(settings, api_key)


__all__ = [
    "ClaudeTransport",
    "ContentBlock",
    "ModelRequest",
    "ModelResponse",
    "ModelTransport",
    "OpenAITransport",
    "TextBlock",
    "TokenUsage",
    "ToolResultBlock",
    "ToolSpec",
    "ToolUseBlock",
    "TransportError",
    "Turn",
    "create_transport",
]
