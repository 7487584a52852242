"""Anthropic Claude adapter for workctl."""

from __future__ import annotations

import json
import logging
from typing import Any

from anthropic import Anthropic, APIError, RateLimitError

from workctl.config.models import LLMSettings
from workctl.llm.base import ModelTransport
from workctl.llm.models import (
    ContentBlock,
    ModelRequest,
    ModelResponse,
    TextBlock,
    TokenUsage,
    ToolResultBlock,
    ToolUseBlock,
    TransportError,
)

logger = logging.getLogger(__name__)


class ClaudeTransport(ModelTransport):
    """Claude adapter using the synchronous Anthropic SDK, with SDK retries off."""

    def __init__(self, settings: LLMSettings, api_key: str) -> None:
        super().__init__(settings, api_key)
        self._client = Anthropic(
            api_key=api_key,
            max_retries=0,
            timeout=float(settings.timeout),
        )

    def send(self, request: ModelRequest) -> ModelResponse:
        kwargs: dict[str, Any] = {
            "model": self.settings.model,
            "max_tokens": self.settings.max_tokens,
            "system": request.system,
            "messages": [
                {"role": turn.role, "content": [_block_to_param(b) for b in turn.content]}
                for turn in request.turns
            ],
        }
        if request.tools:
            kwargs["tools"] = [
                {"name": t.name, "description": t.description, "input_schema": t.input_schema}
                for t in request.tools
            ]
        try:
            message = self._client.messages.create(**kwargs)
        except APIError as e:
            raise TransportError(
                "claude", "send", e, retryable=isinstance(e, RateLimitError)
            ) from e

        content: list[ContentBlock] = []
        for block in message.content:
            if block.type == "text":
                content.append(TextBlock(text=block.text))
            elif block.type == "tool_use":
                content.append(ToolUseBlock(id=block.id, name=block.name, input=block.input))
        logger.debug("claude stop_reason=%s blocks=%d", message.stop_reason, len(content))
        return ModelResponse(
            stop_reason=message.stop_reason or "",
            content=content,
            usage=TokenUsage(
                input_tokens=message.usage.input_tokens,
                output_tokens=message.usage.output_tokens,
            ),
            model=message.model,
        )


def _block_to_param(block: ContentBlock) -> dict[str, Any]:
    if isinstance(block, TextBlock):
        return {"type": "text", "text": block.text}
    if isinstance(block, ToolUseBlock):
        return {"type": "tool_use", "id": block.id, "name": block.name, "input": _as_object(block.input)}
    if isinstance(block, ToolResultBlock):
        return {"type": "tool_result", "tool_use_id": block.tool_use_id, "content": block.content}
    raise TypeError(f"unsupported content block: {block!r}")


def _as_object(value: dict[str, Any] | str) -> dict[str, Any]:
    if isinstance(value, dict):
        return value
    try:
        decoded = json.loads(value)
    except ValueError:
        return {}
    return decoded if isinstance(decoded, dict) else {}
