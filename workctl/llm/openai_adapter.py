"""OpenAI adapter for workctl."""

from __future__ import annotations

import json
import logging
from typing import Any

from openai import APIError, OpenAI, RateLimitError

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

# chat-completions finish_reason -> neutral stop reason
_STOP_REASONS = {
    "stop": "end_turn",
    "tool_calls": "tool_use",
    "function_call": "tool_use",
    "length": "max_tokens",
}


class OpenAITransport(ModelTransport):
    """OpenAI adapter using chat-completions function calling."""

    def __init__(self, settings: LLMSettings, api_key: str) -> None:
        super().__init__(settings, api_key)
        self._client = OpenAI(
            api_key=api_key,
            max_retries=0,
            timeout=float(settings.timeout),
        )

    def send(self, request: ModelRequest) -> ModelResponse:
        messages: list[dict[str, Any]] = [{"role": "system", "content": request.system}]
        for turn in request.turns:
            messages.extend(_turn_to_messages(turn.role, turn.content))

        kwargs: dict[str, Any] = {
            "model": self.settings.model,
            "max_tokens": self.settings.max_tokens,
            "messages": messages,
        }
        if request.tools:
            kwargs["tools"] = [
                {
                    "type": "function",
                    "function": {
                        "name": t.name,
                        "description": t.description,
                        "parameters": t.input_schema,
                    },
                }
                for t in request.tools
            ]
        try:
            response = self._client.chat.completions.create(**kwargs)
        except APIError as e:
            raise TransportError(
                "openai", "send", e, retryable=isinstance(e, RateLimitError)
            ) from e

        choice = response.choices[0]
        content: list[ContentBlock] = []
        if choice.message.content:
            content.append(TextBlock(text=choice.message.content))
        for call in choice.message.tool_calls or []:
            # arguments stay raw; the tool boundary decodes them
            content.append(
                ToolUseBlock(id=call.id, name=call.function.name, input=call.function.arguments)
            )
        stop_reason = _STOP_REASONS.get(choice.finish_reason, choice.finish_reason or "")
        logger.debug("openai finish_reason=%s blocks=%d", choice.finish_reason, len(content))

        usage = None
        if response.usage is not None:
            usage = TokenUsage(
                input_tokens=response.usage.prompt_tokens,
                output_tokens=response.usage.completion_tokens,
            )
        return ModelResponse(stop_reason=stop_reason, content=content, usage=usage, model=response.model)


def _turn_to_messages(role: str, blocks: tuple[ContentBlock, ...]) -> list[dict[str, Any]]:
    text = "".join(b.text for b in blocks if isinstance(b, TextBlock))
    if role == "assistant":
        message: dict[str, Any] = {"role": "assistant", "content": text or None}
        calls = [
            {
                "id": b.id,
                "type": "function",
                "function": {
                    "name": b.name,
                    "arguments": b.input if isinstance(b.input, str) else json.dumps(b.input),
                },
            }
            for b in blocks
            if isinstance(b, ToolUseBlock)
        ]
        if calls:
            message["tool_calls"] = calls
        return [message]

    # Tool results answer the preceding assistant turn as separate "tool" messages.
    out: list[dict[str, Any]] = [
        {"role": "tool", "tool_call_id": b.tool_use_id, "content": b.content}
        for b in blocks
        if isinstance(b, ToolResultBlock)
    ]
    if text:
        out.append({"role": "user", "content": text})
    return out
