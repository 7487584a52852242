"""Tests for the model transport layer: factory, models and SDK adapters."""

from types import SimpleNamespace
from unittest.mock import patch

import anthropic
import httpx
import openai
import pytest

from workctl.config.models import LLMSettings
from workctl.llm import (
    ClaudeTransport,
    ModelRequest,
    ModelResponse,
    OpenAITransport,
    TextBlock,
    ToolResultBlock,
    ToolSpec,
    ToolUseBlock,
    TransportError,
    Turn,
    create_transport,
)

SPEC = ToolSpec(
    name="list_tasks",
    description="List tasks",
    input_schema={"type": "object", "properties": {}, "required": []},
)

CONVERSATION = ModelRequest(
    system="briefing",
    turns=(
        Turn.user_text("what is open?"),
        Turn(
            role="assistant",
            content=(
                TextBlock(text="Let me look."),
                ToolUseBlock(id="call_1", name="list_tasks", input={"status_filter": "OPEN"}),
            ),
        ),
        Turn(role="user", content=(ToolResultBlock(tool_use_id="call_1", content="Found 1 task(s)"),)),
    ),
    tools=(SPEC,),
)


def _request() -> httpx.Request:
    return httpx.Request("POST", "https://example.invalid/v1")


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class TestModels:
    def test_response_text_and_tool_uses(self):
        resp = ModelResponse(
            stop_reason="tool_use",
            content=[
                TextBlock(text=" a"),
                ToolUseBlock(id="1", name="x"),
                TextBlock(text="b "),
            ],
        )
        assert resp.text == "ab"
        assert [b.id for b in resp.tool_uses] == ["1"]

    def test_content_union_discriminates(self):
        turn = Turn.model_validate(
            {"role": "user", "content": [{"type": "tool_result", "tool_use_id": "t", "content": "ok"}]}
        )
        assert isinstance(turn.content[0], ToolResultBlock)

    def test_turns_are_frozen(self):
        turn = Turn.user_text("hi")
        with pytest.raises(Exception):
            turn.role = "assistant"

    def test_transport_error_message(self):
        err = TransportError("claude", "send", RuntimeError("down"))
        assert str(err) == "claude send failed: down"
        assert isinstance(err.__cause__, RuntimeError)
        assert err.retryable is False


# ---------------------------------------------------------------------------
# create_transport
# ---------------------------------------------------------------------------


class TestCreateTransport:
    def test_creates_claude_transport(self):
        assert isinstance(create_transport(LLMSettings(), "sk-ant-test"), ClaudeTransport)

    def test_creates_openai_transport(self):
        settings = LLMSettings(provider="openai", model="gpt-4o", api_key_env="OPENAI_API_KEY")
        assert isinstance(create_transport(settings, "sk-test"), OpenAITransport)

    def test_unsupported_provider_raises(self):
        settings = LLMSettings.model_construct(provider="gemini")
        with pytest.raises(ValueError, match="Unsupported LLM provider"):
            create_transport(settings, "key")


# ---------------------------------------------------------------------------
# Claude adapter
# ---------------------------------------------------------------------------


class TestClaudeTransport:
    @patch("workctl.llm.claude.Anthropic")
    def test_client_has_no_retries(self, mock_cls):
        ClaudeTransport(LLMSettings(timeout=30), "sk-ant")
        mock_cls.assert_called_once_with(api_key="sk-ant", max_retries=0, timeout=30.0)

    @patch("workctl.llm.claude.Anthropic")
    def test_send_translates_request_and_response(self, mock_cls):
        client = mock_cls.return_value
        client.messages.create.return_value = SimpleNamespace(
            stop_reason="tool_use",
            content=[
                SimpleNamespace(type="text", text="Checking"),
                SimpleNamespace(type="tool_use", id="tu_9", name="get_insights", input={}),
            ],
            usage=SimpleNamespace(input_tokens=11, output_tokens=7),
            model="claude-test",
        )

        resp = ClaudeTransport(LLMSettings(model="claude-test"), "k").send(CONVERSATION)

        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["system"] == "briefing"
        assert kwargs["model"] == "claude-test"
        assert kwargs["tools"] == [SPEC.model_dump()]
        assert kwargs["messages"][1]["content"][1] == {
            "type": "tool_use", "id": "call_1", "name": "list_tasks", "input": {"status_filter": "OPEN"},
        }
        assert kwargs["messages"][2] == {
            "role": "user",
            "content": [{"type": "tool_result", "tool_use_id": "call_1", "content": "Found 1 task(s)"}],
        }

        assert resp.stop_reason == "tool_use"
        assert resp.text == "Checking"
        assert resp.tool_uses == [ToolUseBlock(id="tu_9", name="get_insights", input={})]
        assert resp.usage.input_tokens == 11

    @patch("workctl.llm.claude.Anthropic")
    def test_raw_json_input_is_decoded(self, mock_cls):
        client = mock_cls.return_value
        client.messages.create.return_value = SimpleNamespace(
            stop_reason="end_turn", content=[], usage=SimpleNamespace(input_tokens=0, output_tokens=0), model="m",
        )
        request = ModelRequest(
            system="s",
            turns=(Turn(role="assistant", content=(ToolUseBlock(id="a", name="n", input='{"k": 1}'),)),),
        )
        ClaudeTransport(LLMSettings(), "k").send(request)
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["messages"][0]["content"][0]["input"] == {"k": 1}
        assert "tools" not in kwargs

    @patch("workctl.llm.claude.Anthropic")
    def test_api_error_becomes_transport_error(self, mock_cls):
        mock_cls.return_value.messages.create.side_effect = anthropic.APIConnectionError(request=_request())
        with pytest.raises(TransportError, match="claude send failed"):
            ClaudeTransport(LLMSettings(), "k").send(CONVERSATION)


# ---------------------------------------------------------------------------
# OpenAI adapter
# ---------------------------------------------------------------------------


class TestOpenAITransport:
    @patch("workctl.llm.openai_adapter.OpenAI")
    def test_send_translates_request_and_response(self, mock_cls):
        client = mock_cls.return_value
        client.chat.completions.create.return_value = SimpleNamespace(
            choices=[
                SimpleNamespace(
                    finish_reason="tool_calls",
                    message=SimpleNamespace(
                        content=None,
                        tool_calls=[
                            SimpleNamespace(
                                id="call_7",
                                function=SimpleNamespace(name="search_logs", arguments='{"keyword": "db"}'),
                            )
                        ],
                    ),
                )
            ],
            usage=SimpleNamespace(prompt_tokens=3, completion_tokens=4),
            model="gpt-4o",
        )

        resp = OpenAITransport(LLMSettings(provider="openai", model="gpt-4o"), "k").send(CONVERSATION)

        messages = client.chat.completions.create.call_args.kwargs["messages"]
        assert messages[0] == {"role": "system", "content": "briefing"}
        assert messages[1] == {"role": "user", "content": "what is open?"}
        assert messages[2]["role"] == "assistant"
        assert messages[2]["content"] == "Let me look."
        assert messages[2]["tool_calls"][0]["function"] == {
            "name": "list_tasks", "arguments": '{"status_filter": "OPEN"}',
        }
        assert messages[3] == {"role": "tool", "tool_call_id": "call_1", "content": "Found 1 task(s)"}
        tools = client.chat.completions.create.call_args.kwargs["tools"]
        assert tools[0]["function"]["parameters"] == SPEC.input_schema

        assert resp.stop_reason == "tool_use"
        assert resp.tool_uses == [ToolUseBlock(id="call_7", name="search_logs", input='{"keyword": "db"}')]
        assert resp.usage.output_tokens == 4

    @patch("workctl.llm.openai_adapter.OpenAI")
    def test_stop_maps_to_end_turn(self, mock_cls):
        mock_cls.return_value.chat.completions.create.return_value = SimpleNamespace(
            choices=[SimpleNamespace(finish_reason="stop", message=SimpleNamespace(content="Done.", tool_calls=None))],
            usage=None,
            model="gpt-4o",
        )
        resp = OpenAITransport(LLMSettings(provider="openai"), "k").send(
            ModelRequest(system="s", turns=(Turn.user_text("hi"),))
        )
        assert resp.stop_reason == "end_turn"
        assert resp.text == "Done."
        assert resp.usage is None

    @patch("workctl.llm.openai_adapter.OpenAI")
    def test_api_error_becomes_transport_error(self, mock_cls):
        mock_cls.return_value.chat.completions.create.side_effect = openai.APIConnectionError(request=_request())
        with pytest.raises(TransportError, match="openai send failed"):
            OpenAITransport(LLMSettings(provider="openai"), "k").send(CONVERSATION)
