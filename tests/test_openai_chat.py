import json

import pytest

from copilot_compat import ChatRequest, ChatResponse, OpenAIChatConverter, OpenAIChatTranscoder
from exceptions import BadClientRequest


@pytest.fixture
def request_model():
    return ChatRequest.model_validate({
        "model": "gpt-4o",
        "messages": [{"role": "user", "content": "hi"}],
    })


class TestToCanonical:

    def test_content_parts_are_flattened(self):
        request = OpenAIChatConverter().to_canonical({
            "model": "gpt-4o",
            "messages": [{"role": "user", "content": [
                {"type": "text", "text": "first"},
                {"type": "text", "text": "second"},
            ]}],
            "stream": None,
        })

        assert request.messages[0].content == "first\nsecond"
        assert request.stream is False

    def test_upstream_body_omits_unset_fields(self):
        request = OpenAIChatConverter().to_canonical({
            "model": "gpt-4o",
            "messages": [{"role": "user", "content": "hi"}],
        })

        assert request.to_upstream() == {
            "model": "gpt-4o",
            "messages": [{"role": "user", "content": "hi"}],
            "stream": False,
        }

    def test_missing_messages_is_a_client_error(self):
        with pytest.raises(BadClientRequest):
            OpenAIChatConverter().to_canonical({"model": "gpt-4o"})


class TestFromCanonical:

    def test_missing_created_falls_back_to_now(self, request_model, monkeypatch):
        monkeypatch.setattr("copilot_compat.openai_chat.time.time", lambda: 1700000000.5)
        response = ChatResponse.model_validate({
            "id": "chatcmpl-1",
            "model": "gpt-4o",
            "choices": [{"message": {"role": "assistant", "content": "hello"}, "finish_reason": "stop"}],
        })

        result = OpenAIChatConverter().from_canonical(response, request_model)

        assert result["created"] == 1700000000
        assert result["object"] == "chat.completion"
        assert result["usage"] == {"prompt_tokens": 0, "completion_tokens": 0, "total_tokens": 0}

    def test_choice_indices_are_preserved(self, request_model):
        response = ChatResponse.model_validate({
            "id": "chatcmpl-1",
            "created": 1,
            "choices": [
                {"index": 5, "message": {"role": "assistant", "content": "five"}},
                {"message": {"role": "assistant", "content": "positional"}},
            ],
        })

        result = OpenAIChatConverter().from_canonical(response, request_model)

        assert [choice["index"] for choice in result["choices"]] == [5, 1]
        assert result["model"] == "gpt-4o"

    def test_tool_calls_are_rendered(self, request_model):
        response = ChatResponse.model_validate({
            "id": "chatcmpl-2",
            "created": 1,
            "model": "gpt-4o",
            "choices": [{
                "index": 0,
                "message": {"role": "assistant", "content": None, "tool_calls": [
                    {"id": "call_1", "type": "function", "function": {"name": "f", "arguments": "{\"a\":1}"}},
                ]},
                "finish_reason": "tool_calls",
            }],
            "usage": {"prompt_tokens": 3, "completion_tokens": 4, "total_tokens": 7},
        })

        result = OpenAIChatConverter().from_canonical(response, request_model)

        message = result["choices"][0]["message"]
        assert message["content"] is None
        assert message["tool_calls"][0]["function"] == {"name": "f", "arguments": "{\"a\":1}"}
        assert result["usage"]["total_tokens"] == 7


class TestTranscoder:

    def test_payloads_pass_through_verbatim(self, request_model):
        transcoder = OpenAIChatTranscoder(request_model, "req1")
        chunk = json.dumps({"id": "c1", "choices": [{"delta": {"content": "Hi"}}]})

        assert transcoder.feed_line(f"data: {chunk}") == [f"data: {chunk}\n\n"]
        assert transcoder.feed_line("") == []
        assert transcoder.feed_line("data: [DONE]") == ["data: [DONE]\n\n"]

    def test_lines_after_done_are_ignored(self, request_model):
        transcoder = OpenAIChatTranscoder(request_model, "req1")
        transcoder.feed_line("data: [DONE]")

        assert transcoder.closed
        assert transcoder.feed_line('data: {"late": true}') == []
