import json

import pytest

from copilot_compat import ChatRequest, ChatResponse, ResponsesConverter, ResponsesTranscoder
from exceptions import BadClientRequest


def parse_events(frames):
    """Split SSE frames into (event, data) pairs"""
    events = []
    for frame in frames:
        event_line, data_line = frame.rstrip("\n").split("\n")
        assert event_line.startswith("event: ")
        assert data_line.startswith("data: ")
        events.append((event_line[len("event: "):], json.loads(data_line[len("data: "):])))
    return events


def chunk(content=None, chunk_id="chatcmpl-9", role=None):
    delta = {}
    if role:
        delta["role"] = role
    if content is not None:
        delta["content"] = content
    return "data: " + json.dumps({"id": chunk_id, "model": "gpt-4o", "choices": [{"index": 0, "delta": delta}]})


@pytest.fixture
def canonical():
    return ChatRequest.model_validate({
        "model": "gpt-4o",
        "messages": [{"role": "user", "content": "hi"}],
        "stream": True,
    })


class TestToCanonical:

    def test_input_items_become_messages(self):
        request = ResponsesConverter().to_canonical({
            "model": "gpt-4o",
            "instructions": "Be brief.",
            "max_output_tokens": 256,
            "input": [
                {"type": "message", "role": "user", "content": [{"type": "input_text", "text": "weather?"}]},
                {"type": "function_call", "call_id": "call_1", "name": "get_weather", "arguments": "{\"city\":\"Oslo\"}"},
                {"type": "function_call", "call_id": "call_2", "name": "get_time", "arguments": "{}"},
                {"type": "function_call_output", "call_id": "call_1", "output": "rainy"},
                {"type": "function_call_output", "call_id": "call_2", "output": "noon"},
            ],
            "tools": [{"type": "function", "name": "get_weather", "parameters": {"properties": {"city": {"type": "string"}}}}],
        })

        assert [message.role for message in request.messages] == ["system", "user", "assistant", "tool", "tool"]
        assert request.messages[0].content == "Be brief."
        assert request.messages[1].content == "weather?"
        assert [tool_call.id for tool_call in request.messages[2].tool_calls] == ["call_1", "call_2"]
        assert request.messages[3].tool_call_id == "call_1"
        assert request.max_tokens == 256
        assert request.stream is False

        parameters = request.tools[0].function.parameters
        assert parameters["type"] == "object"
        assert parameters["required"] == []
        assert parameters["additionalProperties"] is False
        assert parameters["properties"] == {"city": {"type": "string"}}

    def test_string_input_without_instructions(self):
        request = ResponsesConverter().to_canonical({"model": "gpt-4o", "input": "hello", "stream": True})

        assert [(message.role, message.content) for message in request.messages] == [("user", "hello")]
        assert request.stream is True
        assert request.tools is None

    def test_missing_input_is_a_client_error(self):
        with pytest.raises(BadClientRequest):
            ResponsesConverter().to_canonical({"model": "gpt-4o"})


class TestFromCanonical:

    def test_text_answer(self, canonical):
        response = ChatResponse.model_validate({
            "id": "chatcmpl-1",
            "created": 1700000000,
            "model": "gpt-4o",
            "choices": [{"index": 0, "message": {"role": "assistant", "content": "Hello!"}, "finish_reason": "stop"}],
            "usage": {"prompt_tokens": 5, "completion_tokens": 2, "total_tokens": 7},
        })

        result = ResponsesConverter().from_canonical(response, canonical)

        assert result["object"] == "response"
        assert result["status"] == "completed"
        assert result["created_at"] == 1700000000
        item = result["output"][0]
        assert item["type"] == "message"
        assert item["content"] == [{"type": "output_text", "text": "Hello!", "annotations": []}]
        assert result["usage"] == {
            "input_tokens": 5,
            "output_tokens": 2,
            "output_tokens_details": {"reasoning_tokens": 0},
            "total_tokens": 7,
        }

    def test_tool_call_becomes_function_call_item(self, canonical):
        response = ChatResponse.model_validate({
            "id": "chatcmpl-2",
            "created": 1,
            "choices": [{"message": {"role": "assistant", "tool_calls": [
                {"id": "call_9", "function": {"name": "get_weather", "arguments": "{\"city\":\"Oslo\"}"}},
            ]}}],
        })

        result = ResponsesConverter().from_canonical(response, canonical)

        assert result["output"] == [{
            "type": "function_call",
            "id": "call_9",
            "call_id": "call_9",
            "name": "get_weather",
            "arguments": "{\"city\":\"Oslo\"}",
            "status": "completed",
        }]
        assert result["usage"] is None

    def test_empty_message_is_a_refusal(self, canonical):
        response = ChatResponse.model_validate({"id": "x", "created": 1, "choices": [{"message": {"role": "assistant"}}]})

        result = ResponsesConverter().from_canonical(response, canonical)

        assert result["output"][0]["content"] == [{"type": "refusal", "refusal": "No content"}]


class TestTranscoder:

    def test_full_event_sequence(self, canonical):
        transcoder = ResponsesTranscoder(canonical, "req1")
        frames = []
        for line in [chunk(role="assistant", content=""), "", chunk("Hel"), chunk("lo"), "data: [DONE]"]:
            frames.extend(transcoder.feed_line(line))

        events = parse_events(frames)
        assert [name for name, _ in events] == [
            "response.created",
            "response.output_item.added",
            "response.content_part.added",
            "response.output_text.delta",
            "response.output_text.delta",
            "response.output_text.done",
            "response.content_part.done",
            "response.output_item.done",
            "response.completed",
        ]
        for name, data in events:
            assert data["type"] == name

        created = events[0][1]["response"]
        assert created["id"] == "chatcmpl-9"
        assert created["status"] == "in_progress"
        assert [data["delta"] for name, data in events if name == "response.output_text.delta"] == ["Hel", "lo"]
        assert events[5][1]["text"] == "Hello"

        completed = events[-1][1]["response"]
        assert completed["status"] == "completed"
        assert completed["output"][0]["content"][0]["text"] == "Hello"

    def test_done_before_any_chunk_still_completes(self, canonical):
        transcoder = ResponsesTranscoder(canonical, "req1")

        events = parse_events(transcoder.feed_line("data: [DONE]"))

        assert [name for name, _ in events] == [
            "response.output_text.done",
            "response.content_part.done",
            "response.output_item.done",
            "response.completed",
        ]
        assert events[0][1]["text"] == ""

    def test_content_without_id_opens_with_generated_id(self, canonical):
        transcoder = ResponsesTranscoder(canonical, "req1")

        events = parse_events(transcoder.feed_line(chunk("Hi", chunk_id="")))

        assert [name for name, _ in events][:3] == [
            "response.created",
            "response.output_item.added",
            "response.content_part.added",
        ]
        assert events[3][1]["item_id"] == "resp_req1"

    def test_malformed_chunks_are_skipped(self, canonical):
        transcoder = ResponsesTranscoder(canonical, "req1")

        assert transcoder.feed_line("data: {not json") == []
        assert transcoder.feed_line("data: [1, 2]") == []
        assert len(transcoder.feed_line(chunk("ok"))) == 4

    def test_lifecycle_opens_once(self, canonical):
        transcoder = ResponsesTranscoder(canonical, "req1")
        transcoder.feed_line(chunk("a"))

        events = parse_events(transcoder.feed_line(chunk("b", chunk_id="chatcmpl-other")))

        assert [name for name, _ in events] == ["response.output_text.delta"]
        assert events[0][1]["item_id"] == "chatcmpl-9"


@pytest.mark.parametrize(
    "payload",
    [
        {"id": "c1", "choices": ["oops"]},
        {"id": "c1", "choices": [{"delta": "text"}]},
        {"id": "c1", "choices": {"0": {"delta": {"content": "hi"}}}},
        {"id": "c1", "choices": [{"delta": {"content": 5}}]},
    ],
)
def test_wrong_shape_chunks_are_skipped(canonical, payload):
    transcoder = ResponsesTranscoder(canonical, "req1")

    assert transcoder.feed_line("data: " + json.dumps(payload)) == []

    frames = transcoder.feed_line(chunk("ok")) + transcoder.feed_line("data: [DONE]")
    names = [name for name, _ in parse_events(frames)]
    assert names[-1] == "response.completed"
    assert parse_events(frames)[-1][1]["response"]["output"][0]["content"][0]["text"] == "ok"
