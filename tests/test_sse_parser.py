import pytest

from copilot_compat import ChatRequest, OllamaChatTranscoder, OpenAIChatTranscoder, ResponsesTranscoder
from copilot_compat.sse_parser import extract_data_payload, format_sse_event


@pytest.mark.parametrize(
    "line, expected",
    [
        ("data: {\"a\": 1}", "{\"a\": 1}"),
        ("data: [DONE]", "[DONE]"),
        ("data: [DONE]\r\n", "[DONE]"),
        ("", None),
        ("   ", None),
        (": keep-alive", None),
        ("event: ping", None),
    ],
)
def test_extract_data_payload(line, expected):
    assert extract_data_payload(line) == expected


def test_non_data_line_is_logged(caplog):
    extract_data_payload("retry: 100", "req7")
    assert "[req7] Skipping non-data SSE line" in caplog.text


def test_format_sse_event_repeats_type():
    frame = format_sse_event("response.created", {"response": {}})
    assert frame == 'event: response.created\ndata: {"type": "response.created", "response": {}}\n\n'


@pytest.mark.parametrize("transcoder_class", [OpenAIChatTranscoder, ResponsesTranscoder, OllamaChatTranscoder])
@pytest.mark.parametrize("line", ["event: message", ": comment", "id: 42", ""])
def test_non_data_lines_produce_no_frames(transcoder_class, line):
    request = ChatRequest.model_validate({"model": "gpt-4o", "messages": []})
    transcoder = transcoder_class(request, "req1")

    assert transcoder.feed_line(line) == []
    assert not transcoder.closed


@pytest.mark.asyncio
@pytest.mark.parametrize("transcoder_class", [OpenAIChatTranscoder, ResponsesTranscoder, OllamaChatTranscoder])
async def test_transcode_stops_at_done(transcoder_class):
    request = ChatRequest.model_validate({"model": "gpt-4o", "messages": []})
    transcoder = transcoder_class(request, "req1")

    async def lines():
        yield "data: [DONE]"
        yield 'data: {"choices": [{"delta": {"content": "late"}}]}'

    frames = [frame async for frame in transcoder.transcode(lines())]

    assert frames
    assert all("late" not in frame for frame in frames)
