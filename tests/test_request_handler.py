import pytest

from copilot_compat import ChatRequest, OpenAIChatTranscoder
from providers import CopilotProvider
from proxy.dependencies import get_copilot_provider
from proxy.handlers import stream_frames
from stream_debug import StreamTracer


def upstream_lines(events):
    async def _lines():
        try:
            yield 'data: {"id": "c1", "choices": [{"delta": {"content": "one"}}]}'
            yield 'data: {"id": "c1", "choices": [{"delta": {"content": "two"}}]}'
            yield "data: [DONE]"
        finally:
            events.append("upstream closed")
    return _lines()


@pytest.fixture
def transcoder():
    request = ChatRequest.model_validate({"model": "gpt-4o", "messages": [], "stream": True})
    return OpenAIChatTranscoder(request, "req1")


@pytest.mark.asyncio
async def test_client_disconnect_closes_upstream(transcoder, tmp_path):
    events = []
    tracer = StreamTracer("req1", "openai_chat", str(tmp_path), None)
    frames = stream_frames(transcoder, upstream_lines(events), "req1", tracer)

    first = await frames.__anext__()
    await frames.aclose()

    assert '"one"' in first
    assert events == ["upstream closed"]
    assert "trace closed" in tracer.path.read_text()


@pytest.mark.asyncio
async def test_finished_stream_closes_upstream(transcoder):
    events = []

    frames = [frame async for frame in stream_frames(transcoder, upstream_lines(events), "req1")]

    assert frames[-1] == "data: [DONE]\n\n"
    assert events == ["upstream closed"]


class RecordingProvider(CopilotProvider):
    def __init__(self):
        super().__init__()
        self.opened = 0

    async def open_stream(self, request_data, token, request_id):
        self.opened += 1
        return upstream_lines([])


def test_tracer_failure_happens_before_upstream_is_opened(client, monkeypatch):
    provider = RecordingProvider()
    client.app.dependency_overrides[get_copilot_provider] = lambda: provider

    def broken_tracer(**kwargs):
        raise OSError("trace directory is read-only")

    monkeypatch.setattr("proxy.handlers.request_handler.maybe_create_stream_tracer", broken_tracer)

    with pytest.raises(OSError):
        client.post("/v1/chat/completions", json={
            "model": "gpt-4o",
            "messages": [{"role": "user", "content": "hi"}],
            "stream": True,
        })
    assert provider.opened == 0
