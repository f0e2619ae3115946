import httpx
import pytest

from exceptions import NetworkError, UpstreamProtocolError
from providers import CopilotProvider, flatten_catalog


def test_list_catalog_uses_family_then_publisher():
    entries = flatten_catalog([
        {"id": "gpt-4o", "family": "gpt"},
        {"id": "phi-4", "publisher": "microsoft"},
        {"id": "mystery"},
        {"name": "no-id"},
    ])

    assert entries == [("gpt-4o", "gpt"), ("phi-4", "microsoft"), ("mystery", "copilot")]


def test_provider_keyed_catalog_without_copilot_entry():
    entries = flatten_catalog({
        "openai": {"models": {"gpt-4o": {"family": "gpt"}, "o3": {}}},
        "broken": "not a provider",
    })

    assert entries == [("gpt-4o", "gpt"), ("o3", "openai")]


def test_unexpected_catalog_shape():
    with pytest.raises(UpstreamProtocolError):
        flatten_catalog("nope")


@pytest.mark.asyncio
async def test_list_models_sends_bearer(respx_mock):
    provider = CopilotProvider(models_url="https://catalog.test/models")
    route = respx_mock.get("https://catalog.test/models").mock(
        return_value=httpx.Response(200, json=[{"id": "gpt-4o", "family": "gpt"}])
    )

    entries = await provider.list_models("tid=abc", "req1")

    assert entries == [("gpt-4o", "gpt")]
    assert route.calls.last.request.headers["authorization"] == "Bearer tid=abc"


@pytest.mark.asyncio
async def test_open_stream_yields_lines_and_closes(respx_mock, monkeypatch):
    closed = []
    original_response_aclose = httpx.Response.aclose
    original_client_aclose = httpx.AsyncClient.aclose

    async def record_response_aclose(self):
        await original_response_aclose(self)
        closed.append(("response", self.is_closed))

    async def record_client_aclose(self):
        await original_client_aclose(self)
        closed.append(("client", self.is_closed))

    monkeypatch.setattr(httpx.Response, "aclose", record_response_aclose)
    monkeypatch.setattr(httpx.AsyncClient, "aclose", record_client_aclose)
    provider = CopilotProvider(api_base_url="https://copilot.test/")
    respx_mock.post("https://copilot.test/chat/completions").mock(
        return_value=httpx.Response(200, text="data: {}\n\ndata: [DONE]\n\n")
    )

    lines = await provider.open_stream({"model": "m", "messages": [], "stream": True}, "tid", "req1")
    collected = [line async for line in lines]

    assert [line for line in collected if line] == ["data: {}", "data: [DONE]"]
    assert ("response", True) in closed
    assert ("client", True) in closed


@pytest.mark.asyncio
async def test_open_stream_network_error(respx_mock):
    provider = CopilotProvider(api_base_url="https://copilot.test")
    respx_mock.post("https://copilot.test/chat/completions").mock(side_effect=httpx.ReadTimeout("slow"))

    with pytest.raises(NetworkError):
        await provider.open_stream({"model": "m", "messages": []}, "tid", "req1")
