"""
Ollama Chat dialect.

Ollama sends the same request shape as Chat Completions but expects a
single message per response and streams newline-delimited JSON.
"""
import datetime
import json
import logging
import time
from typing import Any, Dict, List, Optional

from exceptions import UpstreamProtocolError
from .base import DialectConverter, StreamTranscoder, parse_model
from .models import ChatRequest, ChatResponse

logger = logging.getLogger(__name__)


def rfc3339(timestamp: Optional[float] = None) -> str:
    if timestamp is None:
        timestamp = time.time()
    return (
        datetime.datetime.fromtimestamp(timestamp, datetime.timezone.utc)
        .isoformat()
        .replace("+00:00", "Z")
    )


def decode_arguments(arguments: str) -> Any:
    """Ollama expects tool arguments as an object"""
    try:
        return json.loads(arguments) if arguments else {}
    except json.JSONDecodeError:
        return arguments


class OllamaChatConverter(DialectConverter):

    def to_canonical(self, body: Dict[str, Any]) -> ChatRequest:
        return parse_model(ChatRequest, body, "ollama chat")

    def from_canonical(self, response: ChatResponse, request: ChatRequest) -> Dict[str, Any]:
        if not response.choices:
            raise UpstreamProtocolError("No choices in Copilot response")

        choice = response.choices[0]
        message: Dict[str, Any] = {
            "role": choice.message.role,
            "content": choice.message.content or "",
        }
        if choice.message.tool_calls:
            message["tool_calls"] = [
                {
                    "id": tool_call.id or str(index),
                    "function": {
                        "name": tool_call.function.name,
                        "description": request.tool_description(tool_call.function.name),
                        "arguments": decode_arguments(tool_call.function.arguments),
                    },
                }
                for index, tool_call in enumerate(choice.message.tool_calls)
            ]

        result = {
            "model": request.model,
            "created_at": rfc3339(response.created or None),
            "message": message,
            "done": True,
            "done_reason": choice.finish_reason or "stop",
        }
        if response.usage:
            result["prompt_eval_count"] = response.usage.prompt_tokens
            result["eval_count"] = response.usage.completion_tokens
        return result


class OllamaChatTranscoder(StreamTranscoder):
    """Emits one NDJSON line per upstream chunk and a terminal done line"""

    media_type = "application/x-ndjson"

    def _line(self, content: str, **extra: Any) -> str:
        payload = {
            "model": self.state.model,
            "created_at": rfc3339(),
            "message": {"role": "assistant", "content": content},
            "done": False,
        }
        payload.update(extra)
        return json.dumps(payload) + "\n"

    def on_payload(self, payload: str) -> List[str]:
        chunk = self.parse_chunk(payload)
        if chunk is None:
            return []

        content = ""
        if chunk.choices and chunk.choices[0].delta is not None:
            content = chunk.choices[0].delta.content or ""
        return [self._line(content)]

    def on_done(self) -> List[str]:
        return [self._line("", done=True, done_reason="stop")]
