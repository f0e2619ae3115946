"""
OpenAI Chat Completions dialect.

The client format is the canonical format, so the request side is a
validated copy and streaming chunks are forwarded verbatim.
"""
import logging
import time
from typing import Any, Dict, List

from .base import DialectConverter, StreamTranscoder, parse_model
from .models import ChatMessage, ChatRequest, ChatResponse, Usage
from .sse_parser import DONE_SENTINEL, format_sse_data

logger = logging.getLogger(__name__)


def render_message(message: ChatMessage) -> Dict[str, Any]:
    rendered = message.model_dump(exclude_none=True)
    rendered.setdefault("content", None)
    return rendered


class OpenAIChatConverter(DialectConverter):

    def to_canonical(self, body: Dict[str, Any]) -> ChatRequest:
        return parse_model(ChatRequest, body, "chat completion")

    def from_canonical(self, response: ChatResponse, request: ChatRequest) -> Dict[str, Any]:
        created = response.created if response.created else int(time.time())

        choices = []
        for position, choice in enumerate(response.choices):
            # Explicit upstream indices are kept even when out of order
            index = choice.index if choice.index is not None else position
            choices.append({
                "index": index,
                "message": render_message(choice.message),
                "finish_reason": choice.finish_reason,
            })

        usage = response.usage or Usage()
        return {
            "id": response.id,
            "object": "chat.completion",
            "created": created,
            "model": response.model or request.model,
            "choices": choices,
            "usage": usage.model_dump(),
        }


class OpenAIChatTranscoder(StreamTranscoder):
    """Re-emits each upstream payload unchanged, including the sentinel"""

    def on_payload(self, payload: str) -> List[str]:
        return [format_sse_data(payload)]

    def on_done(self) -> List[str]:
        return [format_sse_data(DONE_SENTINEL)]
