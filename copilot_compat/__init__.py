"""
Client dialect compatibility layer for the Copilot API.
Converts OpenAI Chat, OpenAI Responses and Ollama Chat traffic to and from
the canonical Copilot chat format.
"""

from .models import (
    ChatMessage,
    ChatRequest,
    ChatResponse,
    Choice,
    FunctionCall,
    FunctionDefinition,
    StreamChunk,
    Tool,
    ToolCall,
    Usage,
)
from .normalizer import ids_present, normalize_tool_ids
from .base import (
    Dialect,
    DialectConverter,
    DialectName,
    StreamAccumulator,
    StreamTranscoder,
)
from .openai_chat import OpenAIChatConverter, OpenAIChatTranscoder
from .openai_responses import ResponsesConverter, ResponsesTranscoder
from .ollama_chat import OllamaChatConverter, OllamaChatTranscoder

DIALECTS = {
    DialectName.OPENAI_CHAT: Dialect(DialectName.OPENAI_CHAT, OpenAIChatConverter(), OpenAIChatTranscoder),
    DialectName.OPENAI_RESPONSES: Dialect(DialectName.OPENAI_RESPONSES, ResponsesConverter(), ResponsesTranscoder),
    DialectName.OLLAMA_CHAT: Dialect(DialectName.OLLAMA_CHAT, OllamaChatConverter(), OllamaChatTranscoder),
}


def get_dialect(name: DialectName) -> Dialect:
    return DIALECTS[name]


__all__ = [
    # Canonical models
    "ChatMessage",
    "ChatRequest",
    "ChatResponse",
    "Choice",
    "FunctionCall",
    "FunctionDefinition",
    "StreamChunk",
    "Tool",
    "ToolCall",
    "Usage",

    # Tool id repair
    "ids_present",
    "normalize_tool_ids",

    # Dialect interface
    "Dialect",
    "DialectConverter",
    "DialectName",
    "StreamAccumulator",
    "StreamTranscoder",

    # Dialect implementations
    "OpenAIChatConverter",
    "OpenAIChatTranscoder",
    "ResponsesConverter",
    "ResponsesTranscoder",
    "OllamaChatConverter",
    "OllamaChatTranscoder",

    # Registry
    "DIALECTS",
    "get_dialect",
]
