"""
OpenAI Responses dialect.

Requests carry an ``input`` list of typed items plus top-level
``instructions``; streaming answers are a lifecycle of named events
wrapped around the text deltas.
"""
import logging
import time
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

from .base import DialectConverter, StreamTranscoder, parse_model
from .models import (
    ChatMessage,
    ChatRequest,
    ChatResponse,
    FunctionCall,
    FunctionDefinition,
    Tool,
    ToolCall,
    flatten_content,
)
from .sse_parser import format_sse_event

logger = logging.getLogger(__name__)


# Pydantic models for Responses API requests
class InputContent(BaseModel):
    """Content block of an input message"""
    type: str = "input_text"
    text: Optional[str] = None


class InputItem(BaseModel):
    """One entry of the ``input`` list

    Plain messages use role/content, ``function_call`` items use
    name/arguments/call_id and ``function_call_output`` items use output/call_id.
    """
    type: str = "message"
    role: Optional[str] = None
    content: Optional[Union[str, List[InputContent]]] = None
    name: Optional[str] = None
    arguments: Optional[str] = None
    output: Optional[str] = None
    call_id: Optional[str] = None


class ResponsesTool(BaseModel):
    """Tool definition in Responses API format"""
    type: str = "function"
    name: str
    description: Optional[str] = None
    parameters: Optional[Dict[str, Any]] = None
    strict: Optional[bool] = None


class ResponsesRequest(BaseModel):
    """OpenAI Responses API request format"""
    model: str
    input: Union[str, List[InputItem]]
    instructions: Optional[str] = None
    max_output_tokens: Optional[int] = None
    temperature: Optional[float] = None
    tools: List[ResponsesTool] = Field(default_factory=list)
    tool_choice: Optional[Union[str, Dict[str, Any]]] = None
    stream: Optional[bool] = False


def tool_parameters(parameters: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Complete a JSON schema object with the keys Copilot expects"""
    parameters = parameters or {}
    return {
        **parameters,
        "type": parameters.get("type", "object"),
        "properties": parameters.get("properties", {}),
        "required": parameters.get("required", []),
        "additionalProperties": parameters.get("additionalProperties", False),
    }


def input_messages(items: Union[str, List[InputItem]]) -> List[ChatMessage]:
    if isinstance(items, str):
        return [ChatMessage(role="user", content=items)]

    messages: List[ChatMessage] = []
    pending_calls: List[ToolCall] = []

    def flush_calls():
        if pending_calls:
            messages.append(ChatMessage(role="assistant", tool_calls=list(pending_calls)))
            pending_calls.clear()

    for item in items:
        if item.type == "function_call":
            pending_calls.append(ToolCall(
                id=item.call_id or None,
                function=FunctionCall(name=item.name or "", arguments=item.arguments or ""),
            ))
            continue

        flush_calls()
        if item.type == "function_call_output":
            messages.append(ChatMessage(
                role="tool",
                content=item.output or "",
                tool_call_id=item.call_id or None,
            ))
        else:
            content = item.content
            if isinstance(content, list):
                content = flatten_content([part.model_dump(exclude_none=True) for part in content])
            messages.append(ChatMessage(role=item.role or "user", content=content))

    flush_calls()
    return messages


def response_shell(
    response_id: str,
    model: str,
    created_at: int,
    status: str,
    output: List[Dict[str, Any]],
    **extra: Any,
) -> Dict[str, Any]:
    shell = {
        "id": response_id,
        "object": "response",
        "created_at": created_at,
        "status": status,
        "error": None,
        "incomplete_details": None,
        "instructions": None,
        "max_output_tokens": None,
        "model": model,
        "usage": None,
        "output": output,
        "tools": [],
    }
    shell.update(extra)
    return shell


def output_message(item_id: str, status: str, content: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "type": "message",
        "id": item_id,
        "role": "assistant",
        "status": status,
        "content": content,
    }


def output_text(text: str) -> Dict[str, Any]:
    return {"type": "output_text", "text": text, "annotations": []}


class ResponsesConverter(DialectConverter):

    def to_canonical(self, body: Dict[str, Any]) -> ChatRequest:
        request = parse_model(ResponsesRequest, body, "responses")

        messages = []
        if request.instructions:
            messages.append(ChatMessage(role="system", content=request.instructions))
        messages.extend(input_messages(request.input))

        tools = None
        if request.tools:
            tools = [
                Tool(
                    type=tool.type,
                    function=FunctionDefinition(
                        name=tool.name,
                        description=tool.description or "",
                        parameters=tool_parameters(tool.parameters),
                    ),
                )
                for tool in request.tools
            ]

        return ChatRequest(
            messages=messages,
            model=request.model,
            temperature=request.temperature,
            max_tokens=request.max_output_tokens,
            stream=bool(request.stream),
            tools=tools,
            tool_choice=request.tool_choice,
        )

    def from_canonical(self, response: ChatResponse, request: ChatRequest) -> Dict[str, Any]:
        output = []
        for position, choice in enumerate(response.choices):
            message = choice.message
            if message.tool_calls:
                # The Responses item carries a single call
                call = message.tool_calls[0]
                output.append({
                    "type": "function_call",
                    "id": call.id or "",
                    "call_id": call.id or message.tool_call_id or "",
                    "name": call.function.name,
                    "arguments": call.function.arguments,
                    "status": "completed",
                })
            elif message.content is not None:
                output.append(output_message(
                    f"{response.id}-{position}", "completed", [output_text(message.content)]
                ))
            else:
                output.append(output_message(
                    f"{response.id}-{position}", "completed", [{"type": "refusal", "refusal": "No content"}]
                ))

        usage = None
        if response.usage:
            usage = {
                "input_tokens": response.usage.prompt_tokens,
                "output_tokens": response.usage.completion_tokens,
                "output_tokens_details": {"reasoning_tokens": 0},
                "total_tokens": response.usage.total_tokens,
            }

        tools = [
            {
                "type": tool.type,
                "name": tool.function.name,
                "description": tool.function.description or "",
                "parameters": tool.function.parameters or {},
                "strict": True,
            }
            for tool in request.tools or []
        ]

        return response_shell(
            response.id,
            response.model or request.model,
            response.created if response.created else int(time.time()),
            "completed",
            output,
            usage=usage,
            tools=tools,
            max_output_tokens=request.max_tokens,
        )


class LifecycleState(Enum):
    IDLE = "idle"
    OPEN = "open"
    CLOSED = "closed"


class ResponsesTranscoder(StreamTranscoder):
    """Synthesizes the Responses event lifecycle around Copilot text deltas"""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.lifecycle = LifecycleState.IDLE

    def on_payload(self, payload: str) -> List[str]:
        chunk = self.parse_chunk(payload)
        if chunk is None:
            return []

        deltas = chunk.content_deltas()
        events: List[str] = []

        if self.lifecycle is LifecycleState.IDLE:
            chunk_id = chunk.id or ""
            if not chunk_id and not deltas:
                return []
            events.extend(self._open(chunk_id, chunk.model or ""))

        for delta in deltas:
            self.state.accumulated_text += delta
            events.append(format_sse_event("response.output_text.delta", {
                "item_id": self.state.response_id,
                "output_index": 0,
                "content_index": 0,
                "delta": delta,
            }))
        return events

    def _open(self, chunk_id: str, model: str) -> List[str]:
        # Content ahead of any upstream id still gets a stable item id
        self.state.response_id = chunk_id or f"resp_{self.request_id}"
        if model:
            self.state.model = model
        self.lifecycle = LifecycleState.OPEN
        logger.debug(f"[{self.request_id}] Opened response lifecycle for {self.state.response_id}")

        response_id = self.state.response_id
        return [
            format_sse_event("response.created", {
                "response": response_shell(
                    response_id, self.state.model, self.state.created_at, "in_progress", []
                ),
            }),
            format_sse_event("response.output_item.added", {
                "output_index": 0,
                "item": output_message(response_id, "in_progress", []),
            }),
            format_sse_event("response.content_part.added", {
                "item_id": response_id,
                "output_index": 0,
                "content_index": 0,
                "part": output_text(""),
            }),
        ]

    def on_done(self) -> List[str]:
        self.lifecycle = LifecycleState.CLOSED
        response_id = self.state.response_id
        text = self.state.accumulated_text
        message = output_message(response_id, "completed", [output_text(text)])

        return [
            format_sse_event("response.output_text.done", {
                "item_id": response_id,
                "output_index": 0,
                "content_index": 0,
                "text": text,
            }),
            format_sse_event("response.content_part.done", {
                "item_id": response_id,
                "output_index": 0,
                "content_index": 0,
                "part": output_text(text),
            }),
            format_sse_event("response.output_item.done", {
                "output_index": 0,
                "item": message,
            }),
            format_sse_event("response.completed", {
                "response": response_shell(
                    response_id, self.state.model, self.state.created_at, "completed", [message]
                ),
            }),
        ]
