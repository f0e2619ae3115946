"""
Pydantic models for the canonical chat format spoken by the Copilot API.

Every client dialect is converted into ChatRequest before forwarding and
ChatResponse is the shape of a buffered upstream answer.
"""
import json
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator


def flatten_content(content: Any) -> Optional[str]:
    """Collapse an array of content parts into newline-joined text"""
    if content is None or isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict):
                if "text" in part:
                    parts.append(str(part["text"]))
                else:
                    parts.append(json.dumps(part))
        return "\n".join(parts)
    return json.dumps(content)


class FunctionCall(BaseModel):
    """Function invocation inside a tool call"""
    name: str
    arguments: str = ""

    @field_validator("arguments", mode="before")
    @classmethod
    def _serialize_arguments(cls, value: Any) -> str:
        # Ollama clients send arguments as an object
        if value is None:
            return ""
        if isinstance(value, str):
            return value
        return json.dumps(value)


class ToolCall(BaseModel):
    """Tool call emitted by the assistant"""
    id: Optional[str] = None
    type: str = "function"
    function: FunctionCall


class ChatMessage(BaseModel):
    """Chat message"""
    role: str
    content: Optional[str] = None
    tool_calls: Optional[List[ToolCall]] = None
    tool_call_id: Optional[str] = None
    name: Optional[str] = None

    @field_validator("content", mode="before")
    @classmethod
    def _flatten_content(cls, value: Any) -> Optional[str]:
        return flatten_content(value)


class FunctionDefinition(BaseModel):
    """Function definition"""
    name: str
    description: Optional[str] = None
    parameters: Optional[Dict[str, Any]] = None


class Tool(BaseModel):
    """Tool definition"""
    type: str = "function"
    function: FunctionDefinition


class ChatRequest(BaseModel):
    """Canonical chat completion request"""
    messages: List[ChatMessage]
    model: str
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    stream: bool = False
    tools: Optional[List[Tool]] = None
    tool_choice: Optional[Union[str, Dict[str, Any]]] = None

    @field_validator("stream", mode="before")
    @classmethod
    def _null_stream(cls, value: Any) -> bool:
        return bool(value) if value is not None else False

    def to_upstream(self) -> Dict[str, Any]:
        """Request body sent to the Copilot chat completions endpoint"""
        return self.model_dump(exclude_none=True)

    def tool_description(self, name: str) -> Optional[str]:
        for tool in self.tools or []:
            if tool.function.name == name:
                return tool.function.description
        return None


class Usage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class Choice(BaseModel):
    index: Optional[int] = None
    message: ChatMessage = Field(default_factory=lambda: ChatMessage(role="assistant"))
    finish_reason: Optional[str] = None


class ChatResponse(BaseModel):
    """Canonical non-streaming chat completion response"""
    id: str = ""
    created: Optional[int] = None
    model: str = ""
    choices: List[Choice] = Field(default_factory=list)
    usage: Optional[Usage] = None


class ChunkDelta(BaseModel):
    role: Optional[str] = None
    content: Optional[str] = None


class ChunkChoice(BaseModel):
    index: Optional[int] = None
    delta: Optional[ChunkDelta] = None
    finish_reason: Optional[str] = None


class StreamChunk(BaseModel):
    """One ``chat.completion.chunk`` payload of the upstream stream"""
    id: Optional[str] = None
    model: Optional[str] = None
    choices: Optional[List[ChunkChoice]] = None

    def content_deltas(self) -> List[str]:
        return [
            choice.delta.content
            for choice in self.choices or []
            if choice.delta is not None and choice.delta.content
        ]
