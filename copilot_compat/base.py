"""
Dialect interface shared by every client-facing wire format.

A dialect pairs a converter (buffered request/response mapping) with a
stream transcoder (incremental translation of the Copilot SSE stream).
"""
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncIterator, Dict, List, Optional, Type, TYPE_CHECKING

from pydantic import BaseModel, ValidationError

from exceptions import BadClientRequest

from .models import ChatRequest, ChatResponse, StreamChunk
from .sse_parser import DONE_SENTINEL, extract_data_payload

if TYPE_CHECKING:
    from stream_debug import StreamTracer

logger = logging.getLogger(__name__)


class DialectName(str, Enum):
    OPENAI_CHAT = "openai_chat"
    OPENAI_RESPONSES = "openai_responses"
    OLLAMA_CHAT = "ollama_chat"


@dataclass
class StreamAccumulator:
    """Mutable state for exactly one streaming response

    Attributes:
        model: Model name reported to the client
        response_id: Upstream completion id, captured from the first chunk
        accumulated_text: Concatenation of every content delta seen so far
        created_at: Unix seconds at which the stream started
    """
    model: str = ""
    response_id: str = ""
    accumulated_text: str = ""
    created_at: int = field(default_factory=lambda: int(time.time()))


def parse_model(model_class: Type[BaseModel], body: Any, dialect: str) -> Any:
    """Validate a generic JSON body into a dialect model"""
    if not isinstance(body, dict):
        raise BadClientRequest(f"Invalid {dialect} request: expected a JSON object")
    try:
        return model_class.model_validate(body)
    except ValidationError as e:
        raise BadClientRequest(f"Invalid {dialect} request: {e}") from e


class DialectConverter(ABC):
    """Buffered mapping between a client dialect and the canonical format"""

    @abstractmethod
    def to_canonical(self, body: Dict[str, Any]) -> ChatRequest:
        """Parse a client request body

        Raises:
            BadClientRequest: The body does not match the dialect
        """

    @abstractmethod
    def from_canonical(self, response: ChatResponse, request: ChatRequest) -> Dict[str, Any]:
        """Render a buffered Copilot response in the client dialect"""


class StreamTranscoder(ABC):
    """Translates the Copilot SSE line stream for one request

    Instances hold per-stream state and must not be reused.
    """

    media_type = "text/event-stream"

    def __init__(self, request: ChatRequest, request_id: str, tracer: Optional["StreamTracer"] = None):
        self.request = request
        self.request_id = request_id
        self.tracer = tracer
        self.state = StreamAccumulator(model=request.model)
        self.closed = False

    def feed_line(self, line: str) -> List[str]:
        """Translate one upstream line into zero or more outbound frames"""
        if self.closed:
            return []

        payload = extract_data_payload(line, self.request_id)
        if payload is None:
            return []

        if payload == DONE_SENTINEL:
            self.closed = True
            return self.on_done()
        return self.on_payload(payload)

    def parse_chunk(self, payload: str) -> Optional[StreamChunk]:
        """Validate an upstream chunk, None when it is not a chunk object"""
        try:
            return StreamChunk.model_validate_json(payload)
        except ValidationError:
            logger.warning(f"[{self.request_id}] Skipping malformed upstream chunk: {payload[:100]}")
            return None

    @abstractmethod
    def on_payload(self, payload: str) -> List[str]:
        pass

    @abstractmethod
    def on_done(self) -> List[str]:
        pass

    async def transcode(self, lines: AsyncIterator[str]) -> AsyncIterator[str]:
        """Drive the transcoder over an upstream line iterator"""
        if self.tracer:
            self.tracer.log_note(f"starting {type(self).__name__}")

        async for line in lines:
            if self.tracer:
                self.tracer.log_source_chunk(line)

            for frame in self.feed_line(line):
                if self.tracer:
                    self.tracer.log_converted_chunk(frame)
                yield frame

            if self.closed:
                break

        if not self.closed:
            logger.warning(f"[{self.request_id}] Upstream stream ended without a [DONE] sentinel")


@dataclass(frozen=True)
class Dialect:
    """A converter plus the transcoder class used for streaming"""
    name: DialectName
    converter: DialectConverter
    transcoder_class: Type[StreamTranscoder]

    def new_transcoder(
        self,
        request: ChatRequest,
        request_id: str,
        tracer: Optional["StreamTracer"] = None,
    ) -> StreamTranscoder:
        return self.transcoder_class(request, request_id, tracer)

    @property
    def stream_media_type(self) -> str:
        return self.transcoder_class.media_type
