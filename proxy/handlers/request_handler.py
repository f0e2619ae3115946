"""
Shared request pipeline for every chat dialect.

body -> dialect converter -> tool id repair -> Copilot token -> upstream
call -> (stream transcoder | response converter) -> client.
"""
import json
import logging
import time
import uuid
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import ValidationError

import settings
from copilot_compat import ChatResponse, DialectName, StreamTranscoder, get_dialect, normalize_tool_ids
from copilot_oauth import TokenManager
from exceptions import BadClientRequest, GatewayError, UpstreamProtocolError
from providers import CopilotProvider
from stream_debug import StreamTracer, maybe_create_stream_tracer
from ..logging_utils import log_request

logger = logging.getLogger(__name__)


async def read_json_body(raw_request: Request) -> Dict[str, Any]:
    """Parse the request body as generic JSON before any dialect validation"""
    raw_body = await raw_request.body()
    try:
        body = json.loads(raw_body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise BadClientRequest(f"Invalid JSON body: {e}") from e

    if not isinstance(body, dict):
        raise BadClientRequest("Invalid JSON body: expected an object")
    return body


async def stream_frames(
    transcoder: StreamTranscoder,
    lines: AsyncIterator[str],
    request_id: str,
    tracer: Optional[StreamTracer] = None,
) -> AsyncIterator[str]:
    """Run a transcoder and always release the upstream connection"""
    frame_count = 0
    try:
        async for frame in transcoder.transcode(lines):
            frame_count += 1
            yield frame
    except GatewayError as e:
        # Headers are already sent, the only option left is ending the stream
        logger.error(f"[{request_id}] Stream aborted: {e}")
        if tracer:
            tracer.log_error(str(e))
    finally:
        await lines.aclose()
        if tracer:
            tracer.close()
        logger.debug(f"[{request_id}] Stream finished after {frame_count} frame(s)")


async def handle_chat_request(
    dialect_name: DialectName,
    raw_request: Request,
    token_manager: TokenManager,
    provider: CopilotProvider,
):
    request_id = str(uuid.uuid4())[:8]
    start_time = time.time()
    dialect = get_dialect(dialect_name)

    body = await read_json_body(raw_request)
    log_request(request_id, body, raw_request.url.path, dict(raw_request.headers))

    request = dialect.converter.to_canonical(body)
    normalize_tool_ids(request, request_id)

    logger.info(f"[{request_id}] ===== NEW {dialect.name.value.upper()} REQUEST =====")
    logger.debug(f"[{request_id}] Model: {request.model}, stream: {request.stream}, messages: {len(request.messages)}")

    token = await token_manager.get_valid_token()
    upstream_body = request.to_upstream()

    if request.stream:
        # Nothing may fail between opening the upstream stream and handing it to stream_frames
        tracer = maybe_create_stream_tracer(
            enabled=settings.STREAM_TRACE_ENABLED,
            request_id=request_id,
            route=dialect.name.value,
            base_dir=settings.STREAM_TRACE_DIR,
            max_bytes=settings.STREAM_TRACE_MAX_BYTES,
        )
        transcoder = dialect.new_transcoder(request, request_id, tracer)
        try:
            lines = await provider.open_stream(upstream_body, token.token, request_id)
        except GatewayError as e:
            if tracer:
                tracer.log_error(str(e))
                tracer.close()
            raise
        return StreamingResponse(
            stream_frames(transcoder, lines, request_id, tracer),
            media_type=dialect.stream_media_type,
        )

    raw_response = await provider.make_request(upstream_body, token.token, request_id)
    try:
        response = ChatResponse.model_validate(raw_response)
    except ValidationError as e:
        logger.error(f"[{request_id}] Failed to parse Copilot response: {e}")
        raise UpstreamProtocolError(f"Failed to parse Copilot response: {e}") from e

    result = dialect.converter.from_canonical(response, request)

    elapsed = time.time() - start_time
    logger.info(f"[{request_id}] Request completed in {elapsed:.2f}s")
    return JSONResponse(content=result)
