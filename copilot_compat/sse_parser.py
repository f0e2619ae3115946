"""
Line framing for the Copilot SSE stream and for outbound SSE events.
"""
import json
import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


def extract_data_payload(line: str, request_id: str = "-") -> Optional[str]:
    """Return the payload of a ``data: `` line

    Blank lines and lines without the data prefix yield None; the latter are
    logged and never interrupt the stream.
    """
    line = line.rstrip("\r\n")
    if not line.strip():
        return None

    if not line.startswith(DATA_PREFIX):
        logger.warning(f"[{request_id}] Skipping non-data SSE line: {line[:100]}")
        return None

    return line[len(DATA_PREFIX):]


def format_sse_data(payload: str) -> str:
    return f"{DATA_PREFIX}{payload}\n\n"


def format_sse_event(event_type: str, data: Dict[str, Any]) -> str:
    """Named SSE event whose JSON body repeats the event type"""
    body = {"type": event_type, **data}
    return f"event: {event_type}\n{DATA_PREFIX}{json.dumps(body)}\n\n"
