"""
Logging utilities for request debugging and tracing.
"""
import logging
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)

REDACTED_HEADERS = {'authorization', 'x-api-key', 'api-key', 'cookie'}


def log_request(request_id: str, request_data: Dict[str, Any], endpoint: str, headers: Optional[Dict[str, str]] = None):
    """Log incoming request details including headers"""
    if not logger.isEnabledFor(logging.DEBUG):
        return

    logger.debug(f"[{request_id}] RAW REQUEST CAPTURE")
    logger.debug(f"[{request_id}] Endpoint: {endpoint}")
    logger.debug(f"[{request_id}] Model: {request_data.get('model', 'unknown')}")
    logger.debug(f"[{request_id}] Stream: {request_data.get('stream', False)}")
    logger.debug(f"[{request_id}] Messages: {len(request_data.get('messages') or request_data.get('input') or [])}")
    logger.debug(f"[{request_id}] Tools: {len(request_data.get('tools') or [])}")

    if headers:
        for header_name, header_value in headers.items():
            if header_name.lower() in REDACTED_HEADERS:
                logger.debug(f"[{request_id}] {header_name}: [REDACTED]")
            else:
                logger.debug(f"[{request_id}] {header_name}: {header_value}")
