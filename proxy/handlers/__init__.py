"""
Request handlers for the proxy server.
"""
from .request_handler import handle_chat_request, read_json_body, stream_frames

__all__ = [
    'handle_chat_request',
    'read_json_body',
    'stream_frames',
]
