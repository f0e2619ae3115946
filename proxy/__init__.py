"""
Copilot gateway - HTTP server package.

Exposes OpenAI Chat Completions, OpenAI Responses and Ollama Chat
endpoints backed by a single GitHub Copilot chat completions upstream.
"""
from .server import ProxyServer
from .app import app

__all__ = [
    'ProxyServer',
    'app',
]
