"""
Endpoint handlers for the proxy server.
"""
from .health import router as health_router
from .models import router as models_router
from .chat_completions import router as chat_completions_router
from .responses import router as responses_router
from .ollama_chat import router as ollama_chat_router

__all__ = [
    'health_router',
    'models_router',
    'chat_completions_router',
    'responses_router',
    'ollama_chat_router',
]
