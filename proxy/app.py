"""
FastAPI application initialization and configuration.
"""
import logging
from fastapi import FastAPI

from settings import VERSION
from .exception_handlers import register_exception_handlers
from .middleware import log_requests_middleware
from .endpoints import (
    health_router,
    models_router,
    chat_completions_router,
    responses_router,
    ollama_chat_router,
)

logger = logging.getLogger(__name__)

app = FastAPI(title="Copilot Gateway", version=VERSION)

app.middleware("http")(log_requests_middleware)
register_exception_handlers(app)

app.include_router(health_router)
app.include_router(models_router)
app.include_router(chat_completions_router)
app.include_router(responses_router)
app.include_router(ollama_chat_router)

logger.debug("FastAPI application initialized with all routers and middleware")
