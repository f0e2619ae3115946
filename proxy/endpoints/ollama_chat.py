"""
Ollama chat endpoint.
"""
from fastapi import APIRouter, Depends, Request

from copilot_compat import DialectName
from copilot_oauth import TokenManager
from providers import CopilotProvider
from ..dependencies import get_copilot_provider, get_token_manager
from ..handlers import handle_chat_request

router = APIRouter()


@router.post("/api/chat")
@router.post("/v1/api/chat")
async def ollama_chat(
    raw_request: Request,
    token_manager: TokenManager = Depends(get_token_manager),
    provider: CopilotProvider = Depends(get_copilot_provider),
):
    """Ollama-compatible chat, JSON or NDJSON stream"""
    return await handle_chat_request(DialectName.OLLAMA_CHAT, raw_request, token_manager, provider)
