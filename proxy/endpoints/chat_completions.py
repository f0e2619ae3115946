"""
OpenAI chat completions endpoint.
"""
from fastapi import APIRouter, Depends, Request

from copilot_compat import DialectName
from copilot_oauth import TokenManager
from providers import CopilotProvider
from ..dependencies import get_copilot_provider, get_token_manager
from ..handlers import handle_chat_request

router = APIRouter()


@router.post("/v1/chat/completions")
async def chat_completions(
    raw_request: Request,
    token_manager: TokenManager = Depends(get_token_manager),
    provider: CopilotProvider = Depends(get_copilot_provider),
):
    """OpenAI-compatible chat completions, JSON or SSE passthrough"""
    return await handle_chat_request(DialectName.OPENAI_CHAT, raw_request, token_manager, provider)
