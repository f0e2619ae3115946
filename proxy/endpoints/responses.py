"""
OpenAI Responses API endpoint.

Accepts the Responses request format (``input`` items and
``instructions``) and answers with a response object or, when streaming,
with the response lifecycle events.
"""
from fastapi import APIRouter, Depends, Request

from copilot_compat import DialectName
from copilot_oauth import TokenManager
from providers import CopilotProvider
from ..dependencies import get_copilot_provider, get_token_manager
from ..handlers import handle_chat_request

router = APIRouter()


@router.post("/v1/responses")
async def responses_create(
    raw_request: Request,
    token_manager: TokenManager = Depends(get_token_manager),
    provider: CopilotProvider = Depends(get_copilot_provider),
):
    return await handle_chat_request(DialectName.OPENAI_RESPONSES, raw_request, token_manager, provider)
