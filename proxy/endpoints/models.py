"""
Model catalog and version endpoints.
"""
import logging
import uuid

from fastapi import APIRouter, Depends

from copilot_oauth import TokenManager
from providers import CopilotProvider
from settings import VERSION
from ..dependencies import get_copilot_provider, get_token_manager

logger = logging.getLogger(__name__)
router = APIRouter()

# Fixed creation timestamp reported for every catalog entry
MODEL_CREATED = 1687882411


@router.get("/v1/models")
async def list_models(
    token_manager: TokenManager = Depends(get_token_manager),
    provider: CopilotProvider = Depends(get_copilot_provider),
):
    """OpenAI-compatible models endpoint"""
    request_id = str(uuid.uuid4())[:8]
    token = await token_manager.get_valid_token()
    entries = await provider.list_models(token.token, request_id)
    logger.info(f"[{request_id}] Listed {len(entries)} model(s)")

    return {
        "object": "list",
        "data": [
            {"id": model_id, "object": "model", "created": MODEL_CREATED, "owned_by": family}
            for model_id, family in entries
        ],
    }


@router.get("/api/tags")
@router.get("/v1/api/tags")
async def list_tags(
    token_manager: TokenManager = Depends(get_token_manager),
    provider: CopilotProvider = Depends(get_copilot_provider),
):
    """Ollama-compatible model list"""
    request_id = str(uuid.uuid4())[:8]
    token = await token_manager.get_valid_token()
    entries = await provider.list_models(token.token, request_id)

    return {
        "models": [
            {
                "name": model_id,
                "model": model_id,
                "modified_at": "1970-01-01T00:00:00Z",
                "size": 0,
                "digest": "",
                "details": {
                    "parent_model": "",
                    "format": "api",
                    "family": family,
                    "families": [family],
                    "parameter_size": "",
                    "quantization_level": "",
                },
            }
            for model_id, family in entries
        ]
    }


@router.get("/api/version")
@router.get("/v1/api/version")
async def version():
    return {"version": VERSION}
