"""
Copilot API provider.
Forwards canonical chat requests to the Copilot chat completions endpoint
and fetches the model catalog.
"""
import json
import logging
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

import httpx

from exceptions import NetworkError, UpstreamProtocolError
from headers import COPILOT_INTEGRATION_ID
from settings import (
    CONNECT_TIMEOUT,
    COPILOT_API_BASE_URL,
    COPILOT_MODELS_URL,
    READ_TIMEOUT,
    REQUEST_TIMEOUT,
    STREAM_TIMEOUT,
)

logger = logging.getLogger(__name__)

# Provider key of Copilot models inside a models.dev style catalog
COPILOT_CATALOG_PROVIDER = "github-copilot"
DEFAULT_MODEL_FAMILY = "copilot"


def upstream_error(response: httpx.Response, body: str) -> UpstreamProtocolError:
    return UpstreamProtocolError(
        f"Copilot API error: {response.status_code} - {body}",
        status_code=response.status_code,
        body=body,
    )


def flatten_catalog(catalog: Any) -> List[Tuple[str, str]]:
    """Reduce a model catalog to ``(model_id, family)`` pairs

    Accepts either a list of model objects or a mapping of provider name to
    ``{"models": {model_id: {...}}}``.
    """
    entries: List[Tuple[str, str]] = []

    if isinstance(catalog, list):
        for model in catalog:
            if isinstance(model, dict) and model.get("id"):
                family = model.get("family") or model.get("publisher") or DEFAULT_MODEL_FAMILY
                entries.append((model["id"], family))
        return entries

    if isinstance(catalog, dict):
        providers = catalog
        if COPILOT_CATALOG_PROVIDER in catalog:
            providers = {COPILOT_CATALOG_PROVIDER: catalog[COPILOT_CATALOG_PROVIDER]}

        for provider_name, provider in providers.items():
            models = provider.get("models") if isinstance(provider, dict) else None
            if not isinstance(models, dict):
                continue
            for model_id, model in models.items():
                if isinstance(model, dict):
                    family = model.get("family") or provider_name or DEFAULT_MODEL_FAMILY
                    entries.append((model.get("id") or model_id, family))
                else:
                    entries.append((model_id, provider_name or DEFAULT_MODEL_FAMILY))
        return entries

    raise UpstreamProtocolError(f"Unexpected model catalog format: {type(catalog).__name__}")


class CopilotProvider:
    """Client for the Copilot chat completions API"""

    def __init__(self, api_base_url: str = COPILOT_API_BASE_URL, models_url: str = COPILOT_MODELS_URL):
        self.api_base_url = api_base_url.rstrip("/")
        self.models_url = models_url

    @property
    def endpoint(self) -> str:
        return f"{self.api_base_url}/chat/completions"

    def _get_headers(self, token: str, accept: str = "application/json") -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {token}",
            "Copilot-Integration-Id": COPILOT_INTEGRATION_ID,
            "Content-Type": "application/json",
            "Accept": accept,
        }

    async def make_request(self, request_data: Dict[str, Any], token: str, request_id: str) -> Dict[str, Any]:
        """Send a non-streaming chat completion and return the parsed body

        Raises:
            UpstreamProtocolError: Non-success status or invalid JSON
            NetworkError: The request could not be delivered
        """
        logger.debug(f"[{request_id}] Forwarding request to {self.endpoint}")

        try:
            async with httpx.AsyncClient(timeout=httpx.Timeout(REQUEST_TIMEOUT, connect=CONNECT_TIMEOUT)) as client:
                response = await client.post(self.endpoint, json=request_data, headers=self._get_headers(token))
        except httpx.RequestError as e:
            logger.error(f"[{request_id}] Failed to reach Copilot API: {e}")
            raise NetworkError(f"Failed to communicate with Copilot API: {e}") from e

        logger.debug(f"[{request_id}] Copilot response status: {response.status_code}")
        if not response.is_success:
            logger.error(f"[{request_id}] Copilot API returned error: {response.status_code} - {response.text}")
            raise upstream_error(response, response.text)

        try:
            return response.json()
        except json.JSONDecodeError as e:
            raise UpstreamProtocolError(
                f"Failed to parse Copilot response: {e}",
                status_code=response.status_code,
                body=response.text,
            ) from e

    async def open_stream(self, request_data: Dict[str, Any], token: str, request_id: str) -> AsyncIterator[str]:
        """Start a streaming chat completion

        The upstream status is checked before returning, so failures surface
        as exceptions rather than as a truncated stream. The returned
        iterator yields raw SSE lines and closes the connection when the
        consumer stops iterating.
        """
        client = httpx.AsyncClient(
            timeout=httpx.Timeout(STREAM_TIMEOUT, connect=CONNECT_TIMEOUT, read=READ_TIMEOUT)
        )
        request = client.build_request(
            "POST",
            self.endpoint,
            json=request_data,
            headers=self._get_headers(token, accept="text/event-stream"),
        )

        try:
            response = await client.send(request, stream=True)
        except httpx.RequestError as e:
            await client.aclose()
            logger.error(f"[{request_id}] Failed to reach Copilot API: {e}")
            raise NetworkError(f"Failed to communicate with Copilot API: {e}") from e

        if not response.is_success:
            body = (await response.aread()).decode("utf-8", "replace")
            await response.aclose()
            await client.aclose()
            logger.error(f"[{request_id}] Copilot API returned error: {response.status_code} - {body}")
            raise upstream_error(response, body)

        logger.debug(f"[{request_id}] Copilot stream opened")
        return self._iter_lines(client, response, request_id)

    async def _iter_lines(
        self,
        client: httpx.AsyncClient,
        response: httpx.Response,
        request_id: str,
    ) -> AsyncIterator[str]:
        try:
            async for line in response.aiter_lines():
                yield line
        except httpx.RequestError as e:
            logger.error(f"[{request_id}] Copilot stream interrupted: {e}")
            raise NetworkError(f"Copilot stream interrupted: {e}") from e
        finally:
            await response.aclose()
            await client.aclose()
            logger.debug(f"[{request_id}] Copilot stream closed")

    async def list_models(self, token: Optional[str], request_id: str) -> List[Tuple[str, str]]:
        """Fetch the model catalog as ``(model_id, family)`` pairs"""
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            async with httpx.AsyncClient(timeout=httpx.Timeout(REQUEST_TIMEOUT, connect=CONNECT_TIMEOUT)) as client:
                response = await client.get(self.models_url, headers=headers)
        except httpx.RequestError as e:
            raise NetworkError(f"Failed to communicate with Copilot API: {e}") from e

        if not response.is_success:
            logger.error(f"[{request_id}] Model catalog request failed: {response.status_code} - {response.text}")
            raise upstream_error(response, response.text)

        try:
            catalog = response.json()
        except json.JSONDecodeError as e:
            raise UpstreamProtocolError(f"Failed to parse model catalog: {e}", status_code=response.status_code, body=response.text) from e

        return flatten_catalog(catalog)
