"""GitHub OAuth device flow and Copilot service token exchange"""

import asyncio
import json
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from exceptions import (
    AccessDenied,
    ExpiredDeviceCode,
    LoginRequired,
    NetworkError,
    PollError,
    RefreshFailed,
    UpstreamProtocolError,
)
from headers import GITHUB_HEADERS
from settings import (
    CLIENT_ID,
    CONNECT_TIMEOUT,
    COPILOT_TOKEN_URL,
    DEVICE_CODE_URL,
    DEVICE_GRANT_TYPE,
    OAUTH_SCOPE,
    OAUTH_TOKEN_URL,
    REQUEST_TIMEOUT,
)
from .models import AccessCredential, DeviceAuthorization, ServiceToken

logger = logging.getLogger(__name__)

# Extra delay GitHub asks for after a slow_down response
SLOW_DOWN_INCREMENT = 5

Sleep = Callable[[float], Awaitable[Any]]


class DeviceAuthorizer:
    """Runs the device authorization flow against GitHub

    Args:
        client_id: OAuth application client id
        sleep: Coroutine used between polling attempts
        clock: Monotonic clock used to enforce polling deadlines
    """

    def __init__(
        self,
        client_id: str = CLIENT_ID,
        sleep: Sleep = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client_id = client_id
        self._sleep = sleep
        self._clock = clock
        self._timeout = httpx.Timeout(REQUEST_TIMEOUT, connect=CONNECT_TIMEOUT)

    async def request_device_code(self) -> DeviceAuthorization:
        """Start a login by requesting a device and user code"""
        payload = {"client_id": self.client_id, "scope": OAUTH_SCOPE}

        logger.info(f"Requesting device code from {DEVICE_CODE_URL}")
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(DEVICE_CODE_URL, json=payload, headers=GITHUB_HEADERS)
        except httpx.RequestError as e:
            raise NetworkError(f"Device code request failed: {e}") from e

        if not response.is_success:
            logger.error(f"Device code request failed with status {response.status_code}: {response.text}")
            raise UpstreamProtocolError(
                f"Failed to request device code: {response.status_code} - {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            return DeviceAuthorization.from_response(response.json())
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise UpstreamProtocolError(
                f"Unexpected device code response: {response.text}",
                status_code=response.status_code,
                body=response.text,
            ) from e

    async def poll_for_access_token(
        self,
        device_code: str,
        interval: int,
        deadline: Optional[float] = None,
    ) -> AccessCredential:
        """Poll until the user approves the device

        Args:
            device_code: Code returned by request_device_code
            interval: Seconds to wait between attempts
            deadline: Optional number of seconds after which polling gives up

        Raises:
            ExpiredDeviceCode: GitHub reported expiry, or the deadline passed
            AccessDenied: The user declined the authorization
            PollError: Any other error code
        """
        payload = {
            "client_id": self.client_id,
            "device_code": device_code,
            "grant_type": DEVICE_GRANT_TYPE,
        }
        give_up_at = self._clock() + deadline if deadline is not None else None
        attempt = 0

        async with httpx.AsyncClient(timeout=self._timeout) as client:
            while True:
                if give_up_at is not None and self._clock() >= give_up_at:
                    logger.warning("Device code deadline passed while waiting for approval")
                    raise ExpiredDeviceCode()

                attempt += 1
                data = await self._poll_once(client, payload)
                error = data.get("error")

                if not error:
                    if not data.get("access_token"):
                        raise UpstreamProtocolError(f"Unexpected access token response: {data}")
                    logger.info(f"Device authorized after {attempt} poll(s)")
                    return AccessCredential.from_record(data)

                if error == "authorization_pending":
                    logger.debug(f"Authorization pending, retrying in {interval}s")
                elif error == "slow_down":
                    interval += SLOW_DOWN_INCREMENT
                    logger.debug(f"Asked to slow down, polling interval is now {interval}s")
                elif error == "expired_token":
                    raise ExpiredDeviceCode()
                elif error == "access_denied":
                    raise AccessDenied()
                else:
                    raise PollError(error, data.get("error_description"))

                await self._sleep(interval)

    async def _poll_once(self, client: httpx.AsyncClient, payload: Dict[str, str]) -> Dict[str, Any]:
        try:
            response = await client.post(OAUTH_TOKEN_URL, json=payload, headers=GITHUB_HEADERS)
        except httpx.RequestError as e:
            raise NetworkError(f"Access token polling failed: {e}") from e

        try:
            data = response.json()
        except json.JSONDecodeError as e:
            raise UpstreamProtocolError(
                f"Access token polling failed: {response.status_code} - {response.text}",
                status_code=response.status_code,
                body=response.text,
            ) from e

        if not isinstance(data, dict):
            raise UpstreamProtocolError(f"Unexpected access token response: {response.text}")
        if not response.is_success and "error" not in data:
            raise UpstreamProtocolError(
                f"Access token polling failed: {response.status_code} - {response.text}",
                status_code=response.status_code,
                body=response.text,
            )
        return data

    async def exchange_for_service_token(self, access_token: str) -> ServiceToken:
        """Mint a Copilot service token from the GitHub access token"""
        headers = {
            "authorization": f"token {access_token}",
            "editor-version": GITHUB_HEADERS["editor-version"],
            "editor-plugin-version": GITHUB_HEADERS["editor-plugin-version"],
            "user-agent": GITHUB_HEADERS["user-agent"],
            "accept": "application/json",
        }

        logger.info("Exchanging GitHub access token for a Copilot token")
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(COPILOT_TOKEN_URL, headers=headers)
        except httpx.RequestError as e:
            raise NetworkError(f"Copilot token request failed: {e}") from e

        if response.status_code == 401:
            logger.error("GitHub rejected the stored access token")
            raise LoginRequired("GitHub access token was rejected. Please run with --login to authenticate.")

        if not response.is_success:
            logger.error(f"Copilot token request failed with status {response.status_code}: {response.text}")
            raise RefreshFailed(
                f"Failed to get Copilot token: {response.status_code} - {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            return ServiceToken.from_record(response.json())
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise RefreshFailed(
                f"Unexpected Copilot token response: {response.text}",
                status_code=response.status_code,
                body=response.text,
            ) from e

    async def login(
        self,
        on_authorization: Optional[Callable[[DeviceAuthorization], None]] = None,
    ) -> AccessCredential:
        """Full interactive login bounded by the device code lifetime"""
        authorization = await self.request_device_code()
        if on_authorization:
            on_authorization(authorization)

        return await self.poll_for_access_token(
            authorization.device_code,
            authorization.poll_interval,
            deadline=authorization.expires_in,
        )
