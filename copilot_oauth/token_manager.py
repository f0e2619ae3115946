"""Copilot service token manager"""

import asyncio
import logging
from typing import Optional

from exceptions import LoginRequired
from settings import ACCESS_TOKEN_RECORD, SERVICE_TOKEN_RECORD
from utils.storage import CredentialStore, FileCredentialStore
from .device_flow import DeviceAuthorizer
from .models import AccessCredential, ServiceToken

logger = logging.getLogger(__name__)


class TokenManager:
    """Hands out a valid Copilot token, refreshing it when expired

    Refreshes are serialized: concurrent callers that find the cache
    expired wait on one exchange and then share its result.
    """

    def __init__(
        self,
        store: Optional[CredentialStore] = None,
        authorizer: Optional[DeviceAuthorizer] = None,
    ):
        """Initialize token manager

        Args:
            store: Credential store (file-backed store if None)
            authorizer: Device flow client used for token exchange
        """
        self.store = store or FileCredentialStore()
        self.authorizer = authorizer or DeviceAuthorizer()
        self._cached: Optional[ServiceToken] = None
        self._refresh_lock = asyncio.Lock()

    def _cached_token(self) -> Optional[ServiceToken]:
        if self._cached is None:
            record = self.store.get(SERVICE_TOKEN_RECORD)
            if record:
                try:
                    self._cached = ServiceToken.from_record(record)
                except (KeyError, TypeError, ValueError):
                    logger.warning("Stored Copilot token is malformed, ignoring it")
        if self._cached is not None and not self._cached.is_expired():
            return self._cached
        return None

    async def get_valid_token(self) -> ServiceToken:
        """Return a service token outside its expiry buffer

        Raises:
            LoginRequired: No access credential is stored
            RefreshFailed: The token exchange was rejected upstream
        """
        token = self._cached_token()
        if token is not None:
            return token

        async with self._refresh_lock:
            # Another caller may have refreshed while we waited
            token = self._cached_token()
            if token is not None:
                return token
            return await self._refresh()

    async def refresh(self) -> ServiceToken:
        """Force a token exchange regardless of the cached token"""
        async with self._refresh_lock:
            return await self._refresh()

    async def _refresh(self) -> ServiceToken:
        credential = self.load_access_credential()
        if credential is None:
            logger.error("No GitHub access token available")
            raise LoginRequired("No GitHub access token available. Please run with --login to authenticate.")

        logger.info("Copilot token missing or expired, refreshing...")
        token = await self.authorizer.exchange_for_service_token(credential.access_token)

        self.store.set(SERVICE_TOKEN_RECORD, token.to_record())
        self._cached = token
        logger.info(f"Copilot token refreshed, expires at {token.expires_at}")
        return token

    def load_access_credential(self) -> Optional[AccessCredential]:
        record = self.store.get(ACCESS_TOKEN_RECORD)
        if not record or not record.get("access_token"):
            return None
        return AccessCredential.from_record(record)

    def save_access_credential(self, credential: AccessCredential) -> None:
        """Persist a new access credential and drop the cached service token"""
        self.store.set(ACCESS_TOKEN_RECORD, credential.to_record())
        self.store.delete(SERVICE_TOKEN_RECORD)
        self._cached = None

    def has_access_credential(self) -> bool:
        return self.store.exists(ACCESS_TOKEN_RECORD)
