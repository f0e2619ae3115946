"""Data models for GitHub device flow and Copilot service tokens"""

import time
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from settings import TOKEN_EXPIRY_BUFFER


@dataclass
class DeviceAuthorization:
    """Device code issued at the start of an interactive login

    Attributes:
        device_code: Opaque code used when polling for the access token
        user_code: Short code the user types at the verification page
        verification_uri: Page where the user approves the device
        expires_in: Seconds until the device code stops being accepted
        poll_interval: Minimum seconds between polling attempts
    """
    device_code: str
    user_code: str
    verification_uri: str
    expires_in: int
    poll_interval: int

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> "DeviceAuthorization":
        return cls(
            device_code=data["device_code"],
            user_code=data["user_code"],
            verification_uri=data["verification_uri"],
            expires_in=int(data["expires_in"]),
            poll_interval=int(data.get("interval", 5)),
        )


@dataclass(frozen=True)
class AccessCredential:
    """Long-lived GitHub OAuth credential used only to mint service tokens

    Attributes:
        access_token: GitHub OAuth access token
        token_type: Token type reported by GitHub (usually "bearer")
        scope: Granted OAuth scopes
    """
    access_token: str
    token_type: str = "bearer"
    scope: str = ""

    def to_record(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "AccessCredential":
        return cls(
            access_token=record["access_token"],
            token_type=record.get("token_type") or "bearer",
            scope=record.get("scope") or "",
        )


@dataclass(frozen=True)
class ServiceToken:
    """Short-lived Copilot bearer token

    Attributes:
        token: Bearer token sent to the Copilot API
        expires_at: Absolute expiry as unix seconds
        refresh_in: Seconds after issue at which the issuer suggests refreshing
    """
    token: str
    expires_at: int
    refresh_in: int = 0

    def is_expired(self, now: Optional[float] = None) -> bool:
        """True once the token is inside the expiry buffer"""
        if now is None:
            now = time.time()
        return self.expires_at <= now + TOKEN_EXPIRY_BUFFER

    def to_record(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "ServiceToken":
        return cls(
            token=record["token"],
            expires_at=int(record["expires_at"]),
            refresh_in=int(record.get("refresh_in") or 0),
        )
