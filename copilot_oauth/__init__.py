"""GitHub Copilot authentication module

Implements the GitHub OAuth device flow and the exchange of the resulting
access token for short-lived Copilot service tokens.
"""

from .models import DeviceAuthorization, AccessCredential, ServiceToken
from .device_flow import DeviceAuthorizer
from .token_manager import TokenManager

__all__ = [
    "DeviceAuthorization",
    "AccessCredential",
    "ServiceToken",
    "DeviceAuthorizer",
    "TokenManager",
]
