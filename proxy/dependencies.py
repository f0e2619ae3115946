"""
Shared service instances injected into endpoints.
"""
from typing import Optional

from copilot_oauth import TokenManager
from providers import CopilotProvider

_token_manager: Optional[TokenManager] = None
_provider: Optional[CopilotProvider] = None


def get_token_manager() -> TokenManager:
    """Process-wide token manager backed by the credential files"""
    global _token_manager
    if _token_manager is None:
        _token_manager = TokenManager()
    return _token_manager


def get_copilot_provider() -> CopilotProvider:
    global _provider
    if _provider is None:
        _provider = CopilotProvider()
    return _provider


def set_token_manager(token_manager: TokenManager) -> None:
    """Install the token manager the server hands to endpoints"""
    global _token_manager
    _token_manager = token_manager
