"""HTTP header constants package for the Copilot gateway"""

from .constants import (
    EDITOR_VERSION,
    EDITOR_PLUGIN_VERSION,
    USER_AGENT,
    COPILOT_INTEGRATION_ID,
    GITHUB_HEADERS,
)

__all__ = [
    "EDITOR_VERSION",
    "EDITOR_PLUGIN_VERSION",
    "USER_AGENT",
    "COPILOT_INTEGRATION_ID",
    "GITHUB_HEADERS",
]
