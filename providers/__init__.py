"""
Upstream provider package.
"""
from .copilot_provider import CopilotProvider, flatten_catalog

__all__ = [
    'CopilotProvider',
    'flatten_catalog',
]
