"""CLI package for the Copilot gateway

Login, token maintenance and server startup from the command line.
"""

from cli.main import main

__all__ = [
    "main",
]
