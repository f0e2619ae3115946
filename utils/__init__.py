"""Shared utilities package for the Copilot gateway"""

from .storage import CredentialStore, FileCredentialStore, InMemoryCredentialStore

__all__ = [
    "CredentialStore",
    "FileCredentialStore",
    "InMemoryCredentialStore",
]
