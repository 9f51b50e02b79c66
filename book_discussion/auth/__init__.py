"""Viewer identity and bearer token storage."""

from .session import ANONYMOUS, AuthSession, Viewer
from .tokens import FileTokenStore, MemoryTokenStore, TokenStore


__all__ = [
    "ANONYMOUS",
    "AuthSession",
    "FileTokenStore",
    "MemoryTokenStore",
    "TokenStore",
    "Viewer",
]
