"""Bearer token storage.

The token outlives the process (like a browser's local storage) and is read
again on every authenticated call, so a logout elsewhere takes effect on the
next request.
"""

from pathlib import Path
from typing import Protocol

import structlog


logger = structlog.get_logger(__name__)


class TokenStore(Protocol):
    """Where the bearer token lives between calls."""

    def get(self) -> str | None: ...

    def set(self, token: str) -> None: ...

    def clear(self) -> None: ...


class MemoryTokenStore:
    """Token held in process memory only."""

    def __init__(self, token: str | None = None) -> None:
        self._token = token

    def get(self) -> str | None:
        return self._token or None

    def set(self, token: str) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None


class FileTokenStore:
    """Token persisted in a small file, re-read on every access."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def get(self) -> str | None:
        try:
            token = self.path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        return token or None

    def set(self, token: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(token, encoding="utf-8")
        # Owner-only; the token is a credential
        self.path.chmod(0o600)
        logger.debug("Token stored", path=str(self.path))

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
        logger.debug("Token cleared", path=str(self.path))
