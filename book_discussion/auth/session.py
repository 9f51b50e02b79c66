"""Viewer identity for the discussion.

The session starts anonymous. ``verify()`` asks the books service who the
stored token belongs to; a rejected token is removed so that authenticated
affordances disappear instead of producing server errors later.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from book_discussion.comments.errors import AuthError, CommentError

from .tokens import TokenStore


if TYPE_CHECKING:
    from book_discussion.comments.client import CommentsClient


logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Viewer:
    """The person looking at the discussion."""

    user_id: str | None = None
    username: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None


ANONYMOUS = Viewer()


class AuthSession:
    """Tracks who is acting, backed by the persistent token store."""

    def __init__(self, client: "CommentsClient", token_store: TokenStore) -> None:
        self.client = client
        self.token_store = token_store
        self._viewer = ANONYMOUS

    @property
    def viewer(self) -> Viewer:
        """Current viewer; anonymous as soon as the token disappears."""
        if self._viewer.is_authenticated and self.token_store.get() is None:
            self._viewer = ANONYMOUS
        return self._viewer

    async def verify(self) -> Viewer:
        """Resolve the stored token to a user.

        Without a token no request is sent. A rejected token is cleared; a
        transport failure keeps the token but leaves the viewer anonymous.
        """
        if self.token_store.get() is None:
            self._viewer = ANONYMOUS
            return self._viewer

        try:
            verified = await self.client.verify_session()
        except AuthError as e:
            logger.info("Session token rejected, clearing it", error=e.message)
            self.token_store.clear()
            self._viewer = ANONYMOUS
            return self._viewer
        except CommentError as e:
            logger.warning("Session verification failed", error=e.message)
            self._viewer = ANONYMOUS
            return self._viewer

        self._viewer = Viewer(user_id=verified.user.id, username=verified.user.username)
        logger.info("Session verified", viewer_id=self._viewer.user_id)
        return self._viewer

    def login(self, token: str, user_id: str, username: str | None = None) -> Viewer:
        """Adopt a token obtained elsewhere (the login form is external)."""
        self.token_store.set(token)
        self._viewer = Viewer(user_id=str(user_id), username=username)
        return self._viewer

    def logout(self) -> None:
        """Forget the token and become anonymous."""
        self.token_store.clear()
        self._viewer = ANONYMOUS
