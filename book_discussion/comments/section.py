"""Comment section of one book.

Wires the repository, the projection and the engines together. Every
confirmed change rebuilds the projection, which is the only thing a renderer
reads.
"""

from typing import TYPE_CHECKING, Any

import structlog

from book_discussion.config.settings import Settings, get_settings
from book_discussion.core.context import OperationContext

from .composer import CompositionController
from .errors import CommentError
from .models import (
    Comment,
    CommentId,
    Confirmer,
    DeletePolicy,
    LoadState,
    OperationResult,
    ReactionType,
)
from .moderation import ModerationEngine
from .permissions import CommentCapabilities, get_capabilities
from .projection import Projection, project_comments
from .reactions import ReactionEngine
from .repository import CommentRepository


if TYPE_CHECKING:
    from book_discussion.auth.session import AuthSession, Viewer

    from .client import CommentsClient


logger = structlog.get_logger(__name__)

LOAD_FAILED_MESSAGE = "Failed to load comments"


class CommentSection:
    """Discussion attached to a single book."""

    def __init__(
        self,
        book_id: Any,
        content_author_id: Any,
        client: "CommentsClient",
        session: "AuthSession",
        *,
        confirmer: Confirmer,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the section.

        Args:
            book_id: Id of the book the comments belong to
            content_author_id: User id of the book's author
            client: Remote comments API client
            session: Source of the acting viewer
            confirmer: Asked before any delete is sent
            settings: Application settings (defaults to the cached ones)
        """
        settings = settings or get_settings()
        self.book_id = book_id
        self.content_author_id = (
            str(content_author_id) if content_author_id is not None else None
        )
        self.session = session

        self.repository = CommentRepository(client, book_id)
        self.projection = Projection()
        self.load_state = LoadState.IDLE
        self.error_message: str | None = None
        self.has_loaded = False

        self.reactions = ReactionEngine(
            client, self.repository, self._current_viewer, on_change=self.reproject
        )
        self.moderation = ModerationEngine(
            client,
            self.repository,
            self._current_viewer,
            self.content_author_id,
            confirmer,
            delete_policy=DeletePolicy(settings.comments_delete_policy),
            on_change=self.reproject,
        )
        self.composer = CompositionController(
            client, self.repository, self._current_viewer, on_change=self.reproject
        )

    def _current_viewer(self) -> "Viewer":
        return self.session.viewer

    @property
    def viewer(self) -> "Viewer":
        return self.session.viewer

    @property
    def comment_count(self) -> int:
        """Number of records held, reachable or not."""
        return len(self.repository)

    def reproject(self) -> None:
        """Rebuild the projection from the current flat set."""
        self.projection = project_comments(self.repository.comments)

    def capabilities_for(self, comment: Comment) -> CommentCapabilities:
        """Capability set of one comment for the current viewer."""
        return get_capabilities(self.viewer, comment, self.content_author_id)

    async def load(self) -> OperationResult[list[Comment]]:
        """Fetch the comment set and rebuild the projection.

        A failed load keeps whatever was shown before and sets the
        ``FAILED`` state with a message a renderer can display.
        """
        self.load_state = LoadState.LOADING
        with OperationContext(user_id=self.viewer.user_id, book_id=self.book_id):
            try:
                comments = await self.repository.load()
            except CommentError as e:
                logger.error(
                    "Loading comments failed", error_code=e.code, error=e.message
                )
                self.load_state = LoadState.FAILED
                self.error_message = LOAD_FAILED_MESSAGE
                return OperationResult.failed(e)

        if comments is None:
            # A newer load owns the state
            return OperationResult.skipped()

        self.reproject()
        self.load_state = LoadState.LOADED
        self.error_message = None
        self.has_loaded = True
        return OperationResult.success(comments)

    # ==========================================================================
    # User actions
    # ==========================================================================

    async def react(
        self, comment_id: CommentId, kind: ReactionType | str
    ) -> OperationResult[Comment]:
        return await self.reactions.react(comment_id, kind)

    async def toggle_pin(self, comment_id: CommentId) -> OperationResult[Comment]:
        return await self.moderation.toggle_pin(comment_id)

    async def delete(self, comment_id: CommentId) -> OperationResult[list[Comment]]:
        return await self.moderation.delete(comment_id)

    def set_reply_target(self, comment_id: CommentId) -> None:
        self.composer.set_reply_target(comment_id)

    def clear_reply_target(self) -> None:
        self.composer.clear_reply_target()

    async def submit(self, text: str | None = None) -> OperationResult[Comment]:
        """Submit the draft, optionally replacing its text first."""
        if text is not None:
            self.composer.text = text
        return await self.composer.submit()
