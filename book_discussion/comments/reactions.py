"""Reactions on comments.

Counts are never predicted locally: the server answers every reaction with
the authoritative like/dislike totals and those replace the local record.
Whether a repeated click toggles or accumulates is up to the server.
"""

from collections.abc import Callable
from typing import TYPE_CHECKING

import structlog

from book_discussion.core.context import OperationContext

from .errors import CommentError, ValidationError
from .models import Comment, CommentId, OperationResult, ReactionType, normalize_id
from .repository import CommentRepository


if TYPE_CHECKING:
    from book_discussion.auth.session import Viewer

    from .client import CommentsClient


logger = structlog.get_logger(__name__)


class ReactionEngine:
    """Sends reactions and reconciles counts from the server's answer."""

    def __init__(
        self,
        client: "CommentsClient",
        repository: CommentRepository,
        viewer: Callable[[], "Viewer"],
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self.client = client
        self.repository = repository
        self._viewer = viewer
        self._on_change = on_change

    async def react(
        self, comment_id: CommentId, kind: ReactionType | str
    ) -> OperationResult[Comment]:
        """React to a comment.

        Anonymous viewers get a silent no-op: nothing is sent and nothing is
        reported as an error. On failure the local counts stay as they were.

        Returns:
            Result holding the updated comment (value is None if the comment
            disappeared locally while the request was in flight).
        """
        comment_id = normalize_id(comment_id)
        try:
            reaction = ReactionType(kind)
        except ValueError:
            return OperationResult.failed(
                ValidationError(f"Unknown reaction: {kind!r}")
            )

        viewer = self._viewer()
        if not viewer.is_authenticated:
            logger.debug("Reaction ignored for anonymous viewer", comment_id=comment_id)
            return OperationResult.skipped()

        with OperationContext(user_id=viewer.user_id, book_id=self.repository.book_id):
            try:
                counts = await self.client.react(comment_id, reaction)
            except CommentError as e:
                logger.warning(
                    "Reaction failed",
                    comment_id=comment_id,
                    reaction=reaction.value,
                    error_code=e.code,
                    error=e.message,
                )
                return OperationResult.failed(e)

            updated = self.repository.replace_by_id(
                comment_id,
                like_count=counts.likes,
                dislike_count=counts.dislikes,
            )
            logger.info(
                "Reaction recorded",
                comment_id=comment_id,
                reaction=reaction.value,
                likes=counts.likes,
                dislikes=counts.dislikes,
            )

        if self._on_change:
            self._on_change()
        return OperationResult.success(updated)
