"""Writing new comments and replies."""

from collections.abc import Callable
from typing import TYPE_CHECKING

import structlog

from book_discussion.core.context import OperationContext

from .errors import CommentError, ValidationError
from .models import Comment, CommentId, OperationResult, normalize_id
from .repository import CommentRepository


if TYPE_CHECKING:
    from book_discussion.auth.session import Viewer

    from .client import CommentsClient


logger = structlog.get_logger(__name__)


class CompositionController:
    """Holds the draft text and the comment being replied to.

    The reply target only changes the ``parentId`` sent on submit and the
    prompt shown to the user.
    """

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
        self.text = ""
        self.reply_target: CommentId | None = None

    @property
    def is_reply(self) -> bool:
        return self.reply_target is not None

    @property
    def placeholder(self) -> str:
        return "Write a reply..." if self.is_reply else "Write a comment..."

    @property
    def submit_label(self) -> str:
        return "Reply" if self.is_reply else "Comment"

    def set_reply_target(self, comment_id: CommentId) -> None:
        self.reply_target = normalize_id(comment_id)

    def clear_reply_target(self) -> None:
        self.reply_target = None

    async def submit(self) -> OperationResult[Comment]:
        """Send the draft.

        Whitespace-only drafts are rejected locally. On success the server's
        record is inserted and the draft and reply target are cleared; on
        failure both are kept so the user can try again.
        """
        viewer = self._viewer()
        if not viewer.is_authenticated:
            logger.debug("Submit ignored for anonymous viewer")
            return OperationResult.skipped()

        if not self.text.strip():
            return OperationResult.failed(ValidationError())

        with OperationContext(user_id=viewer.user_id, book_id=self.repository.book_id):
            try:
                comment = await self.client.create_comment(
                    self.repository.book_id, self.text, self.reply_target
                )
            except CommentError as e:
                logger.warning(
                    "Comment submit failed",
                    parent_id=self.reply_target,
                    error_code=e.code,
                    error=e.message,
                )
                return OperationResult.failed(e)

            # The server's record is authoritative; never insert a local draft
            self.repository.insert(comment)
            logger.info("Comment created", comment_id=comment.id, parent_id=comment.parent_id)

        self.text = ""
        self.reply_target = None
        if self._on_change:
            self._on_change()
        return OperationResult.success(comment)
