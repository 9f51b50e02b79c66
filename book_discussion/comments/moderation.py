"""Pinning and deletion.

Both actions are gated by the comment's capability set and applied locally
only after the server confirms them. Deletion additionally needs the user's
explicit confirmation before anything is sent.
"""

import inspect
from collections.abc import Callable
from typing import TYPE_CHECKING

import structlog

from book_discussion.core.context import OperationContext

from .errors import CommentError, PermissionDeniedError
from .models import (
    Comment,
    CommentId,
    Confirmer,
    DeletePolicy,
    OperationResult,
    normalize_id,
)
from .permissions import get_capabilities
from .projection import build_children_index
from .repository import CommentRepository


if TYPE_CHECKING:
    from book_discussion.auth.session import Viewer

    from .client import CommentsClient


logger = structlog.get_logger(__name__)


def collect_subtree_ids(comments: list[Comment], root_id: CommentId) -> set[CommentId]:
    """Ids of root_id and every descendant reachable from it."""
    index = build_children_index(comments)
    ids = {root_id}
    stack = [root_id]
    while stack:
        parent_id = stack.pop()
        for child in index.get(parent_id, []):
            if child.id not in ids:
                ids.add(child.id)
                stack.append(child.id)
    return ids


class ModerationEngine:
    """Pin/unpin and delete, on behalf of the viewer."""

    def __init__(
        self,
        client: "CommentsClient",
        repository: CommentRepository,
        viewer: Callable[[], "Viewer"],
        content_author_id: str | None,
        confirmer: Confirmer,
        delete_policy: DeletePolicy = DeletePolicy.DIRECT_CHILDREN,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self.client = client
        self.repository = repository
        self._viewer = viewer
        self.content_author_id = (
            str(content_author_id) if content_author_id is not None else None
        )
        self.confirmer = confirmer
        self.delete_policy = DeletePolicy(delete_policy)
        self._on_change = on_change

    def _changed(self) -> None:
        if self._on_change:
            self._on_change()

    async def _confirm(self, comment: Comment) -> bool:
        answer = self.confirmer(comment)
        if inspect.isawaitable(answer):
            answer = await answer
        return bool(answer)

    async def toggle_pin(self, comment_id: CommentId) -> OperationResult[Comment]:
        """Pin or unpin a root comment (book author only).

        The server's answer decides the new flag; the projection is rebuilt
        so the comment moves immediately.
        """
        comment_id = normalize_id(comment_id)
        viewer = self._viewer()
        comment = self.repository.get(comment_id)
        if comment is None:
            return OperationResult.failed(PermissionDeniedError("Comment not loaded"))

        capabilities = get_capabilities(viewer, comment, self.content_author_id)
        if not capabilities.can_pin:
            logger.info("Pin refused", comment_id=comment_id, viewer_id=viewer.user_id)
            return OperationResult.failed(
                PermissionDeniedError("Only the book's author can pin root comments")
            )

        with OperationContext(user_id=viewer.user_id, book_id=self.repository.book_id):
            try:
                is_pinned = await self.client.toggle_pin(comment_id)
            except CommentError as e:
                logger.warning(
                    "Pin toggle failed",
                    comment_id=comment_id,
                    error_code=e.code,
                    error=e.message,
                )
                return OperationResult.failed(e)

            updated = self.repository.replace_by_id(comment_id, is_pinned=is_pinned)
            logger.info("Pin toggled", comment_id=comment_id, is_pinned=is_pinned)

        self._changed()
        return OperationResult.success(updated)

    async def delete(self, comment_id: CommentId) -> OperationResult[list[Comment]]:
        """Delete a comment (its author or the book's author).

        With the default policy the target and its direct replies are removed
        locally; deeper replies stay in the flat set and simply stop being
        reachable in the projection until the next load. ``DeletePolicy.SUBTREE``
        removes every descendant instead.

        Returns:
            Result holding the removed records.
        """
        comment_id = normalize_id(comment_id)
        viewer = self._viewer()
        comment = self.repository.get(comment_id)
        if comment is None:
            return OperationResult.failed(PermissionDeniedError("Comment not loaded"))

        capabilities = get_capabilities(viewer, comment, self.content_author_id)
        if not capabilities.can_delete:
            logger.info("Delete refused", comment_id=comment_id, viewer_id=viewer.user_id)
            return OperationResult.failed(
                PermissionDeniedError("Only the comment's or the book's author can delete")
            )

        if not await self._confirm(comment):
            logger.debug("Delete not confirmed", comment_id=comment_id)
            return OperationResult.declined()

        with OperationContext(user_id=viewer.user_id, book_id=self.repository.book_id):
            try:
                await self.client.delete_comment(comment_id)
            except CommentError as e:
                logger.warning(
                    "Delete failed",
                    comment_id=comment_id,
                    error_code=e.code,
                    error=e.message,
                )
                return OperationResult.failed(e)

            if self.delete_policy is DeletePolicy.SUBTREE:
                doomed = collect_subtree_ids(self.repository.comments, comment_id)
                removed = self.repository.remove_where(lambda c: c.id in doomed)
            else:
                removed = self.repository.remove_where(
                    lambda c: c.id == comment_id or c.parent_id == comment_id
                )
            logger.info(
                "Comment deleted",
                comment_id=comment_id,
                removed=len(removed),
                policy=self.delete_policy.value,
            )

        self._changed()
        return OperationResult.success(removed)
