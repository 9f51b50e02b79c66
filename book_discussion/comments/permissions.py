"""Per-comment capabilities for the viewer.

Rules:
- Anyone signed in may react to and reply to any comment
- Only the book's author may pin, and only root comments
- A comment may be deleted by its own author or by the book's author
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .models import Comment


if TYPE_CHECKING:
    from book_discussion.auth.session import Viewer


@dataclass(frozen=True)
class CommentCapabilities:
    """What the viewer may do with one comment."""

    can_react: bool = False
    can_reply: bool = False
    can_pin: bool = False
    can_delete: bool = False
    # Comment was written by the book's author (shown as a badge)
    is_content_author: bool = False


NO_CAPABILITIES = CommentCapabilities()


def is_book_author(viewer: "Viewer", content_author_id: str | None) -> bool:
    """Check if the viewer published the book."""
    return (
        viewer.is_authenticated
        and content_author_id is not None
        and viewer.user_id == str(content_author_id)
    )


def get_capabilities(
    viewer: "Viewer",
    comment: Comment,
    content_author_id: str | None,
) -> CommentCapabilities:
    """Compute the capability set of one comment for the viewer.

    Args:
        viewer: Who is looking (anonymous viewers get no actions)
        comment: The comment the controls belong to
        content_author_id: User id of the book's author

    Returns:
        CommentCapabilities for this (viewer, comment, book author) triple

    Examples:
        >>> from book_discussion.auth.session import Viewer
        >>> from datetime import UTC, datetime
        >>> c = Comment("1", "hi", "u2", "bob", None, datetime(2024, 1, 1, tzinfo=UTC))
        >>> get_capabilities(Viewer("u1"), c, "u1").can_pin
        True
        >>> get_capabilities(Viewer("u2"), c, "u1").can_pin
        False
    """
    is_content_author = (
        content_author_id is not None
        and comment.author_user_id == str(content_author_id)
    )
    if not viewer.is_authenticated:
        return CommentCapabilities(is_content_author=is_content_author)

    viewer_is_book_author = is_book_author(viewer, content_author_id)
    return CommentCapabilities(
        can_react=True,
        can_reply=True,
        can_pin=viewer_is_book_author and comment.is_root,
        can_delete=viewer_is_book_author or viewer.user_id == comment.author_user_id,
        is_content_author=is_content_author,
    )
