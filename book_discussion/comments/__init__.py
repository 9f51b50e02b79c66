"""Book discussion module.

Provides the client side of a threaded discussion with:
- Flat comment storage and ordered tree projection
- Reactions reconciled from server counts
- Author moderation (pin, delete) gated by capabilities
- Draft composition with reply targets

Note: CommentSection and CommentsClient are not exported here to avoid
circular imports with the auth package. Import them from
book_discussion.comments.section / book_discussion.comments.client.
"""

from .errors import (
    AuthError,
    CommentError,
    PermissionDeniedError,
    TransportError,
    ValidationError,
)
from .models import (
    Comment,
    CommentNode,
    DeletePolicy,
    LoadState,
    OperationResult,
    Outcome,
    ReactionType,
)
from .permissions import CommentCapabilities, get_capabilities
from .projection import Projection, build_children_index, project_comments


__all__ = [
    "AuthError",
    "Comment",
    "CommentCapabilities",
    "CommentError",
    "CommentNode",
    "DeletePolicy",
    "LoadState",
    "OperationResult",
    "Outcome",
    "PermissionDeniedError",
    "Projection",
    "ReactionType",
    "TransportError",
    "ValidationError",
    "build_children_index",
    "get_capabilities",
    "project_comments",
]
