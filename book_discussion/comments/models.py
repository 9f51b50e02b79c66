"""Domain models for the book discussion.

Architecture: adjacency list held in memory
- parent_id references the parent comment (None for root comments)
- No stored depth or path; the tree is rebuilt from the flat set
- Author info is denormalized on every record for display
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from .errors import CommentError


if TYPE_CHECKING:
    from .schemas import CommentPayload


CommentId = str

T = TypeVar("T")


def normalize_id(value: Any) -> Any:
    """Ids are opaque; numeric ids become strings so lookups compare alike."""
    if value is None or isinstance(value, str):
        return value
    return str(value)


class ReactionType(str, Enum):
    """Available reaction types for comments."""

    LIKE = "like"
    DISLIKE = "dislike"


class DeletePolicy(str, Enum):
    """Which local records a confirmed delete removes."""

    DIRECT_CHILDREN = "direct_children"  # target + replies whose parent is the target
    SUBTREE = "subtree"  # target + every descendant


class LoadState(str, Enum):
    """State of the comment list as seen by a renderer."""

    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


class Outcome(str, Enum):
    """How a user action ended."""

    OK = "ok"
    SKIPPED = "skipped"  # precondition unmet, silently nothing sent
    DECLINED = "declined"  # user did not confirm
    FAILED = "failed"


# ==============================================================================
# Entity Classes
# ==============================================================================


@dataclass(frozen=True)
class Comment:
    """Comment entity."""

    id: CommentId
    content: str
    author_user_id: str
    username: str
    parent_id: CommentId | None
    created_at: datetime
    is_pinned: bool = False
    like_count: int = 0
    dislike_count: int = 0

    @property
    def is_root(self) -> bool:
        """Root comments hang directly off the book."""
        return self.parent_id is None

    @classmethod
    def from_payload(cls, payload: "CommentPayload") -> "Comment":
        """Create Comment from a validated API record."""
        return cls(
            id=payload.id,
            content=payload.content,
            author_user_id=payload.user_id,
            username=payload.username,
            parent_id=payload.parent_id,
            created_at=payload.created_at,
            is_pinned=payload.is_pinned,
            like_count=payload.likes,
            dislike_count=payload.dislikes,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the API's wire representation."""
        return {
            "id": self.id,
            "content": self.content,
            "user_id": self.author_user_id,
            "username": self.username,
            "parent_id": self.parent_id,
            "created_at": self.created_at.isoformat(),
            "is_pinned": self.is_pinned,
            "likes": self.like_count,
            "dislikes": self.dislike_count,
        }


@dataclass
class CommentNode:
    """A comment placed in the projection, with its ordered replies."""

    comment: Comment
    depth: int = 0
    replies: list["CommentNode"] = field(default_factory=list)

    @property
    def id(self) -> CommentId:
        return self.comment.id


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """Explicit outcome of a remote-backed user action.

    Callers branch on ``outcome`` to decide whether to surface, retry or
    ignore a failure; engines never raise for remote failures.
    """

    outcome: Outcome
    value: T | None = None
    error: CommentError | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.OK

    @property
    def error_code(self) -> str | None:
        return self.error.code if self.error else None

    @classmethod
    def success(cls, value: T | None = None) -> "OperationResult[T]":
        return cls(Outcome.OK, value=value)

    @classmethod
    def skipped(cls) -> "OperationResult[T]":
        return cls(Outcome.SKIPPED)

    @classmethod
    def declined(cls) -> "OperationResult[T]":
        return cls(Outcome.DECLINED)

    @classmethod
    def failed(cls, error: CommentError) -> "OperationResult[T]":
        return cls(Outcome.FAILED, error=error)


# Asks the user to confirm a destructive action; may be sync or async
Confirmer = Callable[[Comment], bool | Awaitable[bool]]
