"""In-memory holder of one book's flat comment set.

Loads are fenced: a load result is dropped when a newer load was issued
after it, and local mutations confirmed by the server while a load is in
flight are replayed onto the fetched set before it is adopted. The
displayed state therefore reflects the last action issued, not the last
callback to resolve.
"""

from collections.abc import Callable, Iterator
from dataclasses import replace
from typing import TYPE_CHECKING, Any

import structlog

from .errors import CommentError
from .models import Comment, CommentId, normalize_id


if TYPE_CHECKING:
    from .client import CommentsClient


logger = structlog.get_logger(__name__)

# Re-applies one confirmed mutation to a list of records
Replay = Callable[[list[Comment]], list[Comment]]


def _insert_once(comment: Comment) -> Replay:
    def apply(comments: list[Comment]) -> list[Comment]:
        # A snapshot taken after the create already contains the record
        if any(c.id == comment.id for c in comments):
            return comments
        return [*comments, comment]

    return apply


def _patch(comment_id: CommentId, patch: dict[str, Any]) -> Replay:
    def apply(comments: list[Comment]) -> list[Comment]:
        return [replace(c, **patch) if c.id == comment_id else c for c in comments]

    return apply


def _remove(predicate: Callable[[Comment], bool]) -> Replay:
    def apply(comments: list[Comment]) -> list[Comment]:
        return [c for c in comments if not predicate(c)]

    return apply


class CommentRepository:
    """Flat, unordered comment records for a single book.

    Records are immutable; every change swaps a record (or the whole list)
    for a new one, so readers never observe a half-applied update.
    """

    def __init__(self, client: "CommentsClient", book_id: Any) -> None:
        self.client = client
        self.book_id = book_id
        self._comments: list[Comment] = []

        # Load fencing
        self._revision = 0
        self._latest_ticket = 0
        self._inflight: dict[int, int] = {}  # load ticket -> revision at issue
        self._journal: list[tuple[int, Replay]] = []

    def __len__(self) -> int:
        return len(self._comments)

    def __iter__(self) -> Iterator[Comment]:
        return iter(self._comments)

    @property
    def comments(self) -> list[Comment]:
        """Snapshot of the records in insertion order."""
        return list(self._comments)

    def get(self, comment_id: CommentId) -> Comment | None:
        """Find a record by id."""
        comment_id = normalize_id(comment_id)
        return next((c for c in self._comments if c.id == comment_id), None)

    # ==========================================================================
    # Load
    # ==========================================================================

    async def load(self) -> list[Comment] | None:
        """Fetch the full flat set and adopt it.

        Returns:
            The adopted records, or None when a newer load was issued while
            this one was in flight (its result, success or failure, is dropped).

        Raises:
            TransportError: Remote unreachable or failure status. The
                previous set is left untouched.
            AuthError: Remote rejected the request.
        """
        self._latest_ticket += 1
        ticket = self._latest_ticket
        self._inflight[ticket] = self._revision

        try:
            fetched = await self.client.list_comments(self.book_id)
        except CommentError:
            if ticket != self._latest_ticket:
                logger.info("Superseded comment load failed, ignoring", ticket=ticket)
                return None
            raise
        finally:
            since = self._inflight.pop(ticket)
            if not self._inflight:
                # Keep what this load still has to replay; drop the rest
                self._journal = [(r, f) for r, f in self._journal if r > since]

        if ticket != self._latest_ticket:
            logger.info(
                "Comment load superseded, dropping result",
                ticket=ticket,
                latest_ticket=self._latest_ticket,
            )
            return None

        replays = [replay for revision, replay in self._journal if revision > since]
        for replay in replays:
            fetched = replay(fetched)
        if replays:
            logger.info("Replayed mutations onto loaded comments", count=len(replays))

        self._comments = list(fetched)
        self._trim_journal()
        logger.debug("Comments loaded", count=len(self._comments))
        return self.comments

    def _record(self, replay: Replay) -> None:
        self._revision += 1
        if self._inflight:
            self._journal.append((self._revision, replay))

    def _trim_journal(self) -> None:
        if not self._inflight:
            self._journal.clear()
            return
        oldest = min(self._inflight.values())
        self._journal = [(r, replay) for r, replay in self._journal if r > oldest]

    # ==========================================================================
    # Mutations
    # ==========================================================================

    def insert(self, comment: Comment) -> None:
        """Append one record. No de-duplication by id is performed."""
        self._comments = [*self._comments, comment]
        self._record(_insert_once(comment))

    def replace_by_id(self, comment_id: CommentId, **patch: Any) -> Comment | None:
        """Apply a partial update to exactly one record.

        Returns:
            The updated record, or None when no record has this id.
        """
        comment_id = normalize_id(comment_id)
        for index, comment in enumerate(self._comments):
            if comment.id == comment_id:
                updated = replace(comment, **patch)
                comments = list(self._comments)
                comments[index] = updated
                self._comments = comments
                self._record(_patch(comment_id, patch))
                return updated
        return None

    def remove_where(self, predicate: Callable[[Comment], bool]) -> list[Comment]:
        """Remove every record matching predicate; returns the removed ones."""
        removed = [c for c in self._comments if predicate(c)]
        if removed:
            self._comments = [c for c in self._comments if not predicate(c)]
        self._record(_remove(predicate))
        return removed
