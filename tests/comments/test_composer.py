"""Tests for comment composition."""

from unittest.mock import AsyncMock, Mock

import pytest

from book_discussion.auth.session import ANONYMOUS
from book_discussion.comments.client import CommentsClient
from book_discussion.comments.composer import CompositionController
from book_discussion.comments.errors import TransportError
from book_discussion.comments.models import Outcome
from book_discussion.comments.repository import CommentRepository

from ..factories import BOOK_ID, READER, make_comment


@pytest.fixture
def mock_client() -> Mock:
    client = Mock(spec=CommentsClient)
    client.create_comment = AsyncMock(return_value=make_comment("42", minutes=30))
    return client


@pytest.fixture
def repository(mock_client: Mock) -> CommentRepository:
    return CommentRepository(mock_client, BOOK_ID)


@pytest.fixture
def composer(mock_client: Mock, repository: CommentRepository) -> CompositionController:
    return CompositionController(mock_client, repository, lambda: READER)


class TestReplyTarget:
    def test_prompt_follows_mode(self, composer: CompositionController) -> None:
        assert composer.placeholder == "Write a comment..."
        assert composer.submit_label == "Comment"

        composer.set_reply_target("5")

        assert composer.placeholder == "Write a reply..."
        assert composer.submit_label == "Reply"

        composer.clear_reply_target()

        assert composer.reply_target is None
        assert composer.placeholder == "Write a comment..."


class TestSubmit:
    @pytest.mark.asyncio
    async def test_root_comment(
        self,
        composer: CompositionController,
        mock_client: Mock,
        repository: CommentRepository,
    ) -> None:
        composer.text = "  Loved chapter two  "

        result = await composer.submit()

        assert result.ok
        # Text goes out exactly as typed
        mock_client.create_comment.assert_awaited_once_with(
            BOOK_ID, "  Loved chapter two  ", None
        )
        assert [c.id for c in repository] == ["42"]
        assert composer.text == ""

    @pytest.mark.asyncio
    async def test_reply_clears_target(
        self, composer: CompositionController, mock_client: Mock
    ) -> None:
        mock_client.create_comment.return_value = make_comment("43", parent_id="5")
        composer.set_reply_target("5")
        composer.text = "hi"

        result = await composer.submit()

        assert result.value.parent_id == "5"
        mock_client.create_comment.assert_awaited_once_with(BOOK_ID, "hi", "5")
        assert composer.reply_target is None

    @pytest.mark.parametrize("text", ["", "   ", "\n\t "])
    @pytest.mark.asyncio
    async def test_blank_text_rejected_locally(
        self, composer: CompositionController, mock_client: Mock, text: str
    ) -> None:
        composer.text = text

        result = await composer.submit()

        assert result.outcome is Outcome.FAILED
        assert result.error_code == "validation_error"
        mock_client.create_comment.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failure_keeps_draft_and_target(
        self,
        composer: CompositionController,
        mock_client: Mock,
        repository: CommentRepository,
    ) -> None:
        mock_client.create_comment.side_effect = TransportError("down")
        composer.set_reply_target("5")
        composer.text = "hi"

        result = await composer.submit()

        assert result.error_code == "transport_error"
        assert composer.text == "hi"
        assert composer.reply_target == "5"
        assert len(repository) == 0

    @pytest.mark.asyncio
    async def test_anonymous_submit_sends_nothing(
        self, mock_client: Mock, repository: CommentRepository
    ) -> None:
        composer = CompositionController(mock_client, repository, lambda: ANONYMOUS)
        composer.text = "hi"

        result = await composer.submit()

        assert result.outcome is Outcome.SKIPPED
        mock_client.create_comment.assert_not_awaited()
