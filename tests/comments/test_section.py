"""End-to-end tests of a comment section against the in-process books service."""

import asyncio

import pytest

from book_discussion.auth.session import AuthSession
from book_discussion.auth.tokens import MemoryTokenStore
from book_discussion.comments.client import CommentsClient
from book_discussion.comments.models import LoadState, Outcome
from book_discussion.comments.section import LOAD_FAILED_MESSAGE, CommentSection
from book_discussion.config.settings import Settings

from ..factories import AUTHOR_ID, BOOK_ID, OTHER_ID, READER_ID
from ..fake_books_api import BooksBackend


COMMENTS_PATH = f"/api/books/{BOOK_ID}/comments"


@pytest.fixture
def seeded(backend: BooksBackend) -> BooksBackend:
    """Book 7 with a small thread.

    10 (reader, t+10)
      11 (other, t+11)
        12 (reader, t+12)
    20 (author, t+0, pinned)
    """
    backend.add_comment(10, BOOK_ID, READER_ID, minutes=10)
    backend.add_comment(11, BOOK_ID, OTHER_ID, parent_id=10, minutes=11)
    backend.add_comment(12, BOOK_ID, READER_ID, parent_id=11, minutes=12)
    backend.add_comment(20, BOOK_ID, AUTHOR_ID, minutes=0, is_pinned=True)
    return backend


@pytest.fixture
def confirmations() -> list[str]:
    return []


@pytest.fixture
def section(
    client: CommentsClient,
    session: AuthSession,
    settings: Settings,
    confirmations: list[str],
) -> CommentSection:
    def confirm(comment) -> bool:
        confirmations.append(comment.id)
        return True

    return CommentSection(
        BOOK_ID, AUTHOR_ID, client, session, confirmer=confirm, settings=settings
    )


async def sign_in(session: AuthSession, token_store: MemoryTokenStore, token: str) -> None:
    token_store.set(token)
    await session.verify()


class TestLoad:
    @pytest.mark.asyncio
    async def test_initial_load_projects_tree(
        self, section: CommentSection, seeded: BooksBackend
    ) -> None:
        assert section.load_state is LoadState.IDLE

        result = await section.load()

        assert result.ok
        assert section.load_state is LoadState.LOADED
        assert section.projection.ids() == ["20", "10", "11", "12"]
        assert section.projection.find("12").depth == 2
        assert section.comment_count == 4

    @pytest.mark.asyncio
    async def test_failed_load_surfaces_message_and_keeps_set(
        self, section: CommentSection, seeded: BooksBackend
    ) -> None:
        await section.load()
        seeded.fail_paths[COMMENTS_PATH] = 500

        result = await section.load()

        assert result.outcome is Outcome.FAILED
        assert section.load_state is LoadState.FAILED
        assert section.error_message == LOAD_FAILED_MESSAGE
        assert section.comment_count == 4
        assert section.projection.ids() == ["20", "10", "11", "12"]

        del seeded.fail_paths[COMMENTS_PATH]
        await section.load()

        assert section.load_state is LoadState.LOADED
        assert section.error_message is None


class TestAnonymousViewer:
    @pytest.mark.asyncio
    async def test_reacting_sends_nothing(
        self, section: CommentSection, seeded: BooksBackend
    ) -> None:
        await section.load()
        seeded.requests.clear()

        result = await section.react("10", "like")

        assert result.outcome is Outcome.SKIPPED
        assert seeded.requests == []
        assert section.repository.get("10").like_count == 0

    @pytest.mark.asyncio
    async def test_no_capabilities(
        self, section: CommentSection, seeded: BooksBackend
    ) -> None:
        await section.load()

        for node in section.projection.walk():
            caps = section.capabilities_for(node.comment)
            assert not (caps.can_react or caps.can_reply or caps.can_pin or caps.can_delete)


class TestSignedInReader:
    @pytest.mark.asyncio
    async def test_react_uses_server_counts(
        self,
        section: CommentSection,
        seeded: BooksBackend,
        session: AuthSession,
        token_store: MemoryTokenStore,
    ) -> None:
        await sign_in(session, token_store, "reader-token")
        await section.load()

        await section.react("10", "like")
        assert section.repository.get("10").like_count == 1

        # The fake service toggles a repeated reaction off
        await section.react("10", "like")
        assert section.repository.get("10").like_count == 0

        await section.react("10", "dislike")
        comment = section.projection.find("10").comment
        assert (comment.like_count, comment.dislike_count) == (0, 1)

    @pytest.mark.asyncio
    async def test_reply_to_unloaded_parent_is_orphaned(
        self,
        section: CommentSection,
        seeded: BooksBackend,
        session: AuthSession,
        token_store: MemoryTokenStore,
    ) -> None:
        await sign_in(session, token_store, "reader-token")
        await section.load()
        section.set_reply_target("5")

        result = await section.submit("hi")

        assert result.ok
        assert result.value.parent_id == "5"
        assert section.comment_count == 5
        assert result.value.id not in section.projection.ids()
        assert [c.id for c in section.projection.orphans] == [result.value.id]

    @pytest.mark.asyncio
    async def test_reply_appears_under_parent(
        self,
        section: CommentSection,
        seeded: BooksBackend,
        session: AuthSession,
        token_store: MemoryTokenStore,
    ) -> None:
        await sign_in(session, token_store, "reader-token")
        await section.load()
        section.set_reply_target("12")

        result = await section.submit("deeper")

        node = section.projection.find(result.value.id)
        assert node.depth == 3
        assert section.composer.reply_target is None
        assert section.composer.text == ""

    @pytest.mark.asyncio
    async def test_reader_cannot_pin(
        self,
        section: CommentSection,
        seeded: BooksBackend,
        session: AuthSession,
        token_store: MemoryTokenStore,
    ) -> None:
        await sign_in(session, token_store, "reader-token")
        await section.load()
        seeded.requests.clear()

        result = await section.toggle_pin("10")

        assert result.error_code == "permission_denied"
        assert seeded.requests == []

    @pytest.mark.asyncio
    async def test_integer_ids_match_loaded_records(
        self,
        section: CommentSection,
        seeded: BooksBackend,
        session: AuthSession,
        token_store: MemoryTokenStore,
    ) -> None:
        await sign_in(session, token_store, "reader-token")
        await section.load()

        reaction = await section.react(10, "like")
        section.set_reply_target(12)
        reply = await section.submit("numeric parent")

        assert reaction.ok
        assert reaction.value.like_count == 1
        assert section.repository.get("10").like_count == 1
        assert reply.ok
        assert reply.value.parent_id == "12"
        assert section.projection.find(reply.value.id).depth == 3


class TestBookAuthor:
    @pytest.mark.asyncio
    async def test_unpin_reorders(
        self,
        section: CommentSection,
        seeded: BooksBackend,
        session: AuthSession,
        token_store: MemoryTokenStore,
    ) -> None:
        await sign_in(session, token_store, "author-token")
        await section.load()

        result = await section.toggle_pin("20")

        assert result.ok
        assert [n.id for n in section.projection.roots] == ["10", "20"]

    @pytest.mark.asyncio
    async def test_delete_confirms_and_orphans_grandchildren(
        self,
        section: CommentSection,
        seeded: BooksBackend,
        session: AuthSession,
        token_store: MemoryTokenStore,
        confirmations: list[str],
    ) -> None:
        await sign_in(session, token_store, "author-token")
        await section.load()

        result = await section.delete("10")

        assert result.ok
        assert confirmations == ["10"]
        assert {c.id for c in section.repository} == {"12", "20"}
        assert section.projection.ids() == ["20"]

        # A reload shows whatever the server still holds
        await section.load()
        assert section.comment_count == 3

    @pytest.mark.asyncio
    async def test_delete_pinned_root(
        self,
        section: CommentSection,
        seeded: BooksBackend,
        session: AuthSession,
        token_store: MemoryTokenStore,
    ) -> None:
        await sign_in(session, token_store, "author-token")
        await section.load()

        await section.delete("20")

        assert not any(n.comment.is_pinned for n in section.projection.walk())

    @pytest.mark.asyncio
    async def test_reaction_during_reload_survives(
        self,
        section: CommentSection,
        seeded: BooksBackend,
        session: AuthSession,
        token_store: MemoryTokenStore,
    ) -> None:
        await sign_in(session, token_store, "author-token")
        await section.load()

        reload = asyncio.create_task(section.load())
        reaction = await section.react("10", "like")
        await reload

        assert reaction.ok
        assert section.projection.find("10").comment.like_count == 1

    @pytest.mark.asyncio
    async def test_integer_ids_for_pin_and_delete(
        self,
        section: CommentSection,
        seeded: BooksBackend,
        session: AuthSession,
        token_store: MemoryTokenStore,
    ) -> None:
        await sign_in(session, token_store, "author-token")
        await section.load()

        pin = await section.toggle_pin(20)
        deleted = await section.delete(10)

        assert pin.ok
        assert pin.value.is_pinned is False
        assert deleted.ok
        assert {c.id for c in deleted.value} == {"10", "11"}


class TestDeletePolicySetting:
    @pytest.mark.asyncio
    async def test_subtree_policy_from_settings(
        self,
        client: CommentsClient,
        session: AuthSession,
        seeded: BooksBackend,
        token_store: MemoryTokenStore,
    ) -> None:
        settings = Settings(
            environment="testing",
            api_base_url="http://books.test/api",
            comments_delete_policy="subtree",
        )
        section = CommentSection(
            BOOK_ID, AUTHOR_ID, client, session, confirmer=lambda _c: True, settings=settings
        )
        await sign_in(session, token_store, "author-token")
        await section.load()

        await section.delete("10")

        assert {c.id for c in section.repository} == {"20"}
        assert section.projection.orphans == []
