"""
Tests for the message log.
"""
import asyncio

import pytest

from groupchat.services import membership_service, message_service
from groupchat.services.errors import Forbidden, UnknownChat, ValidationError


@pytest.fixture
def chat_with_members(db, ctx, make_user):
    async def _setup():
        owner = await make_user("U1")
        guest = await make_user("U2")
        outsider = await make_user("U3")
        chat_id = await membership_service.create_chat(db, ctx, owner, "G1", "")
        await membership_service.invite(db, ctx, owner, chat_id, guest)
        return owner, guest, outsider, chat_id
    return _setup


class TestPost:

    @pytest.mark.asyncio
    async def test_members_post_in_order(self, db, ctx, chat_with_members):
        owner, guest, _, chat_id = await chat_with_members()

        await message_service.post(db, ctx, owner, chat_id, "Hello!")
        await message_service.post(db, ctx, guest, chat_id, "Hi :)")

        for reader in (owner, guest):
            messages = await message_service.list_messages(db, reader, chat_id)
            assert [m.content for m in messages] == ["Hello!", "Hi :)"]
            assert [m.seq for m in messages] == [1, 2]
            assert [m.user_id for m in messages] == [owner, guest]

    @pytest.mark.asyncio
    async def test_non_member_post_forbidden(self, db, ctx, chat_with_members):
        _, _, outsider, chat_id = await chat_with_members()
        with pytest.raises(Forbidden):
            await message_service.post(db, ctx, outsider, chat_id, "let me in")

    @pytest.mark.asyncio
    async def test_post_unknown_chat(self, db, ctx, make_user):
        user = await make_user()
        with pytest.raises(UnknownChat):
            await message_service.post(db, ctx, user, 404, "hello?")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ["", "  \n", None])
    async def test_empty_content_rejected(self, db, ctx, chat_with_members, content):
        owner, _, _, chat_id = await chat_with_members()
        with pytest.raises(ValidationError):
            await message_service.post(db, ctx, owner, chat_id, content)
        assert await message_service.list_messages(db, owner, chat_id) == []

    @pytest.mark.asyncio
    async def test_same_tick_keeps_arrival_order(self, db, ctx, chat_with_members):
        """Messages stamped with an identical time still replay in arrival order."""
        owner, guest, _, chat_id = await chat_with_members()
        ctx.clock = lambda: 1_700_000_000_000

        for i in range(5):
            await message_service.post(db, ctx, owner if i % 2 == 0 else guest, chat_id, f"m{i}")

        messages = await message_service.list_messages(db, owner, chat_id)
        assert [m.content for m in messages] == ["m0", "m1", "m2", "m3", "m4"]
        assert len({m.timestamp for m in messages}) == 1

    @pytest.mark.asyncio
    async def test_concurrent_posts_get_distinct_sequence(self, ctx, new_session, chat_with_members):
        owner, guest, _, chat_id = await chat_with_members()

        async def send(author, text):
            async with new_session() as db:
                return await message_service.post(db, ctx, author, chat_id, text)

        sent = await asyncio.gather(*[send(owner if i % 2 else guest, f"m{i}") for i in range(8)])

        assert sorted(m.seq for m in sent) == list(range(1, 9))
        async with new_session() as db:
            stored = await message_service.list_messages(db, owner, chat_id)
        assert [m.seq for m in stored] == list(range(1, 9))
        assert {m.content for m in stored} == {f"m{i}" for i in range(8)}

    @pytest.mark.asyncio
    async def test_invited_user_can_post_immediately(self, ctx, new_session, make_user):
        """A post authorized by a just-completed invite is never rejected."""
        owner = await make_user("U1")
        guest = await make_user("U2")
        async with new_session() as db:
            chat_id = await membership_service.create_chat(db, ctx, owner, "G1", "")

        async with new_session() as db:
            await membership_service.invite(db, ctx, owner, chat_id, guest)
        async with new_session() as db:
            message = await message_service.post(db, ctx, guest, chat_id, "thanks!")

        assert message.seq == 1


class TestListMessages:

    @pytest.mark.asyncio
    async def test_non_member_cannot_read(self, db, ctx, chat_with_members):
        owner, _, outsider, chat_id = await chat_with_members()
        await message_service.post(db, ctx, owner, chat_id, "secret")
        with pytest.raises(Forbidden):
            await message_service.list_messages(db, outsider, chat_id)

    @pytest.mark.asyncio
    async def test_list_unknown_chat(self, db, ctx, make_user):
        user = await make_user()
        with pytest.raises(UnknownChat):
            await message_service.list_messages(db, user, 404)

    @pytest.mark.asyncio
    async def test_windows(self, db, ctx, chat_with_members):
        owner, _, _, chat_id = await chat_with_members()
        for i in range(1, 7):
            await message_service.post(db, ctx, owner, chat_id, f"m{i}")

        async def contents(**kwargs):
            return [m.content for m in await message_service.list_messages(db, owner, chat_id, **kwargs)]

        assert await contents(after=4) == ["m5", "m6"]
        assert await contents(before=3) == ["m1", "m2"]
        assert await contents(after=1, limit=2) == ["m2", "m3"]
        assert await contents(limit=2) == ["m5", "m6"]
        assert await contents(before=5, limit=2) == ["m3", "m4"]
        assert await contents(after=2, before=5) == ["m3", "m4"]

    @pytest.mark.asyncio
    async def test_non_positive_limit_rejected(self, db, ctx, chat_with_members):
        owner, _, _, chat_id = await chat_with_members()
        with pytest.raises(ValidationError):
            await message_service.list_messages(db, owner, chat_id, limit=0)
