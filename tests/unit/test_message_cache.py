import asyncio

import pytest

from hearth.cache.message import MessageCache
from hearth.domain.models import DeleteScope, Message, ReactionChange


def _message(message_id: str, sender: str = "a", receiver: str = "b", **fields) -> Message:
    return Message(id=message_id, conversation_id="c1", sender_id=sender, receiver_id=receiver, body=message_id, **fields)


@pytest.mark.asyncio
async def test_chat_list_entry_is_added_once():
    cache = MessageCache()

    assert await cache.add_chat_list("a", "b", "c1") == "c1"
    assert await cache.add_chat_list("a", "b", "c2") == "c1"

    assert [entry.receiver_id for entry in await cache.get_chat_list("a")] == ["b"]
    assert await cache.find_conversation_id("a", "b") == "c1"
    assert await cache.find_conversation_id("b", "a") is None


@pytest.mark.asyncio
async def test_conversation_list_holds_the_last_message_per_peer():
    cache = MessageCache()
    await cache.add_chat_list("a", "b", "c1")
    await cache.add_message(_message("m1"))
    await cache.add_message(_message("m2", sender="b", receiver="a"))

    latest = await cache.get_conversation_list("a")

    assert [message.id for message in latest] == ["m2"]


@pytest.mark.asyncio
async def test_mark_read_only_touches_messages_to_the_reader():
    cache = MessageCache()
    await cache.add_message(_message("m1"))
    await cache.add_message(_message("m2", sender="b", receiver="a"))

    last = await cache.mark_messages_as_read("c1", "b")

    assert last.id == "m1"
    read = {message.id: message.is_read for message in await cache.get_messages("c1")}
    assert read == {"m1": True, "m2": False}
    assert await cache.mark_messages_as_read("c1", "b") is None


@pytest.mark.asyncio
async def test_delete_scopes():
    cache = MessageCache()
    await cache.add_message(_message("m1"))
    await cache.add_message(_message("m2"))

    mine = await cache.mark_message_as_deleted("c1", "m1", DeleteScope.FOR_ME)
    everyone = await cache.mark_message_as_deleted("c1", "m2", DeleteScope.FOR_EVERYONE)

    assert mine.delete_for_me and not mine.delete_for_everyone
    assert everyone.delete_for_me and everyone.delete_for_everyone
    assert await cache.mark_message_as_deleted("c1", "missing", DeleteScope.FOR_ME) is None


@pytest.mark.asyncio
async def test_concurrent_reactions_on_one_message_are_both_kept():
    cache = MessageCache()
    await cache.add_message(_message("m1"))

    await asyncio.gather(
        cache.update_message_reaction("c1", "m1", "alice", "like", ReactionChange.ADD),
        cache.update_message_reaction("c1", "m1", "bob", "love", ReactionChange.ADD),
    )

    [message] = await cache.get_messages("c1")
    assert sorted((item.sender_name, item.type) for item in message.reactions) == [("alice", "like"), ("bob", "love")]


@pytest.mark.asyncio
async def test_reaction_replace_and_remove():
    cache = MessageCache()
    await cache.add_message(_message("m1"))

    await cache.update_message_reaction("c1", "m1", "alice", "like", ReactionChange.ADD)
    updated = await cache.update_message_reaction("c1", "m1", "alice", "sad", ReactionChange.ADD)
    assert [(item.sender_name, item.type) for item in updated.reactions] == [("alice", "sad")]

    cleared = await cache.update_message_reaction("c1", "m1", "alice", "sad", ReactionChange.REMOVE)
    assert cleared.reactions == []


@pytest.mark.asyncio
async def test_chat_users_pairs():
    cache = MessageCache()

    assert await cache.add_chat_user("a", "b") == ["a:b"]
    assert await cache.add_chat_user("a", "b") == ["a:b"]
    assert await cache.is_chatting_with("a", "b")
    assert not await cache.is_chatting_with("b", "a")

    assert await cache.remove_chat_user("a", "b") == []
