import asyncio

import pytest

from hearth.domain.chat.schemas import MessageReactionRequest, MessageRequest
from hearth.domain.comment.schemas import CommentRequest
from hearth.domain.exceptions import NotAuthorizedError, NotFoundError
from hearth.domain.models import Notification
from hearth.domain.post.schemas import PostRequest
from hearth.infra.auth import AuthenticatedUser
from tests.fakes import make_user

ALICE = AuthenticatedUser(id="alice", u_id="100000000001", username="alice", email="alice@example.com")
BOB = AuthenticatedUser(id="bob", u_id="100000000002", username="bob", email="bob@example.com")
CAROL = AuthenticatedUser(id="carol", u_id="100000000003", username="carol", email="carol@example.com")


async def _users(container, *users):
    for user in users:
        record = make_user(user.id, int(user.u_id), user.username)
        await container.repositories.user.create(record)
        await container.caches.user.save_user(record)


async def _persisted_post(container, text="hello"):
    post = await container.posts.create_post(ALICE, PostRequest(post=text))
    assert await container.queues["post"].process_once("add_post_to_db") is True
    return post


@pytest.mark.asyncio
async def test_deleted_post_is_not_read_back_from_the_durable_store(container):
    await _users(container, ALICE)
    post = await _persisted_post(container)

    await container.posts.delete_post(ALICE, post.id)
    # the durable row is still there until the queued delete runs
    assert await container.repositories.post.get(post.id) is not None

    with pytest.raises(NotFoundError):
        await container.posts.get_post(post.id)
    assert await container.caches.post.get_post(post.id) is None

    await container.queues["post"].process_once("delete_post_from_db")
    with pytest.raises(NotFoundError):
        await container.posts.get_post(post.id)
    assert (await container.posts.list_posts(1))["posts"] == []


@pytest.mark.asyncio
async def test_repopulate_skips_a_deleted_post(container):
    await _users(container, ALICE)
    post = await _persisted_post(container)
    await container.caches.post.delete_post(post.id, "alice")

    assert await container.caches.post.cache_post(post, ALICE.u_id) is False
    assert await container.caches.post.get_post(post.id) is None
    assert await container.caches.post.get_total_posts() == 0


@pytest.mark.asyncio
async def test_repopulate_keeps_counters_moved_while_uncached(container):
    await _users(container, ALICE, BOB)
    post = await _persisted_post(container)
    await container.redis.delete(f"posts:{post.id}")

    await container.comments.add_comment(BOB, CommentRequest(post_id=post.id, user_to="alice", comment="first"))

    assert (await container.posts.get_post(post.id)).comments_count == 1
    assert (await container.caches.post.get_post(post.id)).comments_count == 1
    await container.comments.add_comment(BOB, CommentRequest(post_id=post.id, user_to="alice", comment="second"))
    assert (await container.posts.get_post(post.id)).comments_count == 2


@pytest.mark.asyncio
async def test_repopulate_does_not_overwrite_a_cached_post(container):
    await _users(container, ALICE)
    post = await container.posts.create_post(ALICE, PostRequest(post="live"))
    await container.caches.post.increment_counter(post.id, "comments_count", 3)

    assert await container.caches.post.cache_post(post, ALICE.u_id) is False
    assert (await container.caches.post.get_post(post.id)).comments_count == 3


@pytest.mark.asyncio
async def test_first_messages_sent_both_ways_share_a_conversation(container):
    await _users(container, ALICE, BOB)

    first, second = await asyncio.gather(
        container.chat.send_message(ALICE, MessageRequest(receiver_id="bob", body="a")),
        container.chat.send_message(BOB, MessageRequest(receiver_id="alice", body="b")),
    )

    assert first.conversation_id == second.conversation_id
    assert sorted(message.body for message in await container.chat.messages(ALICE, "bob")) == ["a", "b"]
    assert sorted(message.body for message in await container.chat.messages(BOB, "alice")) == ["a", "b"]
    assert [entry.conversation_id for entry in await container.caches.message.get_chat_list("alice")] == [
        first.conversation_id
    ]


@pytest.mark.asyncio
async def test_conversation_claim_keeps_the_first_id(container):
    cache = container.caches.message

    assert await cache.claim_conversation("a", "b", "c1") == "c1"
    assert await cache.claim_conversation("b", "a", "c2") == "c1"
    assert await cache.find_conversation_id("b", "a") == "c1"


@pytest.mark.asyncio
async def test_outsider_cannot_react_to_a_message(container):
    await _users(container, ALICE, BOB, CAROL)
    message = await container.chat.send_message(ALICE, MessageRequest(receiver_id="bob", body="hi"))
    request = MessageReactionRequest(conversation_id=message.conversation_id, message_id=message.id, reaction="like")

    with pytest.raises(NotAuthorizedError):
        await container.chat.add_message_reaction(CAROL, request)
    assert (await container.caches.message.get_messages(message.conversation_id))[0].reactions == []

    reacted = await container.chat.add_message_reaction(BOB, request)
    assert [reaction.sender_name for reaction in reacted.reactions] == ["bob"]

    with pytest.raises(NotFoundError):
        await container.chat.add_message_reaction(
            BOB, MessageReactionRequest(conversation_id=message.conversation_id, message_id="nope", reaction="like")
        )


@pytest.mark.asyncio
async def test_unfollow_works_after_the_following_list_was_evicted(container):
    await _users(container, ALICE, BOB)
    assert await container.followers.follow(ALICE, "bob") is True
    await container.queues["follower"].process_once("add_follower_to_db")
    await container.redis.delete("following:alice", "followers:bob")

    assert await container.followers.follow(ALICE, "bob") is False
    assert (await container.caches.user.get_user("bob")).followers_count == 1

    await container.redis.delete("following:alice")
    assert await container.followers.unfollow(ALICE, "bob") is True
    assert (await container.caches.user.get_user("alice")).following_count == 0
    await container.queues["follower"].process_once("remove_follower_from_db")
    assert await container.repositories.follower.list_following("alice") == []


@pytest.mark.asyncio
async def test_refollow_before_the_durable_unfollow_lands(container):
    await _users(container, ALICE, BOB)
    await container.followers.follow(ALICE, "bob")
    await container.queues["follower"].process_once("add_follower_to_db")
    await container.followers.unfollow(ALICE, "bob")

    # the durable edge is still present, the cache is authoritative
    assert await container.followers.follow(ALICE, "bob") is True
    assert (await container.caches.user.get_user("bob")).followers_count == 1


async def _notification_for_bob(container):
    notification = Notification(
        id="n1", user_to="bob", user_from="alice", message="alice is now following you.", notification_type="follows"
    )
    await container.repositories.notification.create(notification)
    return notification


@pytest.mark.asyncio
async def test_notification_jobs_only_touch_the_recipients_rows(container):
    notification = await _notification_for_bob(container)
    queue = container.queues["notification"]

    await container.notifications.mark_read(ALICE, notification.id)
    await queue.process_once("update_notification")
    await container.notifications.delete(ALICE, notification.id)
    await queue.process_once("delete_notification")

    [kept] = await container.notifications.list_notifications(BOB)
    assert kept.read is False

    await container.notifications.delete(BOB, notification.id)
    await queue.process_once("delete_notification")
    assert await container.notifications.list_notifications(BOB) == []
