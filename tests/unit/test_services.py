import time

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from hearth.cache.post import PostCache
from hearth.cache.user import UserCache
from hearth.domain.chat.schemas import MessageRequest
from hearth.domain.comment.schemas import CommentRequest
from hearth.domain.exceptions import CacheUnavailableError, NotAuthorizedError, NotFoundError, ValidationError
from hearth.domain.post.schemas import PostRequest, UpdatePostRequest
from hearth.domain.post.service import PostService
from hearth.domain.reaction.schemas import ReactionRequest
from hearth.infra.auth import AuthenticatedUser
from hearth.queue.base import JobStatus
from tests.fakes import FakePostRepository, FakeUploader, FakeUserRepository, RecordingBroadcaster, make_user

ALICE = AuthenticatedUser(id="alice", u_id="100000000001", username="alice", email="alice@example.com")
BOB = AuthenticatedUser(id="bob", u_id="100000000002", username="bob", email="bob@example.com")


class RecordingQueues:
    def __init__(self, log):
        self.log = log
        self.jobs = []

    async def enqueue(self, queue, job_type, payload):
        self.log.append("enqueue")
        self.jobs.append((queue, job_type, payload))
        return str(len(self.jobs))


class RecordingPostCache(PostCache):
    def __init__(self, log, redis=None):
        super().__init__(redis)
        self.log = log

    async def save_post(self, post, author_u_id):
        await super().save_post(post, author_u_id)
        self.log.append("cache")


class DownRedis:
    def pipeline(self, transaction=True):
        raise RedisConnectionError("connection refused")


def _post_service(log, cache):
    users = FakeUserRepository()
    return PostService(
        post_cache=cache,
        post_repository=FakePostRepository(users),
        user_cache=UserCache(),
        user_repository=users,
        queues=RecordingQueues(log),
        broadcaster=RecordingBroadcaster(log),
        uploader=FakeUploader(),
    )


async def _seed(container, *users):
    for user in users:
        await container.caches.user.save_user(make_user(user.id, int(user.u_id), user.username))


@pytest.mark.asyncio
async def test_create_post_writes_cache_then_broadcasts_then_enqueues():
    log = []
    service = _post_service(log, RecordingPostCache(log))

    await service.create_post(ALICE, PostRequest(post="hello"))

    assert log == ["cache", "broadcast", "enqueue"]
    assert service.queues.jobs[0][:2] == ("post", "add_post_to_db")


@pytest.mark.asyncio
async def test_cache_failure_aborts_before_broadcast_and_enqueue():
    log = []
    service = _post_service(log, PostCache(DownRedis()))

    with pytest.raises(CacheUnavailableError):
        await service.create_post(ALICE, PostRequest(post="hello"))

    assert log == []


@pytest.mark.asyncio
async def test_empty_post_is_rejected_before_any_write():
    log = []
    service = _post_service(log, RecordingPostCache(log))

    with pytest.raises(ValidationError):
        await service.create_post(ALICE, PostRequest())

    assert log == []


@pytest.mark.asyncio
async def test_created_post_reads_back_with_zero_counters(container):
    await _seed(container, ALICE)

    created = await container.posts.create_post(ALICE, PostRequest(post="hello", bg_color="#ffffff", privacy="public"))
    fetched = await container.posts.get_post(created.id)

    assert fetched == created
    assert fetched.comments_count == 0
    assert set(fetched.reactions.values()) == {0}
    assert container.broadcaster.names() == ["add post"]
    listing = await container.posts.list_posts(1)
    assert [post.id for post in listing["posts"]] == [created.id]
    assert listing["total_posts"] == 1


@pytest.mark.asyncio
async def test_post_durable_write_lands_through_the_queue(container):
    await _seed(container, ALICE)
    await container.repositories.user.create(make_user("alice", 100000000001))
    created = await container.posts.create_post(ALICE, PostRequest(post="hello"))

    assert await container.queues["post"].process_once("add_post_to_db") is True

    assert (await container.repositories.post.get(created.id)).post == "hello"


@pytest.mark.asyncio
async def test_missing_post_falls_back_and_repopulates(container):
    await container.repositories.user.create(make_user("alice", 100000000001))
    post = (await container.posts.create_post(ALICE, PostRequest(post="cold")))
    await container.queues["post"].process_once("add_post_to_db")
    await container.redis.delete(f"posts:{post.id}")

    assert (await container.posts.get_post(post.id)).post == "cold"
    assert await container.caches.post.get_post(post.id) is not None

    with pytest.raises(NotFoundError):
        await container.posts.get_post("nope")
    assert await container.caches.post.is_missing("nope")


@pytest.mark.asyncio
async def test_only_the_author_may_update_or_delete(container):
    await _seed(container, ALICE, BOB)
    post = await container.posts.create_post(ALICE, PostRequest(post="mine"))

    with pytest.raises(NotAuthorizedError):
        await container.posts.update_post(BOB, post.id, UpdatePostRequest(post="theirs"))
    with pytest.raises(NotAuthorizedError):
        await container.posts.delete_post(BOB, post.id)

    updated = await container.posts.update_post(ALICE, post.id, UpdatePostRequest(post="edited"))
    assert updated.post == "edited"
    with pytest.raises(ValidationError):
        await container.posts.update_post(ALICE, post.id, UpdatePostRequest())

    await container.posts.delete_post(ALICE, post.id)
    assert await container.caches.post.get_post(post.id) is None
    assert (await container.caches.user.get_user("alice")).posts_count == 0


@pytest.mark.asyncio
async def test_comment_stays_readable_while_durable_write_retries(container):
    await _seed(container, ALICE)
    repo = container.repositories.comment
    repo.fail_with = RuntimeError("database unreachable")
    queue = container.queues["comment"]

    comment = await container.comments.add_comment(ALICE, CommentRequest(post_id="p1", comment="first"))
    await queue.process_once("add_comment_to_db")

    assert [item.id for item in await container.comments.get_comments("p1")] == [comment.id]
    assert await repo.list_for_post("p1") == []
    [job_id] = await container.redis.zrange("queue:comment:delayed", 0, -1)
    assert (await queue.get_job(job_id)).status is JobStatus.ENQUEUED

    repo.fail_with = None
    assert await queue.promote_delayed(now=time.time() + 60) == 1
    await queue.process_once("add_comment_to_db")

    assert [item.id for item in await repo.list_for_post("p1")] == [comment.id]
    assert (await queue.get_job(job_id)).status is JobStatus.COMPLETED


@pytest.mark.asyncio
async def test_comment_that_never_persists_is_kept_in_the_failed_log(container):
    container.repositories.comment.fail_with = RuntimeError("database unreachable")
    queue = container.queues["comment"]
    await container.comments.add_comment(ALICE, CommentRequest(post_id="p1", comment="lost"))

    for _ in range(queue.max_attempts):
        await queue.promote_delayed(now=time.time() + 3600)
        await queue.process_once("add_comment_to_db")

    [failed] = await queue.failed_jobs()
    assert failed.status is JobStatus.FAILED
    assert failed.payload["comment"]["comment"] == "lost"


@pytest.mark.asyncio
async def test_reaction_replacement_through_the_service(container):
    await _seed(container, ALICE, BOB)
    post = await container.posts.create_post(ALICE, PostRequest(post="react"))

    await container.reactions.add_reaction(BOB, ReactionRequest(post_id=post.id, type="like", user_to="alice"))
    await container.reactions.add_reaction(
        BOB, ReactionRequest(post_id=post.id, type="love", previous_reaction="like", user_to="alice")
    )

    fetched = await container.posts.get_post(post.id)
    assert fetched.reactions["like"] == 0
    assert fetched.reactions["love"] == 1
    result = await container.reactions.get_reactions(post.id)
    assert result["count"] == 1

    with pytest.raises(ValidationError):
        await container.reactions.add_reaction(BOB, ReactionRequest(post_id=post.id, type="meh"))


@pytest.mark.asyncio
async def test_follow_is_counted_once_and_unfollow_restores(container):
    await _seed(container, ALICE, BOB)

    assert await container.followers.follow(ALICE, "bob") is True
    assert await container.followers.follow(ALICE, "bob") is False
    assert (await container.caches.user.get_user("bob")).followers_count == 1
    assert [user.id for user in await container.followers.followers("bob")] == ["alice"]
    assert container.broadcaster.names() == ["add follower"]

    assert await container.followers.unfollow(ALICE, "bob") is True
    assert await container.followers.unfollow(ALICE, "bob") is False
    assert (await container.caches.user.get_user("bob")).followers_count == 0
    assert (await container.caches.user.get_user("alice")).following_count == 0

    with pytest.raises(ValidationError):
        await container.followers.follow(ALICE, "alice")
    with pytest.raises(NotFoundError):
        await container.followers.follow(ALICE, "ghost")


@pytest.mark.asyncio
async def test_block_updates_both_users(container):
    await _seed(container, ALICE, BOB)

    await container.followers.block(ALICE, "bob")

    assert (await container.caches.user.get_user("alice")).blocked == ["bob"]
    assert (await container.caches.user.get_user("bob")).blocked_by == ["alice"]
    await container.queues["blocked"].process_once("add_blocked_user_to_db")

    await container.followers.unblock(ALICE, "bob")
    assert (await container.caches.user.get_user("alice")).blocked == []


@pytest.mark.asyncio
async def test_message_reaches_both_users_and_emails_an_absent_receiver(container):
    await _seed(container, ALICE, BOB)

    message = await container.chat.send_message(ALICE, MessageRequest(receiver_id="bob", body="hi"))

    assert container.broadcaster.to_user("bob") == ["message received", "chat list"]
    assert container.broadcaster.to_user("alice") == ["message received", "chat list"]
    assert await container.chat.conversation_id("bob", "alice") == message.conversation_id
    assert await container.queues["email"].process_once("send_email") is True
    assert [to for to, _, _ in container.mailer.sent] == ["bob@example.com"]

    with pytest.raises(ValidationError):
        await container.chat.send_message(ALICE, MessageRequest(receiver_id="bob"))
