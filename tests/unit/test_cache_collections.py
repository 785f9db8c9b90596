import asyncio

import pytest

from hearth.cache.base import page_bounds
from hearth.cache.follower import FollowerCache
from hearth.cache.post import PostCache
from hearth.cache.reaction import ReactionCache
from hearth.cache.user import UserCache
from hearth.domain.models import BlockAction, Post, Reaction
from tests.fakes import make_user


async def _seed_users(cache: UserCache, count: int) -> list[str]:
    ids = []
    for index in range(count):
        user_id = f"user{index:02d}"
        await cache.save_user(make_user(user_id, 100000000000 + index))
        ids.append(user_id)
    return ids


@pytest.mark.asyncio
async def test_concurrent_increments_and_decrements_net_out():
    cache = UserCache()
    await cache.save_user(make_user("u1", 100000000001))

    await asyncio.gather(*(cache.increment_counter("u1", "followers_count", 1) for _ in range(25)))
    await asyncio.gather(*(cache.increment_counter("u1", "followers_count", -1) for _ in range(10)))

    assert (await cache.get_user("u1")).followers_count == 15


@pytest.mark.asyncio
@pytest.mark.parametrize("total,page,expected", [(20, 1, 12), (20, 2, 8), (20, 3, 0), (12, 1, 12), (13, 2, 1), (0, 1, 0)])
async def test_page_sizes(total, page, expected):
    cache = UserCache()
    await _seed_users(cache, total)
    skip, limit = page_bounds(page, 12)

    users = await cache.get_users(skip, limit - 1)

    assert len(users) == min(12, max(0, total - (page - 1) * 12)) == expected


@pytest.mark.asyncio
async def test_consecutive_pages_do_not_overlap():
    cache = UserCache()
    ids = await _seed_users(cache, 20)

    first = await cache.get_users(*_inclusive(1))
    second = await cache.get_users(*_inclusive(2))

    first_ids = [user.id for user in first]
    second_ids = [user.id for user in second]
    assert first_ids == list(reversed(ids))[:12]
    assert second_ids == list(reversed(ids))[12:]
    assert not set(first_ids) & set(second_ids)


@pytest.mark.asyncio
async def test_excluded_requester_leaves_their_page_one_short():
    cache = UserCache()
    ids = await _seed_users(cache, 20)
    newest = list(reversed(ids))

    first = await cache.get_users(*_inclusive(1), exclude_user_id=newest[3])
    second = await cache.get_users(*_inclusive(2), exclude_user_id=newest[3])

    assert len(first) == 11
    assert newest[3] not in [user.id for user in first]
    assert [user.id for user in second] == newest[12:]


def _inclusive(page: int) -> tuple[int, int]:
    skip, limit = page_bounds(page, 12)
    return skip, limit - 1


@pytest.mark.asyncio
async def test_random_users_skip_self_and_followees():
    cache = UserCache()
    ids = await _seed_users(cache, 5)

    users = await cache.get_random_users(ids[0], [ids[1], ids[2]], sample=10)

    assert {user.id for user in users} == {ids[3], ids[4]}


@pytest.mark.asyncio
async def test_replacing_a_reaction_moves_one_unit_between_counters():
    posts = PostCache()
    reactions = ReactionCache()
    await posts.save_post(Post(id="p1", user_id="author", username="author"), "100000000001")
    await reactions.add_reaction(Reaction(id="r1", post_id="p1", type="like", username="bob"))
    before = (await posts.get_post("p1")).reactions

    await reactions.add_reaction(Reaction(id="r2", post_id="p1", type="love", username="bob"), "like")

    after = (await posts.get_post("p1")).reactions
    assert before["like"] == 1 and before["love"] == 0
    assert after["like"] == 0 and after["love"] == 1
    listed, count = await reactions.get_reactions("p1")
    assert count == 1
    assert listed[0].id == "r2"


@pytest.mark.asyncio
async def test_stale_previous_type_does_not_corrupt_counters():
    posts = PostCache()
    reactions = ReactionCache()
    await posts.save_post(Post(id="p1", user_id="author", username="author"), "100000000001")
    await reactions.add_reaction(Reaction(id="r1", post_id="p1", type="wow", username="bob"))

    await reactions.add_reaction(Reaction(id="r2", post_id="p1", type="sad", username="bob"), "like")

    counts = await reactions.get_reactions_by_type("p1")
    assert counts["wow"] == 0
    assert counts["sad"] == 1
    assert counts["like"] == 0


@pytest.mark.asyncio
async def test_remove_reaction_only_once():
    posts = PostCache()
    reactions = ReactionCache()
    await posts.save_post(Post(id="p1", user_id="author", username="author"), "100000000001")
    await reactions.add_reaction(Reaction(id="r1", post_id="p1", type="happy", username="bob"))

    results = await asyncio.gather(
        reactions.remove_reaction("p1", "bob", "happy"),
        reactions.remove_reaction("p1", "bob", "happy"),
    )

    assert sorted(results) == [False, True]
    assert (await posts.get_post("p1")).reactions["happy"] == 0


@pytest.mark.asyncio
async def test_racing_follows_and_unfollows_count_once():
    users = UserCache()
    followers = FollowerCache()
    await users.save_user(make_user("a", 100000000001))
    await users.save_user(make_user("b", 100000000002))

    await asyncio.gather(followers.add_follow("a", "b"), followers.add_follow("a", "b"))
    assert (await users.get_user("b")).followers_count == 1

    await asyncio.gather(followers.remove_follow("a", "b"), followers.remove_follow("a", "b"))

    assert (await users.get_user("b")).followers_count == 0
    assert (await users.get_user("a")).following_count == 0
    assert await followers.get_followers("b") == []


@pytest.mark.asyncio
async def test_block_lists_are_updated_without_duplicates():
    users = UserCache()
    await users.save_user(make_user("a", 100000000001))

    await users.update_blocked("a", "blocked", "b", BlockAction.BLOCK)
    await users.update_blocked("a", "blocked", "b", BlockAction.BLOCK)
    assert (await users.get_user("a")).blocked == ["b"]

    await users.update_blocked("a", "blocked", "b", BlockAction.UNBLOCK)
    assert (await users.get_user("a")).blocked == []


@pytest.mark.asyncio
async def test_delete_post_clears_dependents_and_decrements_once(fake_redis):
    users = UserCache()
    posts = PostCache()
    await users.save_user(make_user("u1", 100000000001))
    await posts.save_post(Post(id="p1", user_id="u1", username="u1"), "100000000001")
    await fake_redis.lpush("comments:p1", "{}")

    assert await posts.delete_post("p1", "u1") is True
    assert await posts.delete_post("p1", "u1") is False

    assert await posts.get_post("p1") is None
    assert not await fake_redis.exists("comments:p1")
    assert await posts.get_total_posts() == 0
    assert (await users.get_user("u1")).posts_count == 0
