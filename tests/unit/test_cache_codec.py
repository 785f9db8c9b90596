from datetime import datetime, timezone

import pytest

from hearth.cache.codec import POST_CODEC, USER_CODEC, FieldKind, HashCodec
from hearth.cache.post import PostCache
from hearth.cache.user import UserCache
from hearth.domain.models import NotificationSettings, Post, SocialLinks
from tests.fakes import make_user


def _user():
    return make_user(
        "u1",
        100000000001,
        "alice",
        blocked=["u2", "u3"],
        notifications=NotificationSettings(messages=False),
        social=SocialLinks(twitter="@alice"),
        posts_count=4,
        created_at=datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc),
    )


def test_user_codec_round_trips_composite_fields():
    user = _user()
    encoded = USER_CODEC.encode(user)

    assert all(isinstance(value, str) for value in encoded.values())
    assert encoded["posts_count"] == "4"
    assert USER_CODEC.decode(encoded) == user


def test_post_codec_spreads_reaction_counters():
    post = Post(id="p1", user_id="u1", username="alice", reactions={"like": 2, "love": 1})
    encoded = POST_CODEC.encode(post)

    assert encoded["reactions.like"] == "2"
    assert encoded["reactions.angry"] == "0"
    assert "reactions" not in encoded
    decoded = POST_CODEC.decode(encoded)
    assert decoded.reactions == {"like": 2, "love": 1, "happy": 0, "sad": 0, "wow": 0, "angry": 0}


def test_counter_field_requires_declared_keys():
    with pytest.raises(ValueError):
        HashCodec(Post, {"reactions": FieldKind.COUNTERS})


@pytest.mark.asyncio
async def test_saved_user_reads_back_equal():
    cache = UserCache()
    user = _user()
    await cache.save_user(user)

    assert await cache.get_user("u1") == user


@pytest.mark.asyncio
async def test_absent_user_is_none_not_a_blank_record(fake_redis):
    cache = UserCache()
    assert await cache.get_user("nobody") is None

    # a counter bump on an uncached user leaves a partial hash behind
    await cache.increment_counter("ghost", "followers_count", 1)
    assert await fake_redis.hget("users:ghost", "followers_count") == "1"
    assert await cache.get_user("ghost") is None


@pytest.mark.asyncio
async def test_saved_post_reads_back_equal_and_bumps_author_count():
    users = UserCache()
    posts = PostCache()
    await users.save_user(make_user("u1", 100000000001))
    post = Post(id="p1", user_id="u1", username="u1", post="hello", bg_color="#fff", privacy="public")

    await posts.save_post(post, "100000000001")

    assert await posts.get_post("p1") == post
    assert (await users.get_user("u1")).posts_count == 1


@pytest.mark.asyncio
async def test_update_fields_rejects_counters_and_missing_users():
    cache = UserCache()
    assert await cache.update_fields("nobody", {"work": "x"}) is None
    with pytest.raises(ValueError):
        await cache.update_fields("nobody", {"posts_count": 3})
