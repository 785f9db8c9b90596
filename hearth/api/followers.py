"""Follow and block endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from hearth.api.deps import services
from hearth.container import Container
from hearth.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/user", tags=["followers"])


@router.put("/follow/{followee_id}")
async def follow(
	followee_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	changed = await app.followers.follow(auth_user, followee_id)
	return {"message": "Following user now", "changed": changed}


@router.put("/unfollow/{followee_id}")
async def unfollow(
	followee_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	changed = await app.followers.unfollow(auth_user, followee_id)
	return {"message": "Unfollowed user now", "changed": changed}


@router.get("/following")
async def following(
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	return {"message": "User following", "following": await app.followers.following(auth_user)}


@router.get("/followers/{user_id}")
async def followers(
	user_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	return {"message": "User followers", "followers": await app.followers.followers(user_id)}


@router.put("/block/{target_id}")
async def block(
	target_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	await app.followers.block(auth_user, target_id)
	return {"message": "User blocked"}


@router.put("/unblock/{target_id}")
async def unblock(
	target_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	await app.followers.unblock(auth_user, target_id)
	return {"message": "User unblocked"}
