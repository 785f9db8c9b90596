"""Reaction endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from hearth.api.deps import services
from hearth.container import Container
from hearth.domain.reaction.schemas import ReactionRequest
from hearth.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/post", tags=["reactions"])


@router.post("/reaction")
async def add_reaction(
	payload: ReactionRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	reaction = await app.reactions.add_reaction(auth_user, payload)
	return {"message": "Reaction added successfully", "reaction": reaction}


@router.delete("/reaction/{post_id}/{previous_reaction}")
async def remove_reaction(
	post_id: str,
	previous_reaction: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	await app.reactions.remove_reaction(auth_user, post_id, previous_reaction)
	return {"message": "Reaction removed from post"}


@router.get("/reactions/{post_id}")
async def get_reactions(
	post_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	result = await app.reactions.get_reactions(post_id)
	return {"message": "Post reactions", **result}


@router.get("/single/reaction/username/{username}/{post_id}")
async def get_user_reaction(
	username: str,
	post_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	reaction = await app.reactions.get_user_reaction(post_id, username)
	return {"message": "Single post reaction by username", "reactions": reaction, "count": 1}


@router.get("/reactions/username/{username}")
async def get_reactions_by_username(
	username: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	reactions = await app.reactions.get_reactions_by_username(username)
	return {"message": "All user reactions by username", "reactions": reactions}
