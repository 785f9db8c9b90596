"""Comment endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from hearth.api.deps import services
from hearth.container import Container
from hearth.domain.comment.schemas import CommentRequest
from hearth.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/post", tags=["comments"])


@router.post("/comment", status_code=status.HTTP_201_CREATED)
async def add_comment(
	payload: CommentRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	comment = await app.comments.add_comment(auth_user, payload)
	return {"message": "Comment created successfully", "comment": comment}


@router.get("/comments/{post_id}")
async def get_comments(
	post_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	return {"message": "Post comments", "comments": await app.comments.get_comments(post_id)}


@router.get("/commentsnames/{post_id}")
async def get_comment_names(
	post_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	return {"message": "Post comments names", "comments": await app.comments.get_comment_names(post_id)}


@router.get("/single/comment/{post_id}/{comment_id}")
async def get_comment(
	post_id: str,
	comment_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	return {"message": "Single comment", "comments": await app.comments.get_comment(post_id, comment_id)}
