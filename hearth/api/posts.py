"""Post endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Path, status

from hearth.api.deps import services
from hearth.container import Container
from hearth.domain.post.schemas import PostRequest, PostWithImageRequest, UpdatePostRequest
from hearth.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/post", tags=["posts"])


@router.get("/all/{page}")
async def list_posts(
	page: int = Path(ge=1),
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	result = await app.posts.list_posts(page)
	return {"message": "All posts", **result}


@router.get("/images/{page}")
async def list_posts_with_images(
	page: int = Path(ge=1),
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	result = await app.posts.list_posts_with_images(page)
	return {"message": "All posts with images", **result}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_post(
	payload: PostRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	post = await app.posts.create_post(auth_user, payload)
	return {"message": "Post created successfully", "post": post}


@router.post("/image/post", status_code=status.HTTP_201_CREATED)
async def create_post_with_image(
	payload: PostWithImageRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	post = await app.posts.create_post_with_image(auth_user, payload)
	return {"message": "Post created with image successfully", "post": post}


@router.put("/{post_id}")
async def update_post(
	post_id: str,
	payload: UpdatePostRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	post = await app.posts.update_post(auth_user, post_id, payload)
	return {"message": "Post updated successfully", "post": post}


@router.delete("/{post_id}")
async def delete_post(
	post_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	await app.posts.delete_post(auth_user, post_id)
	return {"message": "Post deleted successfully"}
