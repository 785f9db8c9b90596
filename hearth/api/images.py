"""Profile and background image endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from hearth.api.deps import services
from hearth.container import Container
from hearth.domain.image.schemas import ImageRequest
from hearth.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/images", tags=["images"])


@router.post("/profile")
async def add_profile_image(
	payload: ImageRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	user = await app.images.add_profile_image(auth_user, payload)
	return {"message": "Image added successfully", "user": user}


@router.post("/background")
async def add_background_image(
	payload: ImageRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	user = await app.images.add_background_image(auth_user, payload)
	return {"message": "Image added successfully", "user": user}


@router.delete("/background/{bg_image_id}")
async def delete_background_image(
	bg_image_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	await app.images.delete_background_image(auth_user, bg_image_id)
	return {"message": "Image deleted successfully"}


@router.delete("/{image_id}")
async def delete_image(
	image_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	await app.images.delete_image(auth_user, image_id)
	return {"message": "Image deleted successfully"}


@router.get("/{user_id}")
async def get_images(
	user_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	return {"message": "User images", "images": await app.images.get_images(user_id)}
