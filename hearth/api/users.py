"""User listing, profiles and profile edits."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Path, Request

from hearth.api.deps import client_ip, services
from hearth.container import Container
from hearth.domain.auth.schemas import ChangePasswordRequest
from hearth.domain.user.schemas import BasicInfoRequest, NotificationSettingsRequest, SocialLinksRequest
from hearth.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/user", tags=["users"])


@router.get("/all/{page}")
async def list_users(
	page: int = Path(ge=1),
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	result = await app.users.list_users(auth_user, page)
	return {"message": "Get users", **result}


@router.get("/profile")
async def my_profile(
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	return {"message": "Get user profile", "user": await app.users.profile(auth_user.id)}


@router.get("/profile/user/suggestions")
async def suggestions(
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	return {"message": "User suggestions", "users": await app.users.suggestions(auth_user)}


@router.get("/profile/posts/{username}/{user_id}/{u_id}")
async def profile_and_posts(
	username: str,
	user_id: str,
	u_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	result = await app.users.profile_and_posts(user_id, username, u_id)
	return {"message": "Get user profile and posts", **result}


@router.get("/profile/{user_id}")
async def profile(
	user_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	return {"message": "Get user profile by id", "user": await app.users.profile(user_id)}


@router.put("/profile/change-password")
async def change_password(
	payload: ChangePasswordRequest,
	request: Request,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	await app.auth.change_password(auth_user, payload, ip_address=client_ip(request))
	return {"message": "Password updated successfully. You will be redirected shortly to the login page."}


@router.put("/profile/basic-info")
async def update_basic_info(
	payload: BasicInfoRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	user = await app.users.update_basic_info(auth_user, payload)
	return {"message": "Updated successfully", "user": user}


@router.put("/profile/social-links")
async def update_social_links(
	payload: SocialLinksRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	user = await app.users.update_social_links(auth_user, payload)
	return {"message": "Updated successfully", "user": user}


@router.put("/profile/settings")
async def update_notification_settings(
	payload: NotificationSettingsRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	user = await app.users.update_notification_settings(auth_user, payload)
	return {"message": "Notification settings updated successfully", "settings": user.notifications}
