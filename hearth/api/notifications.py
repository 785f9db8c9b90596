"""Notification endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from hearth.api.deps import services
from hearth.container import Container
from hearth.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(tags=["notifications"])


@router.get("/notifications")
async def list_notifications(
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	notifications = await app.notifications.list_notifications(auth_user)
	return {"message": "User notifications", "notifications": notifications}


@router.put("/notification/{notification_id}")
async def mark_read(
	notification_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	await app.notifications.mark_read(auth_user, notification_id)
	return {"message": "Notification marked as read"}


@router.delete("/notification/{notification_id}")
async def delete(
	notification_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	await app.notifications.delete(auth_user, notification_id)
	return {"message": "Notification deleted successfully"}
