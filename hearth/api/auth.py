"""Signup, signin and password endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status

from hearth.api.deps import client_ip, services
from hearth.container import Container
from hearth.domain.auth.schemas import (
	AuthResponse,
	ChangePasswordRequest,
	ForgotPasswordRequest,
	ResetPasswordRequest,
	SigninRequest,
	SignupRequest,
)
from hearth.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(tags=["auth"])


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(payload: SignupRequest, app: Container = Depends(services)) -> AuthResponse:
	user, token = await app.auth.signup(payload)
	return AuthResponse(message="User created successfully", user=user, token=token)


@router.post("/signin", response_model=AuthResponse)
async def signin(payload: SigninRequest, app: Container = Depends(services)) -> AuthResponse:
	user, token = await app.auth.signin(payload.username, payload.password)
	return AuthResponse(message="User login successfully", user=user, token=token)


@router.get("/signout")
async def signout() -> dict:
	# tokens are stateless; the client drops its copy
	return {"message": "Logout successful", "user": {}, "token": ""}


@router.get("/currentuser", response_model=AuthResponse)
async def current_user(
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> AuthResponse:
	user, token = await app.auth.current_user(auth_user)
	return AuthResponse(message="Current user", user=user, token=token, is_user=user is not None)


@router.post("/forgot-password")
async def forgot_password(payload: ForgotPasswordRequest, app: Container = Depends(services)) -> dict:
	await app.auth.forgot_password(payload.email)
	return {"message": "Password reset email sent."}


@router.post("/reset-password/{token}")
async def reset_password(
	token: str,
	payload: ResetPasswordRequest,
	request: Request,
	app: Container = Depends(services),
) -> dict:
	await app.auth.reset_password(token, payload, ip_address=client_ip(request))
	return {"message": "Password successfully updated."}
