"""Request and response schemas for signup, signin and password flows."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from hearth.domain.models import User


class SignupRequest(BaseModel):
	username: str = Field(min_length=4, max_length=8)
	email: EmailStr
	password: str = Field(min_length=4, max_length=8)
	avatar_color: str = Field(min_length=1)
	avatar_image: str = Field(min_length=1)


class SigninRequest(BaseModel):
	username: str = Field(min_length=4, max_length=8)
	password: str = Field(min_length=4, max_length=8)


class ForgotPasswordRequest(BaseModel):
	email: EmailStr


class ResetPasswordRequest(BaseModel):
	password: str = Field(min_length=4, max_length=8)
	confirm_password: str


class ChangePasswordRequest(BaseModel):
	current_password: str
	new_password: str = Field(min_length=4, max_length=8)
	confirm_password: str


class AuthResponse(BaseModel):
	message: str
	user: Optional[User] = None
	token: Optional[str] = None
	is_user: bool = False
