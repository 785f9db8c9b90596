"""Post create and update payloads."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class PostRequest(BaseModel):
	post: str = ""
	bg_color: str = ""
	privacy: str = ""
	gif_url: str = ""
	feelings: str = ""
	profile_picture: str = ""


class PostWithImageRequest(PostRequest):
	image: str = Field(min_length=1)


class UpdatePostRequest(BaseModel):
	post: Optional[str] = None
	bg_color: Optional[str] = None
	privacy: Optional[str] = None
	feelings: Optional[str] = None
	gif_url: Optional[str] = None
	profile_picture: Optional[str] = None
	img_id: Optional[str] = None
	img_version: Optional[str] = None
	image: Optional[str] = None
