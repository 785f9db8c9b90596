from __future__ import annotations

from pydantic import BaseModel, Field


class CommentRequest(BaseModel):
	post_id: str = Field(min_length=1)
	user_to: str = ""
	comment: str = Field(min_length=1)
	profile_picture: str = ""
