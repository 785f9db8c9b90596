from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class ReactionRequest(BaseModel):
	post_id: str = Field(min_length=1)
	user_to: str = ""
	type: str
	previous_reaction: Optional[str] = None
	profile_picture: str = ""
