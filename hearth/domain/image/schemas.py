from __future__ import annotations

from pydantic import BaseModel, Field


class ImageRequest(BaseModel):
	image: str = Field(min_length=1)
