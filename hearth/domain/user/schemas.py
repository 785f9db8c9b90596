"""Profile edit payloads."""

from __future__ import annotations

from pydantic import BaseModel

from hearth.domain.models import NotificationSettings, SocialLinks


class BasicInfoRequest(BaseModel):
	quote: str = ""
	work: str = ""
	school: str = ""
	location: str = ""


class SocialLinksRequest(SocialLinks):
	pass


class NotificationSettingsRequest(NotificationSettings):
	pass
