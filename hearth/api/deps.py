"""FastAPI dependencies shared by the routers."""

from __future__ import annotations

from fastapi import Request

from hearth.container import Container, get_container


def services() -> Container:
	return get_container()


def client_ip(request: Request) -> str:
	forwarded = request.headers.get("X-Forwarded-For")
	if forwarded:
		return forwarded.split(",")[0].strip()
	return request.client.host if request.client else "unknown"
