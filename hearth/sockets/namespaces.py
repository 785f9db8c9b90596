"""Socket.IO namespaces.

Every namespace authenticates on connect (bearer token in the auth payload,
or the X-User-Id header in dev) and puts the client in its ``user:{id}``
room so handlers can address one user directly.
"""

from __future__ import annotations

from typing import Dict, Optional

import socketio

from hearth.domain.exceptions import NotAuthorizedError
from hearth.infra.auth import AuthenticatedUser, verify_access_jwt
from hearth.obs import metrics as obs_metrics
from hearth.settings import settings
from hearth.sockets.broadcast import user_room

POSTS = "/posts"
FOLLOWERS = "/followers"
USERS = "/users"
CHAT = "/chat"
NOTIFICATIONS = "/notifications"
IMAGES = "/images"


def _header(scope: dict, name: str) -> Optional[str]:
	target = name.encode().lower()
	for key, value in scope.get("headers", []):
		if key.lower() == target:
			return value.decode()
	return None


class UserRoomNamespace(socketio.AsyncNamespace):
	"""Namespace that places clients in a per-user room for direct delivery."""

	def __init__(self, namespace: str) -> None:
		super().__init__(namespace)
		self._sessions: Dict[str, AuthenticatedUser] = {}

	def _authenticate(self, environ: dict, auth: Optional[dict]) -> AuthenticatedUser:
		scope = environ.get("asgi.scope", environ)
		payload = auth or {}
		token = payload.get("token")
		if token:
			try:
				return verify_access_jwt(str(token))
			except NotAuthorizedError:
				raise ConnectionRefusedError("invalid token") from None
		user_id = payload.get("userId") or _header(scope, "x-user-id")
		if settings.is_dev() and user_id:
			return AuthenticatedUser(id=str(user_id), u_id="0", username=str(payload.get("username") or user_id))
		raise ConnectionRefusedError("missing credentials")

	async def on_connect(self, sid: str, environ: dict, auth: Optional[dict] = None) -> None:
		user = self._authenticate(environ, auth)
		obs_metrics.socket_connected(self.namespace)
		self._sessions[sid] = user
		await self.enter_room(sid, user_room(user.id))

	async def on_disconnect(self, sid: str, *args) -> None:
		user = self._sessions.pop(sid, None)
		if user:
			obs_metrics.socket_disconnected(self.namespace)
			await self.leave_room(sid, user_room(user.id))

	def session_user(self, sid: str) -> AuthenticatedUser:
		user = self._sessions.get(sid)
		if user is None:
			raise ConnectionRefusedError("unauthenticated")
		return user


class PostsNamespace(UserRoomNamespace):
	"""Relays client-side reaction and comment events to every listener."""

	def __init__(self) -> None:
		super().__init__(POSTS)

	async def on_reaction(self, sid: str, payload: dict) -> None:
		self.session_user(sid)
		obs_metrics.socket_event(self.namespace, "update like")
		await self.emit("update like", payload, skip_sid=sid)

	async def on_comment(self, sid: str, payload: dict) -> None:
		self.session_user(sid)
		obs_metrics.socket_event(self.namespace, "update comment")
		await self.emit("update comment", payload, skip_sid=sid)


class ChatNamespace(UserRoomNamespace):
	def __init__(self) -> None:
		super().__init__(CHAT)

	async def on_typing(self, sid: str, payload: dict) -> None:
		user = self.session_user(sid)
		peer_id = str(payload.get("receiver_id") or "")
		if not peer_id:
			return
		obs_metrics.socket_event(self.namespace, "typing")
		await self.emit("typing", {"sender_id": user.id, "receiver_id": peer_id}, room=user_room(peer_id))


def build_namespaces() -> list[UserRoomNamespace]:
	return [
		PostsNamespace(),
		UserRoomNamespace(FOLLOWERS),
		UserRoomNamespace(USERS),
		ChatNamespace(),
		UserRoomNamespace(NOTIFICATIONS),
		UserRoomNamespace(IMAGES),
	]
