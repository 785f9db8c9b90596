"""Best-effort fan-out of mutation events to connected clients."""

from __future__ import annotations

import logging
from typing import Any, Optional

import socketio

from hearth.obs import metrics as obs_metrics

_LOG = logging.getLogger(__name__)


def user_room(user_id: str) -> str:
	return f"user:{user_id}"


class Broadcaster:
	"""Emits on a Socket.IO server; a missing server makes every emit a no-op.

	Emission is at-most-once. Errors are logged and counted, never raised, so a
	broadcast failure cannot undo or block the cache write that preceded it.
	"""

	def __init__(self, server: Optional[socketio.AsyncServer] = None) -> None:
		self._server = server

	def attach(self, server: socketio.AsyncServer) -> None:
		self._server = server

	async def emit(self, namespace: str, event: str, payload: Any, *, room: str | None = None) -> None:
		if self._server is None:
			return
		obs_metrics.socket_event(namespace, event)
		try:
			await self._server.emit(event, payload, namespace=namespace, to=room)
		except Exception:  # best effort by contract
			obs_metrics.socket_emit_failed(namespace, event)
			_LOG.warning("broadcast.emit_failed", extra={"namespace": namespace, "event": event}, exc_info=True)

	async def emit_to_user(self, namespace: str, event: str, payload: Any, user_id: str) -> None:
		await self.emit(namespace, event, payload, room=user_room(user_id))
