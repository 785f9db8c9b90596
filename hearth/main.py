"""FastAPI application entrypoint."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

import socketio
from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hearth.api import auth, chat, comments, followers, images, notifications, ops, posts, reactions, users
from hearth.api.errors import install_error_handlers
from hearth.container import get_container
from hearth.infra import postgres
from hearth.infra.redis import close_redis
from hearth.obs import init as obs_init
from hearth.settings import settings
from hearth.sockets.namespaces import build_namespaces

_LOG = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI):
	pool = await postgres.init_pool()
	if settings.postgres_apply_schema:
		await postgres.apply_schema(pool)
	container = get_container()
	container.broadcaster.attach(sio)
	worker_tasks: list[asyncio.Task] = []
	if settings.queue_workers_enabled:
		worker_tasks = await container.queues.start()
	_LOG.info("app.started", extra={"workers": len(worker_tasks)})
	try:
		yield
	finally:
		await container.queues.stop()
		aclose = getattr(container.uploader, "aclose", None)
		if callable(aclose):
			await aclose()
		await close_redis()
		await postgres.close_pool()


app = FastAPI(title="Hearth API", lifespan=lifespan)
install_error_handlers(app)

allow_origins = list(getattr(settings, "cors_allow_origins", []))
if not allow_origins:
	allow_origins = [settings.client_url]

app.add_middleware(
	CORSMiddleware,
	allow_origins=allow_origins,
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)

api = APIRouter(prefix=API_PREFIX)
for module in (auth, users, followers, posts, comments, reactions, chat, notifications, images):
	api.include_router(module.router)
app.include_router(api)
app.include_router(ops.router)

sio = socketio.AsyncServer(async_mode="asgi", cors_allowed_origins=allow_origins)
for namespace in build_namespaces():
	sio.register_namespace(namespace)
socket_app = socketio.ASGIApp(sio, other_asgi_app=app)
obs_init(app)
