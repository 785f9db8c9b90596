"""Operations endpoints: health, metrics and the failed-job log."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Response, status
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from hearth.api.deps import services
from hearth.container import Container
from hearth.infra import postgres
from hearth.infra import redis as redis_infra
from hearth.settings import settings

router = APIRouter(prefix="", tags=["ops"])


def _resolve_token(x_admin_token: Optional[str], authorization: Optional[str]) -> Optional[str]:
	if x_admin_token:
		return x_admin_token
	if authorization and authorization.lower().startswith("bearer "):
		return authorization.split(" ", 1)[1]
	return None


async def require_admin(
	X_Admin_Token: Optional[str] = Header(default=None, alias="X-Admin-Token"),
	authorization: Optional[str] = Header(default=None, alias="Authorization"),
) -> None:
	token = settings.obs_admin_token
	if not token:
		raise HTTPException(status.HTTP_403_FORBIDDEN, detail="admin_token_not_configured")
	if _resolve_token(X_Admin_Token, authorization) != token:
		raise HTTPException(status.HTTP_403_FORBIDDEN, detail="forbidden")


async def require_metrics_access(
	X_Admin_Token: Optional[str] = Header(default=None, alias="X-Admin-Token"),
	authorization: Optional[str] = Header(default=None, alias="Authorization"),
) -> None:
	if settings.obs_metrics_public:
		return
	await require_admin(X_Admin_Token=X_Admin_Token, authorization=authorization)


@router.get("/health")
async def health() -> Response:
	cache_ok = await redis_infra.ping()
	database_ok = await postgres.ping()
	payload = {
		"status": "ok" if cache_ok else "unavailable",
		"cache": "ok" if cache_ok else "down",
		"database": "ok" if database_ok else "down",
		"service": settings.service_name,
		"commit": settings.git_commit,
	}
	# the cache is the commit point for writes, so only its loss is fatal
	code = status.HTTP_200_OK if cache_ok else status.HTTP_503_SERVICE_UNAVAILABLE
	return JSONResponse(content=payload, status_code=code)


@router.get("/metrics")
async def prometheus_metrics(_: None = Depends(require_metrics_access)) -> Response:
	return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


def _queue(app: Container, name: str):
	if name not in app.queues:
		raise HTTPException(status.HTTP_404_NOT_FOUND, detail="queue_not_found")
	return app.queues[name]


@router.get("/ops/queues/{name}/failed")
async def failed_jobs(
	name: str,
	start: int = Query(default=0, ge=0),
	end: int = Query(default=99, ge=-1),
	_: None = Depends(require_admin),
	app: Container = Depends(services),
) -> dict:
	jobs = await _queue(app, name).failed_jobs(start, end)
	return {"queue": name, "jobs": [job.to_dict() for job in jobs]}


@router.post("/ops/queues/{name}/failed/{job_id}/requeue")
async def requeue_failed(
	name: str,
	job_id: str,
	_: None = Depends(require_admin),
	app: Container = Depends(services),
) -> dict:
	if not await _queue(app, name).requeue_failed(job_id):
		raise HTTPException(status.HTTP_404_NOT_FOUND, detail="failed_job_not_found")
	return {"queue": name, "job_id": job_id, "status": "requeued"}
