import time

import pytest

from hearth.domain.comment.schemas import CommentRequest
from hearth.infra.auth import AuthenticatedUser
from hearth.settings import settings

ADMIN = {"X-Admin-Token": "test-admin"}


async def _dead_comment_job(container) -> str:
    container.repositories.comment.fail_with = RuntimeError("database unreachable")
    principal = AuthenticatedUser(id="alice", u_id="100000000001", username="alice")
    await container.comments.add_comment(principal, CommentRequest(post_id="p1", comment="lost"))
    queue = container.queues["comment"]
    for _ in range(queue.max_attempts):
        await queue.promote_delayed(now=time.time() + 3600)
        await queue.process_once("add_comment_to_db")
    [job] = await queue.failed_jobs()
    return job.id


@pytest.mark.asyncio
async def test_health_reports_cache_and_database(api_client):
    response = await api_client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["cache"] == "ok"
    assert body["database"] == "down"
    assert body["service"] == settings.service_name


@pytest.mark.asyncio
async def test_metrics_are_exposed(api_client):
    response = await api_client.get("/metrics")

    assert response.status_code == 200
    assert "text/plain" in response.headers["content-type"]


@pytest.mark.asyncio
async def test_failed_jobs_need_the_admin_token(api_client, container):
    assert (await api_client.get("/ops/queues/comment/failed")).status_code == 403
    wrong = await api_client.get("/ops/queues/comment/failed", headers={"X-Admin-Token": "nope"})
    assert wrong.status_code == 403
    assert wrong.json()["message"] == "forbidden"


@pytest.mark.asyncio
async def test_failed_job_can_be_inspected_and_requeued(api_client, container):
    job_id = await _dead_comment_job(container)

    listed = await api_client.get("/ops/queues/comment/failed", headers=ADMIN)
    assert listed.status_code == 200
    [job] = listed.json()["jobs"]
    assert job["id"] == job_id
    assert job["status"] == "failed"
    assert job["attempts"] == container.queues["comment"].max_attempts

    container.repositories.comment.fail_with = None
    requeued = await api_client.post(f"/ops/queues/comment/failed/{job_id}/requeue", headers=ADMIN)
    assert requeued.status_code == 200
    assert await container.queues["comment"].process_once("add_comment_to_db") is True
    assert len(await container.repositories.comment.list_for_post("p1")) == 1

    again = await api_client.post(f"/ops/queues/comment/failed/{job_id}/requeue", headers=ADMIN)
    assert again.status_code == 404
    assert again.json()["message"] == "failed_job_not_found"


@pytest.mark.asyncio
async def test_unknown_queue_is_404(api_client, container):
    response = await api_client.get("/ops/queues/nope/failed", headers=ADMIN)

    assert response.status_code == 404
    assert response.json()["message"] == "queue_not_found"
