"""
HTTP tests for the /tasks endpoints.

Writes require the X-API-KEY header; reads are public. Every error body
has the shape {error, message, code[, details]}.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from tasktrail.api.deps import get_log_store, get_task_service
from tasktrail.audit import InMemoryLogStore
from tasktrail.main import app
from tasktrail.observability.metrics import AUDIT_FAILED, metrics


async def _create_task(client, auth_headers, **fields):
    payload = {"title": "API task", **fields}
    response = await client.post("/tasks", json=payload, headers=auth_headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


# ============================================================================
# Create
# ============================================================================


@pytest.mark.asyncio
async def test_create_task(client, auth_headers):
    response = await client.post(
        "/tasks",
        json={"title": "Ship it", "description": "Release 1.0", "status": "in_progress"},
        headers=auth_headers,
    )

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Task created successfully"
    assert body["data"]["title"] == "Ship it"
    assert body["data"]["status"] == "in_progress"
    assert isinstance(body["data"]["id"], int)
    assert body["meta"]["version"] == "1.0"
    assert "timestamp" in body["meta"]


@pytest.mark.asyncio
async def test_create_task_defaults_to_pending(client, auth_headers):
    data = await _create_task(client, auth_headers)

    assert data["status"] == "pending"
    assert data["description"] is None


@pytest.mark.asyncio
async def test_create_task_trims_strings(client, auth_headers):
    data = await _create_task(client, auth_headers, title="  Padded title  ", description="   ")

    assert data["title"] == "Padded title"
    assert data["description"] is None, "Blank strings are stored as null"


@pytest.mark.asyncio
async def test_create_task_requires_api_key(client):
    response = await client.post("/tasks", json={"title": "No key"})

    assert response.status_code == 401
    body = response.json()
    assert body["error"] == "Unauthorized"
    assert body["code"] == "MISSING_API_KEY"
    assert "X-API-KEY" in body["message"]

    listing = await client.get("/tasks")
    assert listing.json()["data"] == [], "Rejected request must not create a task"


@pytest.mark.asyncio
async def test_create_task_rejects_wrong_api_key(client):
    response = await client.post(
        "/tasks", json={"title": "Bad key"}, headers={"X-API-KEY": "wrong-key"}
    )

    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_API_KEY"


@pytest.mark.asyncio
async def test_create_task_validation_error(client, auth_headers):
    response = await client.post(
        "/tasks", json={"title": "", "status": "archived"}, headers=auth_headers
    )

    assert response.status_code == 422
    body = response.json()
    assert body["error"] == "Validation Error"
    assert body["code"] == "VALIDATION_ERROR"
    assert set(body["details"]) == {"title", "status"}


@pytest.mark.asyncio
async def test_create_task_title_too_long(client, auth_headers):
    response = await client.post("/tasks", json={"title": "t" * 256}, headers=auth_headers)

    assert response.status_code == 422
    assert "255" in response.json()["details"]["title"]


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", ["not json", "[1, 2, 3]"])
async def test_create_task_rejects_non_object_body(client, auth_headers, raw):
    response = await client.post(
        "/tasks",
        content=raw,
        headers={**auth_headers, "Content-Type": "application/json"},
    )

    assert response.status_code == 422
    assert "body" in response.json()["details"]


# ============================================================================
# Read
# ============================================================================


@pytest.mark.asyncio
async def test_list_tasks_newest_first(client, auth_headers):
    first = await _create_task(client, auth_headers, title="First")
    second = await _create_task(client, auth_headers, title="Second")

    response = await client.get("/tasks")

    assert response.status_code == 200
    body = response.json()
    assert [t["id"] for t in body["data"]] == [second["id"], first["id"]]
    assert body["pagination"] is None, "Unpaginated listing has no pagination block"
    assert body["meta"]["version"] == "1.0"


@pytest.mark.asyncio
async def test_list_tasks_status_filter(client, auth_headers):
    await _create_task(client, auth_headers, title="Open")
    done = await _create_task(client, auth_headers, title="Done", status="completed")

    response = await client.get("/tasks", params={"status": "completed"})

    assert [t["id"] for t in response.json()["data"]] == [done["id"]]


@pytest.mark.asyncio
async def test_list_tasks_invalid_status_filter(client):
    response = await client.get("/tasks", params={"status": "archived"})

    assert response.status_code == 422
    assert "status" in response.json()["details"]


@pytest.mark.asyncio
async def test_list_tasks_paginated(client, auth_headers):
    for i in range(5):
        await _create_task(client, auth_headers, title=f"Task {i}")

    response = await client.get("/tasks", params={"page": 2, "per_page": 2})

    body = response.json()
    assert len(body["data"]) == 2
    assert body["pagination"] == {"page": 2, "per_page": 2, "total": 5, "last_page": 3}


@pytest.mark.asyncio
async def test_list_tasks_default_page_size(client, auth_headers):
    await _create_task(client, auth_headers)

    body = (await client.get("/tasks", params={"page": 1})).json()

    assert body["pagination"] == {"page": 1, "per_page": 15, "total": 1, "last_page": 1}


@pytest.mark.asyncio
@pytest.mark.parametrize("params", [{"page": 0}, {"per_page": 1000}, {"page": "abc"}])
async def test_list_tasks_rejects_bad_pagination(client, params):
    response = await client.get("/tasks", params=params)

    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_get_task(client, auth_headers):
    created = await _create_task(client, auth_headers, title="Find me")

    response = await client.get(f"/tasks/{created['id']}")

    assert response.status_code == 200
    assert response.json()["data"] == created


@pytest.mark.asyncio
async def test_get_missing_task(client):
    response = await client.get("/tasks/999")

    assert response.status_code == 404
    body = response.json()
    assert body["error"] == "Not Found"
    assert body["code"] == "TASK_NOT_FOUND"


@pytest.mark.asyncio
async def test_get_task_non_integer_id(client):
    response = await client.get("/tasks/abc")

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_task_statistics(client, auth_headers):
    for status in ("pending", "pending", "in_progress", "completed"):
        await _create_task(client, auth_headers, status=status)

    response = await client.get("/tasks/statistics")

    assert response.status_code == 200
    assert response.json()["data"] == {
        "total": 4,
        "pending": 2,
        "in_progress": 1,
        "completed": 1,
    }


# ============================================================================
# Update / Delete
# ============================================================================


@pytest.mark.asyncio
async def test_update_task(client, auth_headers):
    created = await _create_task(client, auth_headers, title="Draft", description="keep")

    response = await client.put(
        f"/tasks/{created['id']}", json={"status": "completed"}, headers=auth_headers
    )

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Task updated successfully"
    assert body["data"]["status"] == "completed"
    assert body["data"]["title"] == "Draft"
    assert body["data"]["description"] == "keep"


@pytest.mark.asyncio
async def test_update_task_requires_api_key(client, auth_headers):
    created = await _create_task(client, auth_headers)

    response = await client.put(f"/tasks/{created['id']}", json={"status": "completed"})

    assert response.status_code == 401
    assert response.json()["code"] == "MISSING_API_KEY"


@pytest.mark.asyncio
async def test_update_missing_task(client, auth_headers):
    response = await client.put("/tasks/999", json={"title": "x"}, headers=auth_headers)

    assert response.status_code == 404
    assert response.json()["code"] == "TASK_NOT_FOUND"


@pytest.mark.asyncio
async def test_update_task_rejects_blank_title(client, auth_headers):
    created = await _create_task(client, auth_headers)

    response = await client.put(
        f"/tasks/{created['id']}", json={"title": "   "}, headers=auth_headers
    )

    assert response.status_code == 422
    assert "title" in response.json()["details"]


@pytest.mark.asyncio
async def test_delete_task(client, auth_headers):
    created = await _create_task(client, auth_headers)

    response = await client.delete(f"/tasks/{created['id']}", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {"message": "Task deleted successfully"}
    assert (await client.get(f"/tasks/{created['id']}")).status_code == 404


@pytest.mark.asyncio
async def test_delete_task_requires_api_key(client, auth_headers):
    created = await _create_task(client, auth_headers)

    response = await client.delete(f"/tasks/{created['id']}", headers={"X-API-KEY": "nope"})

    assert response.status_code == 401
    assert (await client.get(f"/tasks/{created['id']}")).status_code == 200


@pytest.mark.asyncio
async def test_delete_missing_task(client, auth_headers):
    response = await client.delete("/tasks/999", headers=auth_headers)

    assert response.status_code == 404


# ============================================================================
# Service endpoints and error handling
# ============================================================================


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["version"] == "1.0"


@pytest.mark.asyncio
async def test_info_lists_endpoints(client):
    body = (await client.get("/info")).json()

    assert body["name"] == "TaskTrail"
    assert "POST /tasks" in body["endpoints"]["tasks"]
    assert body["authentication"]["header"] == "X-API-KEY"


@pytest.mark.asyncio
async def test_unknown_route_uses_error_shape(client):
    response = await client.get("/nowhere")

    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_unexpected_error_returns_generic_500(client):
    class ExplodingService:
        async def list_tasks(self, filters=None):
            raise RuntimeError("database password is hunter2")

    app.dependency_overrides[get_task_service] = lambda: ExplodingService()
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as raw_client:
        response = await raw_client.get("/tasks")

    assert response.status_code == 500
    body = response.json()
    assert body["code"] == "INTERNAL_ERROR"
    assert body["message"] == "An unexpected error occurred"
    assert "hunter2" not in response.text, "Internal details must not leak"
    assert response.headers["x-frame-options"] == "DENY", "500s carry the security headers"
    assert response.headers["x-content-type-options"] == "nosniff"
    assert response.headers["x-api-version"] == "1.0"


# ============================================================================
# Audit write failures
# ============================================================================


class FailingLogStore(InMemoryLogStore):
    """Log store whose writes always fail."""

    async def create(self, document):
        raise ConnectionError("log store unavailable")


@pytest.fixture
async def audit_down_client(client):
    """Client whose log store rejects every write; other overrides are shared."""
    app.dependency_overrides[get_log_store] = lambda: FailingLogStore()
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as raw_client:
        yield raw_client


@pytest.mark.asyncio
async def test_create_with_audit_failure_returns_500_and_keeps_task(
    client, audit_down_client, auth_headers
):
    response = await audit_down_client.post(
        "/tasks", json={"title": "Unaudited"}, headers=auth_headers
    )

    assert response.status_code == 500
    body = response.json()
    assert body["code"] == "INTERNAL_ERROR"
    assert body["message"] == "An unexpected error occurred"

    listing = (await client.get("/tasks")).json()["data"]
    assert [t["title"] for t in listing] == ["Unaudited"], "Task insert is not rolled back"
    assert metrics.counter(AUDIT_FAILED) == 1


@pytest.mark.asyncio
async def test_update_with_audit_failure_returns_500_and_keeps_patch(
    client, log_store, auth_headers
):
    created = await _create_task(client, auth_headers, title="Patched")
    app.dependency_overrides[get_log_store] = lambda: FailingLogStore()
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as raw_client:
        response = await raw_client.put(
            f"/tasks/{created['id']}", json={"status": "completed"}, headers=auth_headers
        )

    assert response.status_code == 500
    assert response.json()["code"] == "INTERNAL_ERROR"

    app.dependency_overrides[get_log_store] = lambda: log_store
    reloaded = (await client.get(f"/tasks/{created['id']}")).json()["data"]
    assert reloaded["status"] == "completed", "Task update is not rolled back"


# ============================================================================
# Seeded listings
# ============================================================================


@pytest.mark.asyncio
async def test_status_filter_on_seeded_store(client, seed_tasks):
    await seed_tasks(pending=5, in_progress=3, completed=2)

    response = await client.get("/tasks", params={"status": "pending"})

    assert response.status_code == 200
    data = response.json()["data"]
    assert len(data) == 5
    assert {t["status"] for t in data} == {"pending"}

    everything = (await client.get("/tasks")).json()["data"]
    assert len(everything) == 10


@pytest.mark.asyncio
async def test_openapi_documents_error_body(client):
    schema = (await client.get("/openapi.json")).json()

    assert "ErrorResponse" in schema["components"]["schemas"]
    create = schema["paths"]["/tasks"]["post"]
    assert {"401", "422"} <= set(create["responses"])
