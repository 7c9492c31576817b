#!/usr/bin/env python3
"""Golden path demo for TaskTrail: create, update and delete a task, then check its audit trail."""

from __future__ import annotations

import json
import os
import sys
from typing import Any
from urllib.error import HTTPError
from urllib.parse import urlencode
from urllib.request import Request, urlopen


def _env(name: str, default: str | None = None) -> str | None:
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    return value


class HttpClient:
    def __init__(self, base_url: str, api_key: str | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.headers: dict[str, str] = {"Content-Type": "application/json"}
        if api_key:
            self.headers["X-API-KEY"] = api_key

    def request_json(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
        query: dict[str, Any] | None = None,
        timeout: float = 10.0,
    ) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        if query:
            query = {k: v for k, v in query.items() if v is not None}
            if query:
                url = f"{url}?{urlencode(query)}"

        data = None
        if payload is not None:
            data = json.dumps(payload).encode("utf-8")

        req = Request(url, data=data, method=method)
        for key, value in self.headers.items():
            req.add_header(key, value)

        try:
            with urlopen(req, timeout=timeout) as response:
                raw = response.read()
        except HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="replace")
            raise RuntimeError(f"{method} {url} failed: {exc.code} {exc.reason}: {detail}") from None

        if not raw:
            return {}
        return json.loads(raw.decode("utf-8"))


def main() -> int:
    base_url = _env("TASKTRAIL_URL", "http://localhost:8080")
    api_key = _env("TASKTRAIL_API_KEY")

    client = HttpClient(base_url, api_key=api_key)

    print("Checking health...")
    health = client.request_json("GET", "/health")
    if health.get("status") != "ok":
        raise RuntimeError(f"Unexpected health response: {health}")

    print("Creating task...")
    created = client.request_json(
        "POST",
        "/tasks",
        payload={"title": "Golden path task", "description": "Demo", "status": "pending"},
    )["data"]
    task_id = created["id"]
    print(f"Task created: {task_id}")

    print("Updating task...")
    updated = client.request_json("PUT", f"/tasks/{task_id}", payload={"status": "completed"})["data"]
    if updated["status"] != "completed":
        raise RuntimeError(f"Task not updated: {updated}")

    print("Deleting task...")
    client.request_json("DELETE", f"/tasks/{task_id}")

    logs = client.request_json(
        "GET", "/logs", query={"entity_type": "task", "entity_id": task_id}
    ).get("data", [])
    actions = [log.get("action") for log in logs]
    if sorted(actions) != ["created", "deleted", "updated"]:
        raise RuntimeError(f"Unexpected audit trail for task {task_id}: {actions}")

    print("Golden path complete: task created, updated, deleted, and fully audited.")
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except Exception as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        raise
