from __future__ import annotations

import http.client
import json
import threading
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest

from roomboard.config import RoomboardConfig
from roomboard.viewer import ViewerServer


@pytest.fixture
def viewer_port(db_path: Path) -> Iterator[int]:
    server = ViewerServer(("127.0.0.1", 0), RoomboardConfig(db_path=str(db_path)))
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield int(server.server_address[1])
    finally:
        server.shutdown()
        server.server_close()


def _request(
    port: int,
    method: str,
    path: str,
    body: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> tuple[int, str]:
    conn = http.client.HTTPConnection("127.0.0.1", port, timeout=2)
    try:
        payload = json.dumps(body).encode("utf-8") if body is not None else None
        conn.request(method, path, body=payload, headers=headers or {})
        resp = conn.getresponse()
        return resp.status, resp.read().decode("utf-8")
    finally:
        conn.close()


def test_countdown_api_create_toggle_delete(viewer_port: int) -> None:
    status, raw = _request(viewer_port, "POST", "/api/countdowns", {"content": "Buy milk"})
    assert status == 201
    created = json.loads(raw)
    item = created["item"]
    assert item["content"] == "Buy milk"
    assert item["order"] == 1
    assert created["stats"] == {"total": 1, "done": 0, "remaining": 1}

    status, raw = _request(viewer_port, "POST", f"/api/countdowns/{item['id']}/toggle")
    assert status == 200
    assert json.loads(raw)["item"]["done"] is True

    status, raw = _request(viewer_port, "GET", "/api/countdowns")
    listing = json.loads(raw)
    assert [i["id"] for i in listing["items"]] == [item["id"]]
    assert listing["stats"]["done"] == 1

    status, raw = _request(viewer_port, "DELETE", f"/api/countdowns/{item['id']}")
    assert status == 200
    assert json.loads(raw)["stats"]["total"] == 0

    status, _ = _request(viewer_port, "DELETE", f"/api/countdowns/{item['id']}")
    assert status == 404


def test_create_requires_content(viewer_port: int) -> None:
    status, raw = _request(viewer_port, "POST", "/api/countdowns", {"text": "nope"})
    assert status == 400
    assert json.loads(raw) == {"error": "content is required"}


def test_cross_origin_post_is_rejected(viewer_port: int) -> None:
    status, _ = _request(
        viewer_port,
        "POST",
        "/api/countdowns",
        {"content": "Buy milk"},
        headers={"Origin": "https://evil.example"},
    )
    assert status == 403


def test_board_pages_render(viewer_port: int) -> None:
    _request(viewer_port, "POST", "/api/countdowns", {"content": "Buy <milk>"})

    status, html = _request(viewer_port, "GET", "/")
    assert status == 200
    assert "Buy &lt;milk&gt;" in html

    status, html = _request(viewer_port, "GET", "/sessions")
    assert status == 200
    assert "session-list" in html

    status, raw = _request(viewer_port, "GET", "/api/sessions")
    assert json.loads(raw) == {"items": []}


def test_unknown_route_is_404(viewer_port: int) -> None:
    status, _ = _request(viewer_port, "GET", "/nope")
    assert status == 404


def test_unreadable_database_answers_503(tmp_path: Path) -> None:
    garbage = tmp_path / "garbage.sqlite"
    garbage.write_bytes(b"this is not a sqlite database" * 64)
    server = ViewerServer(("127.0.0.1", 0), RoomboardConfig(db_path=str(garbage)))
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        status, raw = _request(int(server.server_address[1]), "GET", "/api/countdowns")
    finally:
        server.shutdown()
        server.server_close()

    assert status == 503
    assert "cannot open database" in json.loads(raw)["error"]
