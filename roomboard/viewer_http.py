from __future__ import annotations

import json
from http.server import BaseHTTPRequestHandler
from typing import Any
from urllib.parse import urlparse

LOOPBACK_HOSTS = frozenset({"127.0.0.1", "localhost", "::1"})


def is_loopback_origin(origin: str) -> bool:
    try:
        parsed = urlparse(origin)
        hostname = parsed.hostname
        _ = parsed.port
    except ValueError:
        return False
    return parsed.scheme == "http" and hostname in LOOPBACK_HOSTS


def _write(
    handler: BaseHTTPRequestHandler,
    body: bytes,
    *,
    content_type: str,
    status: int,
    no_store: bool = False,
) -> None:
    handler.send_response(status)
    handler.send_header("Content-Type", content_type)
    if no_store:
        handler.send_header("Cache-Control", "no-store")
    handler.send_header("Content-Length", str(len(body)))
    handler.end_headers()
    handler.wfile.write(body)


def send_json_response(
    handler: BaseHTTPRequestHandler,
    payload: dict[str, Any],
    status: int = 200,
) -> None:
    body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
    _write(handler, body, content_type="application/json; charset=utf-8", status=status)


def send_html_response(handler: BaseHTTPRequestHandler, html: str, status: int = 200) -> None:
    _write(
        handler,
        html.encode("utf-8"),
        content_type="text/html; charset=utf-8",
        status=status,
        no_store=True,
    )


def read_json_body(handler: BaseHTTPRequestHandler) -> dict[str, Any] | None:
    try:
        length = int(handler.headers.get("Content-Length") or 0)
    except ValueError:
        return None
    if length <= 0:
        return None
    try:
        payload = json.loads(handler.rfile.read(length).decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None
    return payload if isinstance(payload, dict) else None


def reject_cross_origin(handler: BaseHTTPRequestHandler) -> bool:
    """Answer 403 for writes from a non-loopback page. Missing Origin is allowed."""

    origin = handler.headers.get("Origin")
    if not origin or is_loopback_origin(origin):
        return False
    send_json_response(handler, {"error": "forbidden"}, status=403)
    return True
