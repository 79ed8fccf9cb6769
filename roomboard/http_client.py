from __future__ import annotations

import json
from http.client import HTTPConnection, HTTPSConnection
from typing import Any
from urllib.parse import urlencode, urlparse, urlunparse


def add_query_param(url: str, key: str, value: str) -> str:
    parsed = urlparse(url)
    extra = urlencode({key: value})
    query = f"{parsed.query}&{extra}" if parsed.query else extra
    return urlunparse(parsed._replace(query=query))


def request_json(
    method: str,
    url: str,
    *,
    headers: dict[str, str] | None = None,
    timeout_s: float = 5.0,
) -> tuple[int, Any]:
    parsed = urlparse(url)
    if not parsed.hostname:
        raise ValueError("missing hostname")
    if parsed.scheme == "https":
        conn = HTTPSConnection(parsed.hostname, parsed.port or 443, timeout=timeout_s)
    else:
        conn = HTTPConnection(parsed.hostname, parsed.port or 80, timeout=timeout_s)
    path = parsed.path or "/"
    if parsed.query:
        path = f"{path}?{parsed.query}"
    request_headers = {"Accept": "application/json"}
    if headers:
        request_headers.update(headers)
    status: int | None = None
    payload: Any = None
    try:
        conn.request(method, path, headers=request_headers)
        resp = conn.getresponse()
        status = int(resp.status)
        raw = resp.read()
        if raw:
            payload = json.loads(raw.decode("utf-8"))
    finally:
        conn.close()
    assert status is not None
    return status, payload


def fetch_json(url: str, *, timeout_s: float = 5.0) -> Any:
    """GET a JSON document; non-2xx responses raise `RuntimeError`."""

    status, payload = request_json("GET", url, timeout_s=timeout_s)
    if status < 200 or status >= 300:
        raise RuntimeError(f"GET {url} returned HTTP {status}")
    return payload
