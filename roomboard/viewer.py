from __future__ import annotations

import logging
import os
import socket
import threading
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any
from urllib.parse import urlparse

from .app import AppContext, CountdownApp, SessionApp
from .config import RoomboardConfig, load_config
from .errors import RoomboardError
from .viewer_http import (
    read_json_body,
    reject_cross_origin,
    send_html_response,
    send_json_response,
)

logger = logging.getLogger(__name__)

DEFAULT_VIEWER_HOST = "127.0.0.1"
DEFAULT_VIEWER_PORT = 38900


def _countdown_id(path: str) -> tuple[str, str] | None:
    # /api/countdowns/<id> or /api/countdowns/<id>/toggle
    parts = [p for p in path.split("/") if p]
    if len(parts) < 3 or parts[:2] != ["api", "countdowns"]:
        return None
    action = parts[3] if len(parts) > 3 else ""
    return parts[2], action


class ViewerHandler(BaseHTTPRequestHandler):
    def _send_json(self, payload: dict[str, Any], status: int = 200) -> None:
        send_json_response(self, payload, status=status)

    def _not_found(self) -> None:
        self.send_response(404)
        self.end_headers()

    def _open_context(self) -> AppContext | None:
        config = getattr(self.server, "config", None) or load_config()
        try:
            return AppContext.from_config(config)
        except RoomboardError as exc:
            logger.warning("viewer cannot open %s", config.db_path, exc_info=exc)
            self._send_json({"error": str(exc)}, status=503)
            return None

    def log_message(self, format: str, *args: object) -> None:  # noqa: A003
        if os.environ.get("ROOMBOARD_VIEWER_LOGS") == "1":
            super().log_message(format, *args)

    def do_GET(self) -> None:  # noqa: N802
        parsed = urlparse(self.path)
        context = self._open_context()
        if context is None:
            return
        try:
            if parsed.path == "/":
                app = CountdownApp(context).start()
                send_html_response(self, app.document.to_html())
                return
            if parsed.path == "/sessions":
                sessions = SessionApp(context).attach()
                send_html_response(self, sessions.document.to_html())
                return
            if parsed.path == "/api/countdowns":
                countdown_app = CountdownApp(context).start()
                self._send_json(
                    {
                        "items": [c.to_json() for c in countdown_app.collection],
                        "stats": countdown_app.stats,
                    }
                )
                return
            if parsed.path == "/api/sessions":
                context.sessions.fetch()
                self._send_json({"items": [s.to_json() for s in context.sessions]})
                return
            self._not_found()
        finally:
            context.close()

    def do_POST(self) -> None:  # noqa: N802
        if reject_cross_origin(self):
            return
        parsed = urlparse(self.path)
        context = self._open_context()
        if context is None:
            return
        try:
            app = CountdownApp(context).start()
            if parsed.path == "/api/countdowns":
                payload = read_json_body(self) or {}
                content = payload.get("content")
                if not isinstance(content, str):
                    self._send_json({"error": "content is required"}, status=400)
                    return
                countdown = app.create_on_enter("Enter", content)
                assert countdown is not None
                self._send_json({"item": countdown.to_json(), "stats": app.stats}, status=201)
                return
            target = _countdown_id(parsed.path)
            if target is None or target[1] != "toggle":
                self._not_found()
                return
            try:
                countdown = app.toggle(target[0])
            except KeyError:
                self._send_json({"error": "not found"}, status=404)
                return
            self._send_json({"item": countdown.to_json(), "stats": app.stats})
        except RoomboardError as exc:
            logger.warning("viewer request %s failed", parsed.path, exc_info=exc)
            self._send_json({"error": str(exc)}, status=409)
        finally:
            context.close()

    def do_DELETE(self) -> None:  # noqa: N802
        if reject_cross_origin(self):
            return
        parsed = urlparse(self.path)
        target = _countdown_id(parsed.path)
        if target is None or target[1]:
            self._not_found()
            return
        context = self._open_context()
        if context is None:
            return
        try:
            app = CountdownApp(context).start()
            try:
                app.clear(target[0])
            except KeyError:
                self._send_json({"error": "not found"}, status=404)
                return
            self._send_json({"ok": True, "stats": app.stats})
        finally:
            context.close()


class ViewerServer(HTTPServer):
    """HTTP server whose handlers open stores from `config`."""

    def __init__(
        self, address: tuple[str, int], config: RoomboardConfig | None = None
    ) -> None:
        super().__init__(address, ViewerHandler)
        self.config = config


def _serve(host: str, port: int, config: RoomboardConfig | None = None) -> None:
    server = ViewerServer((host, port), config)
    server.serve_forever()


def start_viewer(
    host: str = DEFAULT_VIEWER_HOST,
    port: int = DEFAULT_VIEWER_PORT,
    background: bool = False,
    config: RoomboardConfig | None = None,
) -> threading.Thread | None:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.settimeout(0.2)
        try:
            if sock.connect_ex((host, port)) == 0:
                return None
        except OSError:
            pass
    if background:
        thread = threading.Thread(target=_serve, args=(host, port, config), daemon=True)
        thread.start()
        return thread
    _serve(host, port, config)
    return None
