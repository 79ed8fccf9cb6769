from __future__ import annotations

import socket

from rich import print

from roomboard.config import RoomboardConfig
from roomboard.viewer import start_viewer


def _port_open(host: str, port: int) -> bool:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.settimeout(0.2)
        try:
            return sock.connect_ex((host, port)) == 0
        except OSError:
            return False


def serve(*, host: str, port: int, config: RoomboardConfig | None = None) -> None:
    if _port_open(host, port):
        print(f"[yellow]Viewer already running at http://{host}:{port}[/yellow]")
        return
    print(f"[green]Viewer running at http://{host}:{port}[/green]")
    start_viewer(host=host, port=port, background=False, config=config)
