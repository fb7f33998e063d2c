from __future__ import annotations

import socketio


def create_socketio_transport() -> socketio.AsyncClient:
    """Socket.IO client with built-in reconnection off; ChatSession owns retries."""
    return socketio.AsyncClient(
        reconnection=False,
        logger=False,
        engineio_logger=False,
    )
