"""WebSocket fan-out of training progress to the sessions watching a run."""
import asyncio
import json
from typing import Any

from fastapi import WebSocket


class ConnectionManager:
    """Tracks the open WebSockets of each client session."""

    def __init__(self):
        self._connections: dict[str, set[WebSocket]] = {}

    async def connect(self, session_id: str, websocket: WebSocket):
        await websocket.accept()
        self._connections.setdefault(session_id, set()).add(websocket)

    def disconnect(self, session_id: str, websocket: WebSocket):
        sockets = self._connections.get(session_id)
        if sockets is None:
            return
        sockets.discard(websocket)
        if not sockets:
            del self._connections[session_id]

    def connection_count(self, session_id: str) -> int:
        return len(self._connections.get(session_id, ()))

    async def send_to_session(self, session_id: str, data: dict[str, Any]):
        sockets = list(self._connections.get(session_id, ()))
        if not sockets:
            return
        message = json.dumps(data)
        for ws in sockets:
            try:
                await ws.send_text(message)
            except Exception:
                # Client went away without a close frame
                self.disconnect(session_id, ws)

    def make_progress_callback(
        self,
        session_id: str,
        execution_id: str,
        loop: asyncio.AbstractEventLoop,
    ):
        """Create a sync callback that tags and forwards training progress from a worker thread."""
        def callback(data: dict[str, Any]):
            asyncio.run_coroutine_threadsafe(
                self.send_to_session(session_id, {**data, "execution_id": execution_id}),
                loop,
            )
        return callback


manager = ConnectionManager()
