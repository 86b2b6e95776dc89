"""
Dashboard WebSocket broadcaster

Tracks WebSocket connections grouped into rooms and pushes pipeline events:
- ``dashboard`` – every dashboard subscriber
- ``project:<id>`` / ``survey:<id>`` – scoped subscribers

Only the payload contracts matter to the rest of the application; the
transport is FastAPI's WebSocket.
"""

from __future__ import annotations

import asyncio
import datetime
import logging
from enum import Enum
from typing import Any, Dict, Optional, Set

from fastapi import WebSocket

from survey_insights.analysis.models import AnalysisResult
from survey_insights.reporting.models import DashboardMetrics

logger = logging.getLogger(__name__)

DASHBOARD_ROOM = "dashboard"


class SocketEvents(str, Enum):
    METRICS_UPDATE = "metrics-update"
    ANALYSIS_COMPLETE = "analysis-complete"
    SUBSCRIBE_DASHBOARD = "subscribe-dashboard"
    SUBSCRIBE_PROJECT = "subscribe-project"
    SUBSCRIBE_SURVEY = "subscribe-survey"
    UNSUBSCRIBE = "unsubscribe"


def project_room(project_id: str) -> str:
    return f"project:{project_id}"


def survey_room(survey_id: str) -> str:
    return f"survey:{survey_id}"


class DashboardBroadcaster:
    """Manage WebSocket connections and room-scoped event delivery."""

    def __init__(self) -> None:
        self._connections: Set[WebSocket] = set()
        # Maps room name to its member sockets
        self._rooms: Dict[str, Set[WebSocket]] = {}
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket) -> None:
        """Accept *websocket* and start tracking it."""
        await websocket.accept()
        async with self._lock:
            self._connections.add(websocket)
        logger.info("WebSocket connected, total_connections=%d", self.total_connections)

    async def disconnect(self, websocket: WebSocket) -> None:
        async with self._lock:
            self._connections.discard(websocket)
            for room in list(self._rooms):
                members = self._rooms[room]
                members.discard(websocket)
                if not members:
                    del self._rooms[room]
        logger.info(
            "WebSocket disconnected, total_connections=%d", self.total_connections
        )

    async def join(self, websocket: WebSocket, room: str) -> None:
        async with self._lock:
            self._rooms.setdefault(room, set()).add(websocket)
        logger.debug("Socket joined room %s", room)

    async def leave(self, websocket: WebSocket, room: str) -> None:
        async with self._lock:
            members = self._rooms.get(room)
            if members is not None:
                members.discard(websocket)
                if not members:
                    del self._rooms[room]
        logger.debug("Socket left room %s", room)

    @property
    def total_connections(self) -> int:
        return len(self._connections)

    def room_size(self, room: str) -> int:
        return len(self._rooms.get(room, ()))

    async def send_to_room(self, room: str, event: str, data: Dict[str, Any]) -> int:
        """Send ``{"type": event, "data": ...}`` to every member of *room*.

        Returns
        -------
        int
            Number of sockets the message reached. Sockets that fail to
            receive are dropped.
        """
        async with self._lock:
            members = list(self._rooms.get(room, ()))

        message = {
            "type": event,
            "data": data,
            "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        }
        sent = 0
        dead = []
        for websocket in members:
            try:
                await websocket.send_json(message)
                sent += 1
            except Exception as exc:  # noqa: BLE001 – drop the broken socket
                logger.warning("Failed to deliver %s to room %s: %s", event, room, exc)
                dead.append(websocket)

        for websocket in dead:
            await self.disconnect(websocket)

        return sent

    # ------------------------------------------------------------------
    # Event emitters
    # ------------------------------------------------------------------

    async def emit_metrics_update(self, metrics: DashboardMetrics) -> int:
        """Push a recomputed :class:`DashboardMetrics` to the dashboard room."""
        return await self.send_to_room(
            DASHBOARD_ROOM, SocketEvents.METRICS_UPDATE.value, metrics.to_dict()
        )

    async def emit_analysis_complete(
        self,
        response_id: str,
        analysis: AnalysisResult,
        *,
        survey_id: Optional[str] = None,
        project_id: Optional[str] = None,
    ) -> int:
        payload = {
            "responseId": response_id,
            "surveyId": survey_id,
            "sentiment": analysis.sentiment.label.value,
            "priority": analysis.priority.value,
            "categories": analysis.category_names,
        }
        event = SocketEvents.ANALYSIS_COMPLETE.value
        sent = await self.send_to_room(DASHBOARD_ROOM, event, payload)
        if project_id:
            sent += await self.send_to_room(project_room(project_id), event, payload)
        if survey_id:
            sent += await self.send_to_room(survey_room(survey_id), event, payload)
        return sent
