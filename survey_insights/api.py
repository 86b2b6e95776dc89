"""
HTTP and WebSocket surface for the analysis pipeline.

Endpoints:
- GET  /api/metrics             – dashboard metrics for a scope
- GET  /api/metrics/digest      – markdown digest of the same metrics
- POST /api/ai/analyze          – analyze a single feedback text
- POST /api/ai/generate-survey  – AI-assisted survey draft
- GET  /api/socket              – WebSocket server status
- WS   /api/ws                  – dashboard push channel
"""

from __future__ import annotations

import json
import logging
import secrets
from typing import Optional

from fastapi import (
    Depends,
    FastAPI,
    Header,
    HTTPException,
    Query,
    Request,
    WebSocket,
    WebSocketDisconnect,
)
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, Field

from survey_insights import config
from survey_insights.analysis.analyzer import ResponseAnalyzer
from survey_insights.analysis.survey_generator import SurveyType, generate_survey
from survey_insights.exceptions import DataSourceError
from survey_insights.realtime import (
    DASHBOARD_ROOM,
    DashboardBroadcaster,
    SocketEvents,
    project_room,
    survey_room,
)
from survey_insights.reporting.aggregator import MetricsAggregator
from survey_insights.reporting.models import DashboardMetrics
from survey_insights.reporting.render import render_digest
from survey_insights.store import InMemoryResponseStore, MetricsScope, ResponseStore

logger = logging.getLogger(__name__)


class AnalyzeRequest(BaseModel):
    response_id: Optional[str] = Field(default=None, alias="responseId")
    text: Optional[str] = None
    survey_id: Optional[str] = Field(default=None, alias="surveyId")
    project_id: Optional[str] = Field(default=None, alias="projectId")


class GenerateSurveyRequest(BaseModel):
    prompt: str = Field(min_length=1)
    type: SurveyType = "client-project"
    client_name: Optional[str] = Field(default=None, alias="clientName")


def _token_matches(expected: str, supplied: Optional[str]) -> bool:
    if not expected or not supplied:
        return False
    return secrets.compare_digest(expected, supplied)


def require_session(
    request: Request, authorization: Optional[str] = Header(default=None)
) -> None:
    """Reject callers without a valid ``Authorization: Bearer`` token."""
    token = None
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()
    if not _token_matches(request.app.state.api_token, token):
        raise HTTPException(status_code=401, detail="Unauthorized")


def _scope(
    project_id: Optional[str] = Query(default=None, alias="projectId"),
    client_id: Optional[str] = Query(default=None, alias="clientId"),
    organization_id: Optional[str] = Query(default=None, alias="organizationId"),
) -> MetricsScope:
    return MetricsScope(
        project_id=project_id, client_id=client_id, organization_id=organization_id
    )


def create_app(
    store: Optional[ResponseStore] = None,
    analyzer: Optional[ResponseAnalyzer] = None,
    *,
    broadcaster: Optional[DashboardBroadcaster] = None,
    api_token: Optional[str] = None,
) -> FastAPI:
    """Build the FastAPI application around explicit collaborators."""

    if store is None:
        store = (
            InMemoryResponseStore.load_json(config.DATA_FILE)
            if config.DATA_FILE
            else InMemoryResponseStore()
        )
    analyzer = analyzer or ResponseAnalyzer()

    app = FastAPI(title="Survey Insights", version="0.1.0")
    app.state.api_token = config.API_TOKEN if api_token is None else api_token
    app.state.aggregator = MetricsAggregator(store, analyzer)
    app.state.analyzer = analyzer
    app.state.broadcaster = broadcaster or DashboardBroadcaster()

    async def _compute(request: Request, scope: MetricsScope) -> DashboardMetrics:
        aggregator: MetricsAggregator = request.app.state.aggregator
        try:
            return await run_in_threadpool(aggregator.compute_metrics, scope)
        except DataSourceError as exc:
            logger.error("Error calculating metrics: %s", exc)
            raise HTTPException(status_code=500, detail="Internal server error") from exc

    @app.get("/api/metrics", dependencies=[Depends(require_session)])
    async def get_metrics(request: Request, scope: MetricsScope = Depends(_scope)):
        metrics = await _compute(request, scope)
        await request.app.state.broadcaster.emit_metrics_update(metrics)
        return metrics.to_dict()

    @app.get("/api/metrics/digest", dependencies=[Depends(require_session)])
    async def get_digest(request: Request, scope: MetricsScope = Depends(_scope)):
        metrics = await _compute(request, scope)
        digest = await run_in_threadpool(render_digest, metrics, scope)
        return {"digest": digest}

    @app.post("/api/ai/analyze", dependencies=[Depends(require_session)])
    async def analyze_response(request: Request, body: AnalyzeRequest):
        if not body.response_id or not body.text:
            raise HTTPException(
                status_code=400, detail="Response ID and text are required"
            )
        analysis = await run_in_threadpool(request.app.state.analyzer.analyze, body.text)
        await request.app.state.broadcaster.emit_analysis_complete(
            body.response_id,
            analysis,
            survey_id=body.survey_id,
            project_id=body.project_id,
        )
        return {"responseId": body.response_id, **analysis.to_dict()}

    @app.post("/api/ai/generate-survey", dependencies=[Depends(require_session)])
    async def create_survey_draft(body: GenerateSurveyRequest):
        draft = await run_in_threadpool(
            generate_survey, body.prompt, body.type, client_name=body.client_name
        )
        return draft.to_dict()

    @app.get("/api/socket")
    async def socket_status(request: Request):
        manager: DashboardBroadcaster = request.app.state.broadcaster
        return {
            "success": True,
            "websocket": "connected" if manager.total_connections else "not_connected",
            "clientsCount": manager.total_connections,
            "dashboardSubscribers": manager.room_size(DASHBOARD_ROOM),
        }

    @app.websocket("/api/ws")
    async def websocket_endpoint(
        websocket: WebSocket, token: Optional[str] = Query(default=None)
    ):
        """
        Dashboard push channel.

        Client -> Server:
            {"type": "subscribe-dashboard"}
            {"type": "subscribe-project", "projectId": "..."}
            {"type": "subscribe-survey", "surveyId": "..."}
            {"type": "unsubscribe", "room": "..."}
            {"type": "ping"}

        Server -> Client:
            {"type": "subscribed" | "unsubscribed", "room": "..."}
            {"type": "pong"}
            {"type": "metrics-update" | "analysis-complete", "data": {...}, "timestamp": "..."}
            {"type": "error", "message": "..."}
        """
        if not _token_matches(websocket.app.state.api_token, token):
            logger.warning("WebSocket connection rejected: invalid token")
            await websocket.close(code=4001, reason="Unauthorized")
            return

        manager: DashboardBroadcaster = websocket.app.state.broadcaster
        await manager.connect(websocket)
        try:
            while True:
                try:
                    data = await websocket.receive_json()
                except (json.JSONDecodeError, KeyError):
                    # KeyError: binary frame with no text payload
                    await websocket.send_json(
                        {"type": "error", "message": "Invalid JSON format"}
                    )
                    continue

                message_type = data.get("type") if isinstance(data, dict) else None
                room = None
                if message_type == SocketEvents.SUBSCRIBE_DASHBOARD.value:
                    room = DASHBOARD_ROOM
                elif message_type == SocketEvents.SUBSCRIBE_PROJECT.value and data.get(
                    "projectId"
                ):
                    room = project_room(str(data["projectId"]))
                elif message_type == SocketEvents.SUBSCRIBE_SURVEY.value and data.get(
                    "surveyId"
                ):
                    room = survey_room(str(data["surveyId"]))

                if room is not None:
                    await manager.join(websocket, room)
                    await websocket.send_json({"type": "subscribed", "room": room})
                elif message_type == SocketEvents.UNSUBSCRIBE.value and data.get("room"):
                    await manager.leave(websocket, str(data["room"]))
                    await websocket.send_json(
                        {"type": "unsubscribed", "room": data["room"]}
                    )
                elif message_type == "ping":
                    await websocket.send_json({"type": "pong"})
                else:
                    await websocket.send_json(
                        {"type": "error", "message": f"Unknown message: {message_type}"}
                    )
        except WebSocketDisconnect:
            pass
        finally:
            await manager.disconnect(websocket)

    return app
