"""
API route definitions — liveness webhook, mute link, target inspection.

- POST /webhook/{target_id}: target reports liveness (access token).
- GET|POST /mute/{target_id}/{token}: mute alerts until the next report (mute token).
- GET /targets, GET /targets/{target_id}: configuration plus derived state (access token).
- GET /health: liveness probe.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from backend_sifa.api_server.middleware import require_access_token
from backend_sifa.context import AppContext
from backend_sifa.database.models import Target, TargetState
from backend_sifa.sifa_logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


def get_context(request: Request) -> AppContext:
    """Dependency: the application context built at startup."""
    context = getattr(request.app.state, "context", None)
    if context is None:
        raise HTTPException(status_code=503, detail="Service not ready")
    return context


# -----------------------------------------------------------------------------
# Response models
# -----------------------------------------------------------------------------


class LivenessResponse(BaseModel):
    """POST /webhook/{target_id} response."""

    id: str = Field(..., description="Target id")
    last_acted: datetime = Field(..., description="Recorded liveness time (UTC)")


class MuteResponse(BaseModel):
    """Mute link response."""

    id: str = Field(..., description="Target id")
    muted: bool = Field(..., description="Alerts suppressed until the target reports again")


class TargetStatusResponse(BaseModel):
    """GET /targets/{target_id} response: configuration plus derived state."""

    id: str
    max_age: int = Field(..., description="Maximum allowed silence (seconds)")
    alert_schedule: str = Field(..., description="Cron expression for repeat alerts")
    last_acted: datetime | None = Field(None, description="Last liveness report; null if never reported")
    last_alerted: datetime | None = Field(None, description="Time of the outstanding alert, if any")
    muted: bool = False
    alerting: bool = Field(False, description="An alert is currently outstanding")
    overdue: bool = Field(False, description="Silent for longer than max_age")


def _status(target: Target, state: TargetState, now: datetime) -> TargetStatusResponse:
    overdue = state.last_acted is not None and (now - state.last_acted) > timedelta(seconds=target.max_age)
    return TargetStatusResponse(
        id=target.id,
        max_age=target.max_age,
        alert_schedule=target.alert_schedule,
        last_acted=state.last_acted,
        last_alerted=state.last_alerted,
        muted=state.muted,
        alerting=state.alerting,
        overdue=overdue,
    )


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------


@router.post(
    "/webhook/{target_id}",
    response_model=LivenessResponse,
    dependencies=[Depends(require_access_token)],
)
def report_liveness(target_id: str, context: AppContext = Depends(get_context)) -> LivenessResponse:
    """
    Record that the target is alive: last acted = now; outstanding alert and
    mute are cleared. 404 for unknown targets.
    """
    target = context.get_target(target_id)
    state = context.db.record_liveness(target.id, context.now())
    logger.info("target_liveness_reported", target_id=target.id)
    return LivenessResponse(id=target.id, last_acted=state.last_acted)


@router.api_route("/mute/{target_id}/{token}", methods=["GET", "POST"], response_model=MuteResponse)
def mute_target(target_id: str, token: str, context: AppContext = Depends(get_context)) -> MuteResponse:
    """
    Mute alerts for a target from the link in an alert. 403 on a bad token,
    404 for unknown targets. The mute lasts until the target reports again.
    """
    if not context.signer.verify(target_id, token):
        logger.warning("mute_token_rejected", target_id=target_id)
        raise HTTPException(status_code=403, detail="Invalid mute token")
    target = context.get_target(target_id)
    context.db.set_muted(target.id, True)
    logger.info("target_muted", target_id=target.id)
    return MuteResponse(id=target.id, muted=True)


@router.get(
    "/targets",
    response_model=list[TargetStatusResponse],
    dependencies=[Depends(require_access_token)],
)
def list_targets(context: AppContext = Depends(get_context)) -> list[TargetStatusResponse]:
    """All configured targets with their current state, ordered by id."""
    states = {s.target_id: s for s in context.db.list_states()}
    now = context.now()
    return [
        _status(target, states.get(target.id) or TargetState(target_id=target.id), now)
        for target in sorted(context.targets.values(), key=lambda t: t.id)
    ]


@router.get(
    "/targets/{target_id}",
    response_model=TargetStatusResponse,
    dependencies=[Depends(require_access_token)],
)
def get_target_status(target_id: str, context: AppContext = Depends(get_context)) -> TargetStatusResponse:
    target = context.get_target(target_id)
    return _status(target, context.db.get_state(target.id), context.now())


@router.get("/health")
def health() -> dict[str, str]:
    """Liveness probe: API is up."""
    return {"status": "ok"}
