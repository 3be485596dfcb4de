"""GET /api/v1/status and /api/v1/decisions: live agent state."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from policy_loop.api.agent_manager import AgentManager
from policy_loop.api.dependencies import get_agent_manager
from policy_loop.api.schemas import DecisionSchema, DecisionsResponse, StatusResponse

router = APIRouter()


@router.get("/status", response_model=StatusResponse)
def get_status(manager: AgentManager = Depends(get_agent_manager)) -> StatusResponse:
    stats = manager.stats()
    model = manager.model
    return StatusResponse(
        running=manager.running,
        model_path=str(model.path) if model else None,
        model_version=model.version if model else None,
        uptime_seconds=round(manager.uptime, 3),
        dispatched=stats.dispatched,
        dropped=stats.dropped,
        completed=stats.completed,
        cancelled=stats.cancelled,
        inference_failures=stats.inference_failures,
        in_flight=stats.in_flight,
        waiting=stats.waiting,
        decisions_logged=manager.decision_log.total,
    )


@router.get("/decisions", response_model=DecisionsResponse)
def get_decisions(
    limit: int = Query(50, ge=1, le=1000),
    manager: AgentManager = Depends(get_agent_manager),
) -> DecisionsResponse:
    log = manager.decision_log
    return DecisionsResponse(
        total=log.total,
        decisions=[
            DecisionSchema(
                task_id=e.task_id,
                channel=e.channel,
                action_id=e.action_id,
                action=e.action,
                digest=e.digest,
                mutation=e.mutation,
                model_version=e.model_version,
                tick=e.tick,
            )
            for e in log.latest(limit)
        ],
    )
