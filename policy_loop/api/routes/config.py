"""GET /api/v1/config: expose agent configuration."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from policy_loop.api.agent_manager import AgentManager
from policy_loop.api.dependencies import get_agent_manager
from policy_loop.api.schemas import ActionEntrySchema, AgentConfigResponse

router = APIRouter()


@router.get("/config", response_model=AgentConfigResponse)
def get_config(manager: AgentManager = Depends(get_agent_manager)) -> AgentConfigResponse:
    cfg = manager.config
    catalog = manager.dispatcher.catalog if manager.dispatcher else cfg.build_catalog()
    return AgentConfigResponse(
        model_path=cfg.model_path,
        model_device=cfg.model_device,
        num_workers=cfg.num_workers,
        max_pending=cfg.max_pending,
        poll_interval=cfg.poll_interval,
        decision_log_size=cfg.decision_log_size,
        actions=[ActionEntrySchema(id=i, name=n) for i, n in sorted(catalog.entries.items())],
    )
