"""POST /api/v1/control/{action}: operator commands."""

from __future__ import annotations

from enum import Enum

from fastapi import APIRouter, Depends, HTTPException, Query

from policy_loop.api.agent_manager import AgentManager
from policy_loop.api.dependencies import get_agent_manager
from policy_loop.api.schemas import ControlResponse
from policy_loop.engine.commands import (
    CATALOG_FAILED,
    CATALOG_OK,
    RELOAD_FAILED,
    RELOAD_OK,
    STATUS_RUNNING,
)

router = APIRouter()


class ControlAction(str, Enum):
    reload = "reload"
    status = "status"
    catalog = "catalog"


@router.post("/control/{action}", response_model=ControlResponse)
def control(
    action: ControlAction,
    path: str | None = Query(
        None,
        description="reload: model artifact path, defaults to the configured one. catalog: config file with an rl.actions table",
    ),
    manager: AgentManager = Depends(get_agent_manager),
) -> ControlResponse:
    if not manager.running:
        raise HTTPException(status_code=409, detail="Policy loop is not running.")

    match action:
        case ControlAction.reload:
            ok = manager.reload(path)
            version = manager.model.version if manager.model else None
            if ok:
                return ControlResponse(status="ok", message=RELOAD_OK, model_version=version)
            return ControlResponse(status="error", message=RELOAD_FAILED, model_version=version)

        case ControlAction.status:
            manager.announce_status()
            version = manager.model.version if manager.model else None
            return ControlResponse(status="ok", message=STATUS_RUNNING, model_version=version)

        case ControlAction.catalog:
            if not path:
                raise HTTPException(status_code=422, detail="A config file path is required.")
            version = manager.model.version if manager.model else None
            if manager.reload_catalog(path):
                return ControlResponse(status="ok", message=CATALOG_OK, model_version=version)
            return ControlResponse(status="error", message=CATALOG_FAILED, model_version=version)
