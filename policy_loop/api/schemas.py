"""Pydantic response models for the operator API."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ControlResponse(BaseModel):
    status: str
    message: str
    model_version: int | None = None


class StatusResponse(BaseModel):
    running: bool
    model_path: str | None = None
    model_version: int | None = None
    uptime_seconds: float = 0.0
    dispatched: int = 0
    dropped: int = 0
    completed: int = 0
    cancelled: int = 0
    inference_failures: int = 0
    in_flight: int = 0
    waiting: int = 0
    decisions_logged: int = 0


class DecisionSchema(BaseModel):
    task_id: int
    channel: str
    action_id: int
    action: str
    digest: str
    mutation: str | None = None
    model_version: int | None = None
    tick: int = 0


class DecisionsResponse(BaseModel):
    total: int
    decisions: list[DecisionSchema] = Field(default_factory=list)


class ActionEntrySchema(BaseModel):
    id: int
    name: str


class AgentConfigResponse(BaseModel):
    model_path: str
    model_device: str
    num_workers: int
    max_pending: int
    poll_interval: float
    decision_log_size: int
    actions: list[ActionEntrySchema]
