"""FastAPI dependency injection: provides the AgentManager singleton."""

from __future__ import annotations

from policy_loop.api.agent_manager import AgentManager

_agent_manager: AgentManager | None = None


def set_agent_manager(manager: AgentManager | None) -> None:
    global _agent_manager
    _agent_manager = manager


def get_agent_manager() -> AgentManager:
    if _agent_manager is None:
        raise RuntimeError("AgentManager not initialized: server not started correctly.")
    return _agent_manager
