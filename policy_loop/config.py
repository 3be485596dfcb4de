"""Agent configuration with sensible defaults.

A JSON file mirrors the plugin's ``rl`` block::

    {"rl": {"model": {"path": "models/policy.pt"},
            "actions": [{"id": 0, "name": "attack"}, ...]}}
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError

from policy_loop.core.catalog import DEFAULT_ACTIONS, ActionCatalog
from policy_loop.errors import ConfigError


@dataclass(frozen=True)
class AgentConfig:
    """Immutable configuration for one agent run."""

    # Model
    model_path: str = "models/policy.pt"
    model_device: str = "cpu"

    # Actions (id, name) in configuration order
    actions: tuple[tuple[int, str], ...] = field(default=DEFAULT_ACTIONS)

    # Workers
    num_workers: int = 4
    max_pending: int = 64          # waiting tasks before drop-oldest kicks in

    # Mutation loop
    poll_interval: float = 0.05
    shutdown_timeout: float = 5.0

    # Decision log
    decision_log_size: int = 1000

    # Logging
    log_level: str = "INFO"
    replay_file: str = "decisions.json"

    def build_catalog(self) -> ActionCatalog:
        return ActionCatalog.load(self.actions)

    def with_overrides(self, **overrides: Any) -> AgentConfig:
        """Copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


# --- file schema ---

class _ActionEntry(BaseModel):
    id: int
    name: str


class _ModelSection(BaseModel):
    path: str


class _RLSection(BaseModel):
    model: _ModelSection
    actions: list[_ActionEntry] = []


class _ConfigFile(BaseModel):
    rl: _RLSection


def load_config(path: str | Path, base: AgentConfig | None = None) -> AgentConfig:
    """Read the ``rl`` block from *path* on top of *base*.

    Raises ConfigError on unreadable files, schema violations, or a malformed
    action table.
    """
    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Cannot read config {path}: {exc}") from exc

    try:
        parsed = _ConfigFile.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config {path}: {exc}") from exc

    base = base or AgentConfig()
    actions = tuple((a.id, a.name) for a in parsed.rl.actions) or base.actions
    ActionCatalog.load(actions)  # validate now, fail fast at startup
    return replace(base, model_path=parsed.rl.model.path, actions=actions)
