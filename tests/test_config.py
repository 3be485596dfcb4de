"""Tests for AgentConfig and load_config."""

import sys
import os
import json
from dataclasses import FrozenInstanceError

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from policy_loop.config import AgentConfig, load_config
from policy_loop.core.catalog import DEFAULT_ACTIONS
from policy_loop.errors import ConfigError

SHIPPED = os.path.join(os.path.dirname(__file__), "..", "config", "policy_loop.json")


def _write(tmp_path, payload) -> str:
    path = tmp_path / "config.json"
    path.write_text(payload if isinstance(payload, str) else json.dumps(payload), encoding="utf-8")
    return str(path)


class TestDefaults:

    def test_default_catalog(self):
        catalog = AgentConfig().build_catalog()
        assert catalog.resolve(0) == "attack"
        assert catalog.resolve(6) == "idle"

    def test_overrides_skip_none(self):
        cfg = AgentConfig().with_overrides(num_workers=8, model_path=None)
        assert cfg.num_workers == 8
        assert cfg.model_path == AgentConfig().model_path

    def test_frozen(self):
        with pytest.raises(FrozenInstanceError):
            AgentConfig().num_workers = 2


class TestLoadConfig:

    def test_shipped_config(self):
        cfg = load_config(SHIPPED)
        assert cfg.model_path == "models/policy.pt"
        assert cfg.actions == DEFAULT_ACTIONS

    def test_custom_actions(self, tmp_path):
        cfg = load_config(_write(tmp_path, {
            "rl": {"model": {"path": "m.pt"}, "actions": [{"id": 3, "name": "attack"}, {"id": 9, "name": "idle"}]},
        }))
        assert cfg.model_path == "m.pt"
        assert cfg.build_catalog().resolve(3) == "attack"
        assert cfg.build_catalog().resolve(0) == "idle"

    def test_empty_actions_keep_base(self, tmp_path):
        base = AgentConfig(actions=((0, "defend"),))
        cfg = load_config(_write(tmp_path, {"rl": {"model": {"path": "m.pt"}}}), base)
        assert cfg.actions == ((0, "defend"),)

    def test_base_fields_survive(self, tmp_path):
        base = AgentConfig(num_workers=7)
        cfg = load_config(_write(tmp_path, {"rl": {"model": {"path": "m.pt"}}}), base)
        assert cfg.num_workers == 7

    @pytest.mark.parametrize("payload", [
        "{broken",
        {"model": {"path": "m.pt"}},
        {"rl": {"actions": []}},
        {"rl": {"model": {"path": "m.pt"}, "actions": [{"id": "x", "name": "attack"}]}},
        {"rl": {"model": {"path": "m.pt"}, "actions": [{"id": 1, "name": "a"}, {"id": 1, "name": "b"}]}},
        {"rl": {"model": {"path": "m.pt"}, "actions": [{"id": 1, "name": "  "}]}},
    ])
    def test_invalid(self, tmp_path, payload):
        with pytest.raises(ConfigError):
            load_config(_write(tmp_path, payload))

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(tmp_path / "absent.json")
