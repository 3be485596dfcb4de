"""Tests for the operator API (status, control, decisions, config)."""

import sys
import os
import json
import time

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from fastapi.testclient import TestClient

from policy_loop.api.app import create_app
from policy_loop.config import AgentConfig
from policy_loop.engine.commands import CATALOG_FAILED, CATALOG_OK, RELOAD_FAILED, RELOAD_OK, STATUS_RUNNING
from tests.helpers.fakes import FakeBackend, make_world, write_model


@pytest.fixture
def env(tmp_path):
    model = write_model(tmp_path, "policy.json", "1")
    config = AgentConfig(model_path=str(model), num_workers=2, poll_interval=0.01, shutdown_timeout=2.0)
    world = make_world()
    app = create_app(config, host=world, backend=FakeBackend())
    with TestClient(app) as client:
        yield client, world, tmp_path


def _wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while not predicate() and time.monotonic() < deadline:
        time.sleep(0.01)
    return predicate()


class TestStatus:

    def test_running(self, env):
        client, _, _ = env
        body = client.get("/api/v1/status").json()
        assert body["running"] is True
        assert body["model_version"] == 1
        assert body["dispatched"] == 0

    def test_counts_dispatches(self, env):
        client, world, _ = env
        world.tick()
        world.tick()
        assert _wait_for(lambda: client.get("/api/v1/status").json()["completed"] == 2)
        assert client.get("/api/v1/status").json()["dispatched"] == 2


class TestControl:

    def test_reload_from_path(self, env):
        client, world, tmp_path = env
        path = write_model(tmp_path, "v2.json", "0")
        body = client.post("/api/v1/control/reload", params={"path": str(path)}).json()
        assert body == {"status": "ok", "message": RELOAD_OK, "model_version": 2}
        assert _wait_for(lambda: RELOAD_OK in world.messages)

    def test_reload_configured_path(self, env):
        client, _, _ = env
        body = client.post("/api/v1/control/reload").json()
        assert body["status"] == "ok"
        assert body["model_version"] == 2

    def test_reload_failure_keeps_model(self, env):
        client, world, tmp_path = env
        body = client.post("/api/v1/control/reload", params={"path": str(tmp_path / "gone.pt")}).json()
        assert body["status"] == "error"
        assert body["message"] == RELOAD_FAILED
        assert body["model_version"] == 1
        assert _wait_for(lambda: RELOAD_FAILED in world.messages)

    def test_status_command(self, env):
        client, world, _ = env
        body = client.post("/api/v1/control/status").json()
        assert body["message"] == STATUS_RUNNING
        assert _wait_for(lambda: STATUS_RUNNING in world.messages)

    def test_catalog_reload(self, env):
        client, world, tmp_path = env
        path = tmp_path / "actions.json"
        path.write_text(json.dumps({"rl": {"model": {"path": "x.pt"}, "actions": [{"id": 1, "name": "move_north"}]}}))
        body = client.post("/api/v1/control/catalog", params={"path": str(path)}).json()
        assert body["status"] == "ok"
        assert body["message"] == CATALOG_OK
        actions = client.get("/api/v1/config").json()["actions"]
        assert actions == [{"id": 1, "name": "move_north"}]
        assert _wait_for(lambda: CATALOG_OK in world.messages)

    def test_catalog_reload_rejected(self, env):
        client, world, tmp_path = env
        path = tmp_path / "actions.json"
        path.write_text("{not json")
        body = client.post("/api/v1/control/catalog", params={"path": str(path)}).json()
        assert body["status"] == "error"
        assert body["message"] == CATALOG_FAILED
        assert len(client.get("/api/v1/config").json()["actions"]) == 7

    def test_catalog_reload_needs_path(self, env):
        client, _, _ = env
        assert client.post("/api/v1/control/catalog").status_code == 422

    def test_unknown_action(self, env):
        client, _, _ = env
        assert client.post("/api/v1/control/explode").status_code == 422


class TestDecisions:

    def test_latest_decisions(self, env):
        client, world, _ = env
        for _ in range(3):
            world.tick()
        assert _wait_for(lambda: client.get("/api/v1/decisions").json()["total"] == 3)

        body = client.get("/api/v1/decisions", params={"limit": 2}).json()
        assert len(body["decisions"]) == 2
        assert body["decisions"][0]["action"] == "defend"
        assert body["decisions"][0]["channel"] == "GAME_TICK"
        assert body["decisions"][0]["mutation"] == "interact"

    def test_limit_validated(self, env):
        client, _, _ = env
        assert client.get("/api/v1/decisions", params={"limit": 0}).status_code == 422


class TestConfig:

    def test_config(self, env):
        client, _, _ = env
        body = client.get("/api/v1/config").json()
        assert body["num_workers"] == 2
        assert [a["name"] for a in body["actions"]][:2] == ["attack", "defend"]
        assert len(body["actions"]) == 7
