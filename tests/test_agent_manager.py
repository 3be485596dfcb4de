"""Tests for AgentManager lifecycle: startup, pumped and threaded operation, shutdown."""

import sys
import os
import threading
import json
import time

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from policy_loop.api.agent_manager import STARTUP_FAILED, AgentManager
from policy_loop.config import AgentConfig
from policy_loop.core.models import Position
from policy_loop.engine.commands import (
    CATALOG_FAILED,
    CATALOG_OK,
    RELOAD_OK,
    STATUS_COMMAND,
    STATUS_RUNNING,
)
from policy_loop.errors import ConfigError, ModelLoadError
from tests.helpers.fakes import FakeBackend, make_world, write_model


def _make_manager(tmp_path, content="0", **overrides):
    model = write_model(tmp_path, "policy.json", content)
    config = AgentConfig(model_path=str(model), num_workers=2, poll_interval=0.01, shutdown_timeout=2.0)
    config = config.with_overrides(**overrides)
    world = make_world()
    return AgentManager(config, world, backend=FakeBackend()), world


class TestStartup:

    def test_missing_model_aborts_and_notifies(self, tmp_path):
        manager, world = _make_manager(tmp_path, model_path=str(tmp_path / "missing.pt"))
        manager.bind_mutation_thread()
        with pytest.raises(ModelLoadError):
            manager.start(threaded=False)
        manager.pump()

        assert not manager.running
        assert world.messages == [STARTUP_FAILED]
        assert world.listener_count() == 0
        manager.stop()

    def test_bad_catalog_aborts(self, tmp_path):
        manager, world = _make_manager(tmp_path, actions=((0, "attack"), (0, "defend")))
        manager.bind_mutation_thread()
        with pytest.raises(ConfigError):
            manager.start(threaded=False)
        manager.pump()
        assert world.messages == [STARTUP_FAILED]
        assert manager.model is None
        manager.stop()

    def test_threaded_failure_releases_mutation_thread(self, tmp_path):
        manager, world = _make_manager(tmp_path, model_path=str(tmp_path / "missing.pt"))
        with pytest.raises(ModelLoadError):
            manager.start(threaded=True)

        assert not manager.running
        assert not manager.mutation_loop.running
        assert not manager.mutation_loop.context.bound
        assert world.messages == [STARTUP_FAILED]
        assert {m.thread for m in world.mutations} == {"world-mutator"}

    def test_start_subscribes_and_registers(self, tmp_path):
        manager, world = _make_manager(tmp_path)
        manager.bind_mutation_thread()
        manager.start(threaded=False)
        try:
            assert manager.running
            assert world.listener_count() == 5
            assert manager.model.version == 1
            assert world.run_command(STATUS_COMMAND)
            manager.pump()
            assert world.messages == [STATUS_RUNNING]
        finally:
            manager.stop()
        assert world.listener_count() == 0
        assert not manager.running


class TestPumped:

    def test_decisions_logged(self, tmp_path):
        manager, world = _make_manager(tmp_path, "2")
        manager.bind_mutation_thread()
        manager.start(threaded=False)
        try:
            world.tick()
            world.tick()
            manager.pump(wait_timeout=2.0)
        finally:
            manager.stop()

        events = manager.decision_log.all()
        assert len(events) == 2
        assert {e.action for e in events} == {"move_north"}
        assert {e.mutation for e in events} == {"move"}
        assert {e.model_version for e in events} == {1}
        assert sorted(e.tick for e in events) == [1, 2]
        assert all(len(e.digest) == 16 for e in events)

    def test_reload_defaults_to_configured_path(self, tmp_path):
        manager, world = _make_manager(tmp_path)
        manager.bind_mutation_thread()
        manager.start(threaded=False)
        try:
            assert manager.reload()
            manager.pump()
            assert manager.model.version == 2
            assert world.messages == [RELOAD_OK]
        finally:
            manager.stop()


class TestThreaded:

    def test_applies_on_mutation_thread(self, tmp_path):
        manager, world = _make_manager(tmp_path, "4")
        manager.start(threaded=True)
        try:
            world.tick()
            deadline = time.monotonic() + 5.0
            while manager.decision_log.total < 1 and time.monotonic() < deadline:
                time.sleep(0.01)
        finally:
            manager.stop()

        assert manager.decision_log.total == 1
        assert world.actor.position == Position(11, 20, 0)
        assert {m.thread for m in world.mutations} == {"world-mutator"}

    def test_stop_without_start(self, tmp_path):
        manager, world = _make_manager(tmp_path)
        manager.stop()
        assert not manager.running

    def test_events_from_many_threads(self, tmp_path):
        manager, world = _make_manager(tmp_path, "6")
        manager.start(threaded=True)
        try:
            threads = [threading.Thread(target=world.change_inventory) for _ in range(4)]
            for t in threads:
                t.start()
            for t in threads:
                t.join()
            deadline = time.monotonic() + 5.0
            while manager.decision_log.total < 4 and time.monotonic() < deadline:
                time.sleep(0.01)
        finally:
            manager.stop()
        assert manager.decision_log.total == 4
        assert world.world_mutations() == []


class TestCatalogReload:

    def _write_config(self, tmp_path, actions):
        path = tmp_path / "actions.json"
        path.write_text(json.dumps({"rl": {"model": {"path": "unused.pt"}, "actions": actions}}), encoding="utf-8")
        return str(path)

    def test_replaces_catalog(self, tmp_path):
        manager, world = _make_manager(tmp_path, "0")
        manager.bind_mutation_thread()
        manager.start(threaded=False)
        try:
            path = self._write_config(tmp_path, [{"id": 0, "name": "move_east"}])
            assert manager.reload_catalog(path)
            world.tick()
            manager.pump(wait_timeout=2.0)
        finally:
            manager.stop()

        assert world.messages[0] == CATALOG_OK
        assert manager.decision_log.all()[0].action == "move_east"
        assert manager.config.actions == ((0, "move_east"),)
        # Only the action table is taken from the file.
        assert manager.config.model_path.endswith("policy.json")

    def test_rejected_file_keeps_catalog(self, tmp_path):
        manager, world = _make_manager(tmp_path, "0")
        manager.bind_mutation_thread()
        manager.start(threaded=False)
        try:
            before = manager.dispatcher.catalog
            path = self._write_config(tmp_path, [{"id": 0, "name": "a"}, {"id": 0, "name": "b"}])
            assert not manager.reload_catalog(path)
            assert not manager.reload_catalog(str(tmp_path / "absent.json"))
            assert manager.dispatcher.catalog is before

            world.tick()
            manager.pump(wait_timeout=2.0)
        finally:
            manager.stop()

        assert world.messages[:2] == [CATALOG_FAILED, CATALOG_FAILED]
        assert manager.decision_log.all()[0].action == "attack"
