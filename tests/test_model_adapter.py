"""Tests for the ModelAdapter: load, predict, and copy-on-swap reload.

Covers:
- ModelLoadError for missing, non-file, and corrupt artifacts
- InferenceError for empty input, backend faults, malformed output
- Reload publishes a new handle only after it loads
- Failed reload keeps the previous handle working
- A predict already running on the old handle finishes against it
"""

import sys
import os
import threading

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from policy_loop.errors import InferenceError, ModelLoadError
from policy_loop.model.adapter import ModelAdapter
from tests.helpers.fakes import FakeBackend, write_model


class TestLoad:

    def test_load_does_not_publish(self, tmp_path):
        adapter = ModelAdapter(FakeBackend())
        handle = adapter.load(write_model(tmp_path, "m.json", "1"))
        assert adapter.current is None
        assert handle.version == 1
        assert handle.path.name == "m.json"

    def test_missing_artifact(self, tmp_path):
        adapter = ModelAdapter(FakeBackend())
        with pytest.raises(ModelLoadError, match="not found"):
            adapter.load(tmp_path / "nope.pt")

    def test_directory_is_not_an_artifact(self, tmp_path):
        adapter = ModelAdapter(FakeBackend())
        with pytest.raises(ModelLoadError, match="not a file"):
            adapter.load(tmp_path)

    def test_corrupt_artifact(self, tmp_path):
        adapter = ModelAdapter(FakeBackend())
        with pytest.raises(ModelLoadError, match="rejected"):
            adapter.load(write_model(tmp_path, "bad.json", "{corrupt"))

    def test_versions_increase(self, tmp_path):
        adapter = ModelAdapter(FakeBackend())
        path = write_model(tmp_path, "m.json", "1")
        assert [adapter.load(path).version for _ in range(3)] == [1, 2, 3]


class TestPredict:

    def _adapter(self, tmp_path, content: str):
        adapter = ModelAdapter(FakeBackend())
        adapter.reload(write_model(tmp_path, "m.json", content))
        return adapter

    def test_returns_first_output(self, tmp_path):
        adapter = self._adapter(tmp_path, "[4, 2]")
        assert adapter.predict(adapter.current, b"health=1") == 4

    def test_empty_input(self, tmp_path):
        adapter = self._adapter(tmp_path, "0")
        with pytest.raises(InferenceError, match="Empty"):
            adapter.predict(adapter.current, b"")

    def test_no_handle(self):
        adapter = ModelAdapter(FakeBackend())
        with pytest.raises(InferenceError, match="No model"):
            adapter.predict(None, b"x")

    def test_backend_fault_wrapped(self, tmp_path):
        adapter = self._adapter(tmp_path, '"raise"')
        with pytest.raises(InferenceError, match="backend fault"):
            adapter.predict(adapter.current, b"x")

    def test_empty_output(self, tmp_path):
        adapter = self._adapter(tmp_path, "[]")
        with pytest.raises(InferenceError, match="empty result"):
            adapter.predict(adapter.current, b"x")

    def test_non_integer_output(self, tmp_path):
        adapter = self._adapter(tmp_path, '["x"]')
        with pytest.raises(InferenceError, match="non-integer"):
            adapter.predict(adapter.current, b"x")


class TestReload:

    def test_reload_swaps_handle(self, tmp_path):
        adapter = ModelAdapter(FakeBackend())
        first = adapter.reload(write_model(tmp_path, "v1.json", "0"))
        second = adapter.reload(write_model(tmp_path, "v2.json", "2"))
        assert adapter.current is second
        assert second.version > first.version
        assert adapter.predict(adapter.current, b"x") == 2
        # The old handle is untouched and still usable
        assert adapter.predict(first, b"x") == 0

    def test_failed_reload_keeps_previous(self, tmp_path):
        adapter = ModelAdapter(FakeBackend())
        good = adapter.reload(write_model(tmp_path, "v1.json", "3"))

        with pytest.raises(ModelLoadError):
            adapter.reload(tmp_path / "missing.pt")
        with pytest.raises(ModelLoadError):
            adapter.reload(write_model(tmp_path, "bad.json", "not json"))

        assert adapter.current is good
        assert adapter.predict(adapter.current, b"x") == 3

    def test_in_flight_predict_uses_captured_handle(self, tmp_path):
        gate = threading.Event()
        backend = FakeBackend(gate=gate)
        adapter = ModelAdapter(backend)
        old = adapter.reload(write_model(tmp_path, "v1.json", "0"))

        result: list[int] = []
        worker = threading.Thread(target=lambda: result.append(adapter.predict(old, b"x")))
        worker.start()
        assert backend.entered.wait(5.0)

        new = adapter.reload(write_model(tmp_path, "v2.json", "5"))
        assert adapter.current is new

        gate.set()
        worker.join(5.0)
        assert result == [0]
        assert adapter.predict(adapter.current, b"x") == 5

    def test_close_releases_current(self, tmp_path):
        adapter = ModelAdapter(FakeBackend())
        handle = adapter.reload(write_model(tmp_path, "v1.json", "0"))
        adapter.close()
        assert adapter.current is None
        assert handle.module.released

    def test_latest_reload_request_wins(self, tmp_path):
        backend = FakeBackend()
        adapter = ModelAdapter(backend)
        adapter.reload(write_model(tmp_path, "v1.json", "0"))
        slow = write_model(tmp_path, "slow.json", "1")
        fast = write_model(tmp_path, "fast.json", "2")
        release = threading.Event()
        backend.load_gates["slow.json"] = release

        results: list = []
        worker = threading.Thread(target=lambda: results.append(adapter.reload(slow)))
        worker.start()
        assert backend.loading.wait(5.0)

        published = adapter.reload(fast)
        release.set()
        worker.join(5.0)

        assert adapter.current is published
        assert adapter.current.path == fast
        assert results == [published]
        assert adapter.predict(adapter.current, b"x") == 2
