"""ModelAdapter: owns the model handle and its reload lifecycle.

Readers capture ``adapter.current`` once per task and keep using that handle
even if a reload publishes a new one meanwhile. Writers publish a fully
loaded handle by reference swap; a handle is never mutated after creation.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from policy_loop.errors import InferenceError, ModelLoadError
from policy_loop.model.backends import ModelBackend, TorchScriptBackend

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ModelHandle:
    """A loaded model artifact. Replaced on reload, never mutated."""

    path: Path
    module: Any = field(repr=False, compare=False)
    version: int = 0
    loaded_at: float = field(default_factory=time.time, compare=False)


class ModelAdapter:
    """Uniform ``predict(handle, bytes) -> int`` over an opaque backend."""

    __slots__ = ("_backend", "_handle", "_swap_lock", "_version", "_requests", "_published")

    def __init__(self, backend: ModelBackend | None = None) -> None:
        self._backend = backend or TorchScriptBackend()
        self._handle: ModelHandle | None = None
        self._swap_lock = threading.Lock()
        self._version = 0
        # Reload tickets: the latest request wins regardless of load duration.
        self._requests = 0
        self._published = 0

    @property
    def current(self) -> ModelHandle | None:
        """The handle future tasks will predict against."""
        return self._handle

    @property
    def backend(self) -> ModelBackend:
        return self._backend

    def load(self, path: str | Path) -> ModelHandle:
        """Load *path* into a new handle without publishing it."""
        path = Path(path)
        if not path.exists():
            raise ModelLoadError(f"Model artifact not found: {path}")
        if not path.is_file():
            raise ModelLoadError(f"Model artifact is not a file: {path}")
        try:
            module = self._backend.load(path)
        except Exception as exc:
            raise ModelLoadError(f"Backend {self._backend.name!r} rejected {path}: {exc}") from exc

        with self._swap_lock:
            self._version += 1
            version = self._version
        logger.info("Model loaded from %s (version %d)", path, version)
        return ModelHandle(path=path, module=module, version=version)

    def reload(self, path: str | Path) -> ModelHandle:
        """Load *path* and make it current. On failure the old handle stays.

        In-flight predictions keep the handle they already captured. When
        reloads overlap, the one requested last is published; an older
        request that finishes loading later is discarded and the current
        handle is returned instead.
        """
        with self._swap_lock:
            self._requests += 1
            ticket = self._requests
        try:
            handle = self.load(path)
        except ModelLoadError:
            logger.exception("Failed to reload model from %s; keeping previous handle", path)
            raise
        with self._swap_lock:
            superseded = ticket < self._published
            if not superseded:
                previous, self._handle = self._handle, handle
                self._published = ticket
            current = self._handle
        if superseded:
            self._backend.release(handle.module)
            logger.info("Discarding model v%d from %s: a newer reload was published",
                        handle.version, handle.path)
            return current
        logger.info(
            "Model reloaded from %s (version %s -> %d)",
            handle.path, previous.version if previous else "none", handle.version,
        )
        return handle

    def predict(self, handle: ModelHandle | None, data: bytes) -> int:
        """Run *handle* on *data* and return the raw action id."""
        if handle is None:
            raise InferenceError("No model loaded")
        if not data:
            raise InferenceError("Empty model input")
        try:
            outputs = self._backend.forward(handle.module, data)
        except InferenceError:
            raise
        except Exception as exc:
            raise InferenceError(f"Inference failed on model v{handle.version}: {exc}") from exc

        if outputs is None or len(outputs) == 0:
            raise InferenceError(f"Model v{handle.version} returned an empty result")
        value = outputs[0]
        if isinstance(value, bool) or not isinstance(value, int):
            raise InferenceError(f"Model v{handle.version} returned non-integer output {value!r}")
        return value

    def close(self) -> None:
        """Release the current handle. In-flight tasks may still hold it."""
        with self._swap_lock:
            handle, self._handle = self._handle, None
        if handle is not None:
            self._backend.release(handle.module)
            logger.info("Model v%d released", handle.version)
