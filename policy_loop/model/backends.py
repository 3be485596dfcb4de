"""Inference backends. The adapter treats loaded modules as opaque objects."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Sequence

import torch

logger = logging.getLogger(__name__)


class ModelBackend(ABC):
    """Loads an artifact from disk and runs it on raw input bytes."""

    name: str = "backend"

    @abstractmethod
    def load(self, path: Path) -> Any:
        """Return a loaded module. Raise on any failure."""

    @abstractmethod
    def forward(self, module: Any, data: bytes) -> Sequence[int]:
        """Run *module* on *data* and return its integer outputs."""

    def release(self, module: Any) -> None:
        """Free resources held by *module*. Default: nothing to do."""


class TorchScriptBackend(ModelBackend):
    """TorchScript modules saved with ``torch.jit.save``.

    Input is a ``uint8`` tensor of shape ``(1, len(data))``. Integer outputs
    are returned as-is; floating outputs are treated as scores and reduced
    with argmax over the last dimension.
    """

    name = "torchscript"

    def __init__(self, device: str = "cpu") -> None:
        self._device = torch.device(device)

    def load(self, path: Path) -> torch.jit.ScriptModule:
        module = torch.jit.load(str(path), map_location=self._device)
        module.eval()
        return module

    def forward(self, module: torch.jit.ScriptModule, data: bytes) -> list[int]:
        tensor = torch.tensor(list(data), dtype=torch.uint8, device=self._device).reshape(1, len(data))
        with torch.inference_mode():
            output = module(tensor)
        if isinstance(output, (tuple, list)):
            if not output:
                return []
            output = output[0]
        if not isinstance(output, torch.Tensor):
            raise TypeError(f"Model returned {type(output).__name__}, expected a tensor")
        if output.numel() == 0:
            return []
        if output.dim() == 0:
            return [int(output.item())]
        if output.is_floating_point():
            scores = output.reshape(-1, output.shape[-1])
            return [int(scores[0].argmax().item())]
        return [int(v) for v in output.flatten().tolist()]

    def release(self, module: torch.jit.ScriptModule) -> None:
        if self._device.type == "cuda":
            torch.cuda.empty_cache()
