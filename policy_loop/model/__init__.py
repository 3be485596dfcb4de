"""Model adapter: opaque inference artifact behind predict(bytes) -> int."""

from policy_loop.model.adapter import ModelAdapter, ModelHandle
from policy_loop.model.backends import ModelBackend, TorchScriptBackend

__all__ = ["ModelAdapter", "ModelBackend", "ModelHandle", "TorchScriptBackend"]
