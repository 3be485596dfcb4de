"""Error taxonomy for the policy loop.

Startup failures (``ConfigError``, ``ModelLoadError``) abort activation.
Per-event failures (``InferenceError``, ``DispatchError``) are contained
inside the owning task and never reach the dispatcher.
"""

from __future__ import annotations


class PolicyLoopError(Exception):
    """Base class for every error raised by the policy loop."""


class ConfigError(PolicyLoopError):
    """Malformed configuration or action catalog."""


class ModelLoadError(PolicyLoopError):
    """Model artifact is missing, corrupt, or rejected by the backend."""


class InferenceError(PolicyLoopError):
    """Bad input, backend fault, or malformed output during predict."""


class DispatchError(PolicyLoopError):
    """A task could not be scheduled (pool closed or exhausted)."""


class MutationContextError(PolicyLoopError):
    """World mutation attempted outside the mutation context."""
