"""Action system: decisions, mutation context, and execution."""

from policy_loop.actions.base import ActionOutcome, Decision
from policy_loop.actions.executor import ActionExecutor, MutationContext

__all__ = ["ActionExecutor", "ActionOutcome", "Decision", "MutationContext"]
