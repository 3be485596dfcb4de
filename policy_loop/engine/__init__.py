"""Engine layer: dispatcher, worker pool, action queue, mutation loop."""

from policy_loop.engine.action_queue import ActionQueue
from policy_loop.engine.commands import CommandHandler
from policy_loop.engine.dispatcher import EventDispatcher
from policy_loop.engine.mutation_loop import MutationLoop
from policy_loop.engine.task import PendingTask
from policy_loop.engine.worker_pool import WorkerPool

__all__ = [
    "ActionQueue",
    "CommandHandler",
    "EventDispatcher",
    "MutationLoop",
    "PendingTask",
    "WorkerPool",
]
