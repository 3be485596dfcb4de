"""Console commands: ``rl_reload <path>`` and ``rl_status``."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from policy_loop.errors import ModelLoadError

if TYPE_CHECKING:
    from policy_loop.core.world import WorldHost
    from policy_loop.model.adapter import ModelAdapter

logger = logging.getLogger(__name__)

RELOAD_COMMAND = "rl_reload"
STATUS_COMMAND = "rl_status"

RELOAD_OK = "Model reloaded successfully."
RELOAD_FAILED = "Failed to reload model."
STATUS_RUNNING = "Policy loop is running."
CATALOG_OK = "Action catalog reloaded."
CATALOG_FAILED = "Failed to reload action catalog."


class CommandHandler:
    """Operator commands. *notify* must deliver on the mutation context."""

    __slots__ = ("_adapter", "_notify", "_host")

    def __init__(self, adapter: ModelAdapter, notify: Callable[[str], None]) -> None:
        self._adapter = adapter
        self._notify = notify
        self._host: WorldHost | None = None

    def register(self, host: WorldHost) -> None:
        host.add_command_listener(RELOAD_COMMAND, self._on_reload)
        host.add_command_listener(STATUS_COMMAND, self._on_status)
        self._host = host

    def unregister(self) -> None:
        if self._host is None:
            return
        self._host.remove_command_listener(RELOAD_COMMAND)
        self._host.remove_command_listener(STATUS_COMMAND)
        self._host = None

    def reload(self, path: str) -> bool:
        """Swap in the model at *path*. Dispatched tasks are unaffected."""
        try:
            self._adapter.reload(path)
        except ModelLoadError:
            self._notify(RELOAD_FAILED)
            return False
        self._notify(RELOAD_OK)
        return True

    def status(self) -> None:
        self._notify(STATUS_RUNNING)

    def _on_reload(self, args: list[str]) -> None:
        if not args:
            logger.debug("%s called without a path; ignoring", RELOAD_COMMAND)
            return
        self.reload(args[0])

    def _on_status(self, args: list[str]) -> None:
        self.status()
