"""FastAPI application factory with lifespan management."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator

from fastapi import FastAPI

from policy_loop.api.agent_manager import AgentManager
from policy_loop.api.dependencies import set_agent_manager
from policy_loop.api.routes import api_router
from policy_loop.config import AgentConfig
from policy_loop.utils.logging import setup_logging
from policy_loop.world.driver import SimulationDriver
from policy_loop.world.script import WorldScript
from policy_loop.world.simulated import SimulatedWorld

if TYPE_CHECKING:
    from policy_loop.core.world import WorldHost
    from policy_loop.model.backends import ModelBackend

logger = logging.getLogger(__name__)


def create_app(
    config: AgentConfig | None = None,
    host: WorldHost | None = None,
    backend: ModelBackend | None = None,
    seed: int = 42,
    tick_rate: float = 0.6,
) -> FastAPI:
    """Build the operator API around an AgentManager.

    Without a *host*, a SimulatedWorld is created and driven on a background
    thread so the loop has something to observe.
    """
    if config is None:
        config = AgentConfig()

    _config = config

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        setup_logging(_config.log_level)
        driver: SimulationDriver | None = None
        world = host
        if world is None:
            script = WorldScript(seed)
            world = SimulatedWorld.populate(script)
            driver = SimulationDriver(world, script, tick_rate=tick_rate)

        manager = AgentManager(_config, world, backend=backend)
        set_agent_manager(manager)
        manager.start(threaded=True)
        if driver is not None:
            driver.start()
        logger.info("API server started: policy loop running.")
        yield
        if driver is not None:
            driver.stop()
        manager.stop()
        set_agent_manager(None)
        logger.info("API server shutting down.")

    app = FastAPI(
        title="Policy Loop",
        description=(
            "Event-driven decision loop: operator API.\n\n"
            "## API Groups\n\n"
            "- **State**: Loop status counters and the recent decision log\n"
            "- **Control**: Model and catalog reload, status announcement\n"
            "- **Config**: Read-only agent configuration\n"
        ),
        version="0.1.0",
        lifespan=lifespan,
        openapi_tags=[
            {"name": "State", "description": "Dispatcher counters, model version, and recently applied decisions."},
            {"name": "Control", "description": "Hot-reload the model artifact or action catalog, or announce status in the world."},
            {"name": "Config", "description": "Read-only configuration including the active action catalog."},
        ],
    )

    app.include_router(api_router)
    return app
