"""World hosts the policy loop can attach to."""

from policy_loop.world.driver import SimulationDriver
from policy_loop.world.script import WorldScript
from policy_loop.world.simulated import SimActor, SimNpc, SimulatedWorld

__all__ = ["SimActor", "SimNpc", "SimulatedWorld", "SimulationDriver", "WorldScript"]
