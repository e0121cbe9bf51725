from __future__ import annotations

from ..core.agent import Agent
from ..core.config import BoundaryConfig
from ..utils.math2d import _clamp_length


def soft_boundary_correction(coordinate: float, boundary: BoundaryConfig) -> float:
    """Velocity change pushing a coordinate back toward the origin on its axis.

    Zero at or inside the soft threshold, ramping linearly to ``boundary_push``
    at the hard threshold and held there beyond it.
    """
    magnitude = abs(coordinate)
    if magnitude <= boundary.soft_boundary:
        return 0.0
    depth = (magnitude - boundary.soft_boundary) / (boundary.hard_boundary - boundary.soft_boundary)
    push = min(1.0, depth) * boundary.boundary_push
    return -push if coordinate > 0 else push


def integrate_agent(agent: Agent, dt: float, boundary: BoundaryConfig) -> None:
    velocity = agent.velocity + agent.acceleration * dt
    velocity = _clamp_length(velocity, boundary.max_speed)
    agent.position = agent.position + velocity * dt

    velocity.x += soft_boundary_correction(agent.position.x, boundary)
    velocity.y += soft_boundary_correction(agent.position.y, boundary)
    # The push may carry a tangential agent past the limit.
    agent.velocity = _clamp_length(velocity, boundary.max_speed)
