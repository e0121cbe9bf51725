from __future__ import annotations

from typing import Iterable, List, Sequence

from pygame.math import Vector2

from ..core.agent import Agent, Obstacle, VirtualAgent
from ..utils.math2d import _safe_normalize

_DEGENERATE_CENTER_DISTANCE = 0.1


def project_to_obstacle(agent: Agent, obstacle: Obstacle) -> VirtualAgent:
    position = agent.position
    velocity = agent.velocity
    center = obstacle.position

    if obstacle.is_wall:
        # Axis-aligned wall through the obstacle reference point.
        if abs(center.x - position.x) < abs(center.y - position.y):
            return VirtualAgent(Vector2(position.x, center.y), Vector2(velocity.x, 0.0))
        return VirtualAgent(Vector2(center.x, position.y), Vector2(0.0, velocity.y))

    to_center = center - position
    distance_to_center = to_center.length()
    if distance_to_center <= _DEGENERATE_CENTER_DISTANCE:
        return VirtualAgent(center + Vector2(obstacle.radius, 0.0), Vector2())

    mu = obstacle.radius / distance_to_center
    direction = _safe_normalize(to_center)
    tangential = velocity - direction * velocity.dot(direction)
    return VirtualAgent(center - direction * obstacle.radius, tangential * mu)


def build_virtual_agents(
    agents: Iterable[Agent],
    obstacles: Sequence[Obstacle],
    obstacle_range: float,
) -> List[VirtualAgent]:
    virtual_agents: List[VirtualAgent] = []
    if not obstacles:
        return virtual_agents
    for agent in agents:
        for obstacle in obstacles:
            if obstacle.position.distance_to(agent.position) < obstacle_range + obstacle.radius:
                virtual_agents.append(project_to_obstacle(agent, obstacle))
    return virtual_agents
