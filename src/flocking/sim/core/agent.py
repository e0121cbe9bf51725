from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from pygame.math import Vector2


class ObstacleKind(str, Enum):
    DISC = "disc"
    WALL = "wall"


@dataclass(slots=True)
class Agent:
    """Alpha-agent: a physical member of the flock."""

    position: Vector2
    velocity: Vector2 = field(default_factory=Vector2)
    acceleration: Vector2 = field(default_factory=Vector2)

    def copy(self) -> "Agent":
        return Agent(Vector2(self.position), Vector2(self.velocity), Vector2(self.acceleration))


@dataclass(slots=True)
class VirtualAgent:
    """Beta-agent: the obstacle boundary point seen by one agent during one step."""

    position: Vector2
    velocity: Vector2 = field(default_factory=Vector2)

    def copy(self) -> "VirtualAgent":
        return VirtualAgent(Vector2(self.position), Vector2(self.velocity))


@dataclass(frozen=True, slots=True)
class Obstacle:
    position: Vector2
    radius: float = 15.0
    kind: ObstacleKind = ObstacleKind.DISC

    @property
    def is_wall(self) -> bool:
        return self.kind is ObstacleKind.WALL

    def copy(self) -> "Obstacle":
        return Obstacle(Vector2(self.position), self.radius, self.kind)


@dataclass(slots=True)
class NavigationTarget:
    """Gamma-agent the flock is steered toward."""

    position: Vector2
    velocity: Vector2 = field(default_factory=Vector2)
    enabled: bool = True

    def copy(self) -> "NavigationTarget":
        return NavigationTarget(Vector2(self.position), Vector2(self.velocity), self.enabled)
