from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class StepMetrics:
    tick: int
    agents: int
    obstacles: int
    virtual_agents: int
    average_speed: float
    max_speed: float
    neighbor_checks: int
    step_duration_ms: float = 0.0
