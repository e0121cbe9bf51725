from __future__ import annotations

from typing import Sequence

from ..core.agent import Agent
from ..types.metrics import StepMetrics


def collect_step_metrics(
    tick: int,
    agents: Sequence[Agent],
    obstacle_count: int,
    virtual_agent_count: int,
    neighbor_checks: int,
    step_duration_ms: float = 0.0,
) -> StepMetrics:
    speed_sum = 0.0
    max_speed = 0.0
    for agent in agents:
        speed = agent.velocity.length()
        speed_sum += speed
        if speed > max_speed:
            max_speed = speed
    count = len(agents)
    return StepMetrics(
        tick=tick,
        agents=count,
        obstacles=obstacle_count,
        virtual_agents=virtual_agent_count,
        average_speed=speed_sum / count if count else 0.0,
        max_speed=max_speed,
        neighbor_checks=neighbor_checks,
        step_duration_ms=step_duration_ms,
    )
