from __future__ import annotations

import argparse
import csv
import json
import logging
import math
from dataclasses import replace
from pathlib import Path
from typing import Optional

from ..sim.core.config import SimulationConfig
from ..sim.core.simulation import FlockSimulation
from ..sim.types.metrics import StepMetrics

logger = logging.getLogger(__name__)

_BASIC_HEADER = [
    "tick",
    "agents",
    "obstacles",
    "virtual_agents",
    "avg_speed",
    "max_speed",
    "neighbor_checks",
    "step_ms",
]

_DETAILED_HEADER = _BASIC_HEADER + [
    "centroid_x",
    "centroid_y",
    "target_distance",
    "spread",
    "min_separation",
    "soft_boundary_agents",
    "target_enabled",
]


def _format_basic_row(metrics: StepMetrics, step_ms: float) -> list[object]:
    return [
        metrics.tick,
        metrics.agents,
        metrics.obstacles,
        metrics.virtual_agents,
        f"{metrics.average_speed:.4f}",
        f"{metrics.max_speed:.4f}",
        metrics.neighbor_checks,
        f"{step_ms:.3f}",
    ]


def _format_detailed_row(simulation: FlockSimulation, metrics: StepMetrics, step_ms: float) -> list[object]:
    agents = simulation.get_agents()
    target = simulation.get_navigation_target()
    soft = simulation.config.boundary.soft_boundary
    if not agents:
        centroid_x = centroid_y = target_distance = spread = min_separation = 0.0
        soft_boundary_agents = 0
    else:
        count = len(agents)
        centroid_x = sum(agent.position.x for agent in agents) / count
        centroid_y = sum(agent.position.y for agent in agents) / count
        target_distance = math.hypot(centroid_x - target.position.x, centroid_y - target.position.y)
        spread = sum(math.hypot(a.position.x - centroid_x, a.position.y - centroid_y) for a in agents) / count
        soft_boundary_agents = sum(1 for a in agents if abs(a.position.x) > soft or abs(a.position.y) > soft)
        min_separation = 0.0
        if count > 1:
            min_separation = min(
                agents[i].position.distance_to(agents[j].position)
                for i in range(count)
                for j in range(i + 1, count)
            )
    return _format_basic_row(metrics, step_ms) + [
        f"{centroid_x:.4f}",
        f"{centroid_y:.4f}",
        f"{target_distance:.4f}",
        f"{spread:.4f}",
        f"{min_separation:.4f}",
        soft_boundary_agents,
        int(target.enabled),
    ]


def _summary_stats(values: list[float]) -> dict[str, float]:
    if not values:
        return {"min": 0.0, "max": 0.0, "avg": 0.0}
    return {
        "min": float(min(values)),
        "max": float(max(values)),
        "avg": float(sum(values) / len(values)),
    }


def run_headless(
    steps: int,
    seed: Optional[int],
    log_path: Optional[Path],
    deterministic_log: bool = False,
    log_format: str = "basic",
    summary_path: Optional[Path] = None,
    config: Optional[SimulationConfig] = None,
    population: Optional[int] = None,
    dt: Optional[float] = None,
) -> FlockSimulation:
    config = config if config is not None else SimulationConfig()
    overrides: dict[str, int] = {}
    if seed is not None:
        overrides["seed"] = seed
    if population is not None:
        overrides["initial_population"] = population
    config = replace(config, **overrides)

    log_mode = log_format.lower().strip()
    if log_mode not in {"basic", "detailed"}:
        raise ValueError(f"Unknown log format: {log_format}")

    # The interactive driver caps frame time the same way.
    step_dt = min(dt if dt is not None else config.time_step, config.max_time_step)
    simulation = FlockSimulation(config)
    simulation.start()
    logger.info("Running %d steps with %d agents (dt=%.4f)", steps, config.initial_population, step_dt)

    writer = None
    csv_file = None
    if log_path:
        csv_file = Path(log_path).open("w", newline="")
        writer = csv.writer(csv_file)
        writer.writerow(_DETAILED_HEADER if log_mode == "detailed" else _BASIC_HEADER)

    step_ms_series: list[float] = []
    speed_series: list[float] = []
    virtual_series: list[float] = []
    try:
        for _ in range(steps):
            if not simulation.is_running():
                break
            metrics = simulation.step(step_dt)
            step_ms = 0.0 if deterministic_log else metrics.step_duration_ms
            step_ms_series.append(step_ms)
            speed_series.append(metrics.average_speed)
            virtual_series.append(float(metrics.virtual_agents))
            if writer:
                if log_mode == "detailed":
                    writer.writerow(_format_detailed_row(simulation, metrics, step_ms))
                else:
                    writer.writerow(_format_basic_row(metrics, step_ms))
    finally:
        if csv_file:
            csv_file.close()
        simulation.stop()

    if summary_path:
        summary = {
            "steps": steps,
            "seed": config.seed,
            "agents": config.initial_population,
            "dt": step_dt,
            "log_format": log_mode,
            "deterministic_log": deterministic_log,
            "step_ms": _summary_stats(step_ms_series),
            "average_speed": _summary_stats(speed_series),
            "virtual_agents": _summary_stats(virtual_series),
        }
        Path(summary_path).write_text(json.dumps(summary, indent=2))
    return simulation


def main() -> None:
    parser = argparse.ArgumentParser(description="Headless flocking simulation")
    parser.add_argument("--steps", type=int, default=600)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--config", type=Path, default=None, help="YAML configuration file")
    parser.add_argument("--agents", type=int, default=None, help="Override the initial population")
    parser.add_argument("--dt", type=float, default=None, help="Step length in seconds (capped at max_time_step)")
    parser.add_argument("--log", type=Path, default=None, help="CSV file to write metrics")
    parser.add_argument(
        "--log-format",
        choices=["basic", "detailed"],
        default="basic",
        help="CSV format to write when --log is provided (detailed adds flock shape columns).",
    )
    parser.add_argument("--summary", type=Path, default=None, help="Optional JSON file to write summary stats.")
    parser.add_argument(
        "--deterministic-log",
        action="store_true",
        help="Write deterministic CSV (step_ms is forced to 0.000 so identical seeds match).",
    )
    parser.add_argument("--log-level", default="INFO", help="Python logging level")
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    config = SimulationConfig.from_yaml(args.config) if args.config else None
    run_headless(
        args.steps,
        args.seed,
        args.log,
        deterministic_log=args.deterministic_log,
        log_format=args.log_format,
        summary_path=args.summary,
        config=config,
        population=args.agents,
        dt=args.dt,
    )


if __name__ == "__main__":
    main()
