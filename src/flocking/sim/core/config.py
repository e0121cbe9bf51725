from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import List

import yaml


class ConfigError(ValueError):
    """Raised when a configuration record cannot drive a simulation."""


@dataclass(frozen=True)
class FlockingParameters:
    desired_distance: float = 7.0
    interaction_range: float = 8.4
    obstacle_range: float = 5.2
    c1_alpha: float = 8.0
    c2_alpha: float = 6.0
    c1_beta: float = 5.0
    c2_beta: float = 2.0
    c1_gamma: float = 0.5
    c2_gamma: float = 0.8
    epsilon: float = 0.1
    h_alpha: float = 0.2
    h_beta: float = 0.8
    # d_beta is taken at this fraction of the desired distance
    obstacle_distance_ratio: float = 0.6
    min_interaction_distance: float = 0.1


@dataclass(frozen=True)
class BoundaryConfig:
    max_speed: float = 100.0
    soft_boundary: float = 180.0
    hard_boundary: float = 200.0
    boundary_push: float = 5.0


@dataclass
class ObstacleConfig:
    position: tuple[float, float] = (0.0, 0.0)
    radius: float = 15.0
    kind: str = "disc"


@dataclass
class SimulationConfig:
    time_step: float = 1.0 / 60.0
    max_time_step: float = 0.1
    initial_population: int = 1000
    spawn_extent: float = 150.0
    initial_velocity_scale: float = 0.05
    seed: int = 42
    initial_target: tuple[float, float] = (100.0, 100.0)
    navigation_enabled: bool = True
    default_obstacle_radius: float = 15.0
    use_spatial_grid: bool = False
    obstacles: List[ObstacleConfig] = field(default_factory=list)
    params: FlockingParameters = field(default_factory=FlockingParameters)
    boundary: BoundaryConfig = field(default_factory=BoundaryConfig)

    @staticmethod
    def from_yaml(path: Path) -> "SimulationConfig":
        data = yaml.safe_load(Path(path).read_text()) or {}
        return load_config(data)


def _checked_kwargs(cls: type, raw: dict, section: str) -> dict:
    if not isinstance(raw, dict):
        raise ConfigError(f"{section} section must be a mapping, got {type(raw).__name__}")
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigError(f"Unknown {section} keys: {', '.join(unknown)}")
    return dict(raw)


def _pair(value: tuple[float, float] | list[float], name: str) -> tuple[float, float]:
    if isinstance(value, (tuple, list)) and len(value) == 2:
        return (float(value[0]), float(value[1]))
    raise ConfigError(f"{name} must be a pair of numbers, got {value!r}")


def load_config(raw: dict) -> SimulationConfig:
    if not isinstance(raw, dict):
        raise ConfigError(f"configuration must be a mapping, got {type(raw).__name__}")
    params = FlockingParameters(**_checked_kwargs(FlockingParameters, raw.get("params") or {}, "params"))
    boundary = BoundaryConfig(**_checked_kwargs(BoundaryConfig, raw.get("boundary") or {}, "boundary"))
    obstacles = []
    entries = raw.get("obstacles") or []
    if not isinstance(entries, list):
        raise ConfigError("obstacles section must be a list")
    for entry in entries:
        values = _checked_kwargs(ObstacleConfig, entry, "obstacle")
        if "position" in values:
            values["position"] = _pair(values["position"], "obstacle position")
        obstacles.append(ObstacleConfig(**values))
    sim_values = _checked_kwargs(
        SimulationConfig,
        {k: v for k, v in raw.items() if k not in {"params", "boundary", "obstacles"}},
        "simulation",
    )
    if "initial_target" in sim_values:
        sim_values["initial_target"] = _pair(sim_values["initial_target"], "initial_target")
    config = SimulationConfig(params=params, boundary=boundary, obstacles=obstacles, **sim_values)
    validate_config(config)
    return config


def validate_config(config: SimulationConfig) -> None:
    params = config.params
    boundary = config.boundary
    problems: list[str] = []

    for name in ("desired_distance", "interaction_range", "obstacle_range", "epsilon", "obstacle_distance_ratio"):
        if getattr(params, name) <= 0:
            problems.append(f"params.{name} must be positive")
    for name in ("h_alpha", "h_beta"):
        value = getattr(params, name)
        if not 0.0 <= value < 1.0:
            problems.append(f"params.{name} must lie in [0, 1)")
    if params.min_interaction_distance < 0:
        problems.append("params.min_interaction_distance must not be negative")

    if boundary.max_speed <= 0:
        problems.append("boundary.max_speed must be positive")
    if boundary.soft_boundary >= boundary.hard_boundary:
        problems.append("boundary.soft_boundary must be smaller than boundary.hard_boundary")

    if config.initial_population < 0:
        problems.append("initial_population must not be negative")
    if config.time_step <= 0 or config.max_time_step <= 0:
        problems.append("time_step and max_time_step must be positive")
    if config.default_obstacle_radius <= 0:
        problems.append("default_obstacle_radius must be positive")
    for obstacle in config.obstacles:
        if obstacle.radius <= 0:
            problems.append(f"obstacle at {obstacle.position} has non-positive radius")
        if obstacle.kind not in {"disc", "wall"}:
            problems.append(f"obstacle at {obstacle.position} has unknown kind {obstacle.kind!r}")

    if problems:
        raise ConfigError("; ".join(problems))
