from __future__ import annotations

import logging
import threading
from time import perf_counter
from typing import Dict, Iterable, List, Optional, Sequence

from pygame.math import Vector2

from .agent import Agent, NavigationTarget, Obstacle, ObstacleKind, VirtualAgent
from .config import FlockingParameters, SimulationConfig, validate_config
from .rng import DeterministicRng
from .spatial_grid import SpatialGrid
from ..systems import forces, integrator, metrics as metrics_system, obstacles as obstacle_system
from ..types.metrics import StepMetrics
from ..types.snapshot import Snapshot, SnapshotDisplay, SnapshotMetadata, SnapshotTarget
from ..utils.math2d import _as_vector

logger = logging.getLogger(__name__)


class FlockSimulation:
    """Owns the flock, its obstacles and the navigation target.

    Every public command, query and ``step`` runs under one lock, so a render
    or network thread can read snapshots while a driver thread steps the
    simulation. ``step`` does not consult the run state: drivers are expected
    to call it only while ``is_running()`` is true.

    Force assembly scans all agent pairs and all (agent, virtual agent) pairs,
    which is O(n^2) per step. ``use_spatial_grid`` swaps the scan for a uniform
    grid keyed by the interaction range without changing the interacting set.
    """

    def __init__(self, config: SimulationConfig, agents: Optional[Iterable[Agent]] = None):
        validate_config(config)
        self._config = config
        self._params = config.params
        self._lock = threading.Lock()
        self._rng = DeterministicRng(config.seed)
        self._initial_agents = [agent.copy() for agent in agents] if agents is not None else None
        self._agents: List[Agent] = []
        self._obstacles: List[Obstacle] = []
        self._virtual_agents: List[VirtualAgent] = []
        self._target = NavigationTarget(Vector2(config.initial_target), enabled=config.navigation_enabled)
        self._running = False
        self._show_virtual_agents = False
        self._show_connections = False
        self._tick = 0
        self._metrics: StepMetrics | None = None
        self._agent_grid: SpatialGrid[Agent] | None = None
        self._virtual_grid: SpatialGrid[VirtualAgent] | None = None
        if config.use_spatial_grid:
            self._agent_grid = SpatialGrid(self._params.interaction_range)
            self._virtual_grid = SpatialGrid(self._params.obstacle_range)
        self._bootstrap()

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def params(self) -> FlockingParameters:
        return self._params

    @property
    def interaction_range(self) -> float:
        return self._params.interaction_range

    @property
    def obstacle_range(self) -> float:
        return self._params.obstacle_range

    @property
    def tick(self) -> int:
        with self._lock:
            return self._tick

    @property
    def metrics(self) -> StepMetrics | None:
        with self._lock:
            return self._metrics

    # -- run state ---------------------------------------------------------

    def start(self) -> None:
        with self._lock:
            self._running = True
        logger.info("Simulation started")

    def stop(self) -> None:
        with self._lock:
            self._running = False
        logger.info("Simulation stopped")

    def is_running(self) -> bool:
        with self._lock:
            return self._running

    def reset(self) -> None:
        with self._lock:
            self._bootstrap()
        logger.info("Simulation reset to %d agents", len(self._agents))

    # -- stepping ----------------------------------------------------------

    def step(self, dt: float) -> StepMetrics:
        with self._lock:
            start = perf_counter()
            params = self._params
            agents = self._agents

            self._virtual_agents = obstacle_system.build_virtual_agents(
                agents, self._obstacles, params.obstacle_range
            )

            agent_grid = self._agent_grid
            virtual_grid = self._virtual_grid
            if agent_grid is not None and virtual_grid is not None:
                agent_grid.rebuild(agents)
                virtual_grid.rebuild(self._virtual_agents)

            neighbor_checks = 0
            accelerations: List[Vector2] = []
            for agent in agents:
                neighbors: Sequence[Agent] = agents
                beta_agents: Sequence[VirtualAgent] = self._virtual_agents
                if agent_grid is not None and virtual_grid is not None:
                    neighbors = agent_grid.get_neighbors(agent.position, params.interaction_range)
                    beta_agents = virtual_grid.get_neighbors(agent.position, params.obstacle_range)
                neighbor_checks += len(neighbors) - 1
                accelerations.append(
                    forces.compute_acceleration(agent, neighbors, beta_agents, self._target, params)
                )

            # Accelerations come from one consistent pre-integration state.
            for agent, acceleration in zip(agents, accelerations):
                agent.acceleration = acceleration
                integrator.integrate_agent(agent, dt, self._config.boundary)

            self._tick += 1
            self._metrics = metrics_system.collect_step_metrics(
                self._tick,
                agents,
                len(self._obstacles),
                len(self._virtual_agents),
                neighbor_checks,
                (perf_counter() - start) * 1000.0,
            )
            logger.debug(
                "step %d: dt=%.4f virtual_agents=%d duration_ms=%.2f",
                self._tick,
                dt,
                self._metrics.virtual_agents,
                self._metrics.step_duration_ms,
            )
            return self._metrics

    # -- commands ----------------------------------------------------------

    def add_obstacle(
        self,
        position: Vector2 | tuple[float, float],
        radius: float | None = None,
        kind: ObstacleKind | str = ObstacleKind.DISC,
    ) -> Obstacle:
        radius = self._config.default_obstacle_radius if radius is None else float(radius)
        if radius <= 0:
            raise ValueError(f"Obstacle radius must be positive, got {radius}")
        obstacle = Obstacle(_as_vector(position), radius, ObstacleKind(kind))
        with self._lock:
            self._obstacles.append(obstacle)
        logger.info(
            "Added %s obstacle at (%.2f, %.2f) with radius %.2f",
            obstacle.kind.value,
            obstacle.position.x,
            obstacle.position.y,
            radius,
        )
        return obstacle.copy()

    def clear_obstacles(self) -> None:
        with self._lock:
            self._obstacles.clear()
            self._virtual_agents.clear()
        logger.info("All obstacles cleared")

    def set_target(self, position: Vector2 | tuple[float, float]) -> None:
        target = _as_vector(position)
        with self._lock:
            self._target.position = target
            self._target.enabled = True
        logger.info("Target set to (%.2f, %.2f)", target.x, target.y)

    def enable_target(self) -> None:
        with self._lock:
            self._target.enabled = True
        logger.info("Navigation target enabled")

    def remove_target(self) -> None:
        with self._lock:
            self._target.enabled = False
        logger.info("Navigation target removed; flocking without navigation")

    def toggle_beta_display(self) -> bool:
        with self._lock:
            self._show_virtual_agents = not self._show_virtual_agents
            return self._show_virtual_agents

    def toggle_connections(self) -> bool:
        with self._lock:
            self._show_connections = not self._show_connections
            return self._show_connections

    # -- queries -----------------------------------------------------------

    def get_agents(self) -> List[Agent]:
        with self._lock:
            return [agent.copy() for agent in self._agents]

    def get_obstacles(self) -> List[Obstacle]:
        with self._lock:
            return [obstacle.copy() for obstacle in self._obstacles]

    def get_virtual_agents(self) -> List[VirtualAgent]:
        with self._lock:
            return [beta_agent.copy() for beta_agent in self._virtual_agents]

    def get_target(self) -> Vector2:
        with self._lock:
            return Vector2(self._target.position)

    def get_navigation_target(self) -> NavigationTarget:
        with self._lock:
            return self._target.copy()

    def is_target_enabled(self) -> bool:
        with self._lock:
            return self._target.enabled

    def is_beta_display_enabled(self) -> bool:
        with self._lock:
            return self._show_virtual_agents

    def is_connections_display_enabled(self) -> bool:
        with self._lock:
            return self._show_connections

    def snapshot(self) -> Snapshot:
        with self._lock:
            metrics = self._metrics
            if metrics is None:
                metrics = metrics_system.collect_step_metrics(
                    self._tick, self._agents, len(self._obstacles), len(self._virtual_agents), 0
                )
            boundary = self._config.boundary
            return Snapshot(
                tick=self._tick,
                running=self._running,
                metrics=metrics,
                agents=[self._agent_snapshot(agent) for agent in self._agents],
                obstacles=[self._obstacle_snapshot(obstacle) for obstacle in self._obstacles],
                virtual_agents=[
                    {"x": b.position.x, "y": b.position.y, "vx": b.velocity.x, "vy": b.velocity.y}
                    for b in self._virtual_agents
                ],
                target=SnapshotTarget(self._target.position.x, self._target.position.y, self._target.enabled),
                display=SnapshotDisplay(self._show_virtual_agents, self._show_connections),
                metadata=SnapshotMetadata(
                    interaction_range=self._params.interaction_range,
                    obstacle_range=self._params.obstacle_range,
                    soft_boundary=boundary.soft_boundary,
                    hard_boundary=boundary.hard_boundary,
                    seed=self._config.seed,
                ),
            )

    # -- internals ---------------------------------------------------------

    def _bootstrap(self) -> None:
        config = self._config
        self._rng.reset()
        if self._initial_agents is not None:
            self._agents = [agent.copy() for agent in self._initial_agents]
        else:
            self._agents = []
            for _ in range(config.initial_population):
                position = self._rng.next_point(config.spawn_extent)
                velocity = self._rng.next_point(config.spawn_extent) * config.initial_velocity_scale
                self._agents.append(Agent(position, velocity))
        self._obstacles = [
            Obstacle(Vector2(entry.position), entry.radius, ObstacleKind(entry.kind)) for entry in config.obstacles
        ]
        self._virtual_agents = []
        self._target = NavigationTarget(Vector2(config.initial_target), enabled=config.navigation_enabled)
        self._tick = 0
        self._metrics = None

    @staticmethod
    def _agent_snapshot(agent: Agent) -> Dict[str, float]:
        return {
            "x": agent.position.x,
            "y": agent.position.y,
            "vx": agent.velocity.x,
            "vy": agent.velocity.y,
            "ax": agent.acceleration.x,
            "ay": agent.acceleration.y,
            "speed": agent.velocity.length(),
        }

    @staticmethod
    def _obstacle_snapshot(obstacle: Obstacle) -> Dict[str, object]:
        return {
            "x": obstacle.position.x,
            "y": obstacle.position.y,
            "radius": obstacle.radius,
            "kind": obstacle.kind.value,
        }
