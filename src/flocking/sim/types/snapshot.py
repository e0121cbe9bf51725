from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

from .metrics import StepMetrics


@dataclass(slots=True)
class Snapshot:
    tick: int
    running: bool
    metrics: StepMetrics
    agents: List[Dict[str, float]]
    obstacles: List[Dict[str, Any]]
    virtual_agents: List[Dict[str, float]]
    target: "SnapshotTarget"
    display: "SnapshotDisplay"
    metadata: "SnapshotMetadata"


@dataclass(slots=True)
class SnapshotTarget:
    x: float
    y: float
    enabled: bool


@dataclass(slots=True)
class SnapshotDisplay:
    show_virtual_agents: bool
    show_connections: bool


@dataclass(slots=True)
class SnapshotMetadata:
    interaction_range: float
    obstacle_range: float
    soft_boundary: float
    hard_boundary: float
    seed: int
