from __future__ import annotations

import pytest
from pygame.math import Vector2

from flocking.sim.core.agent import Agent, VirtualAgent
from flocking.sim.core.spatial_grid import SpatialGrid


def test_neighbor_query_matches_bruteforce():
    grid: SpatialGrid[Agent] = SpatialGrid(cell_size=2.5)
    agents = [
        Agent(Vector2(0, 0)),
        Agent(Vector2(1, 1)),
        Agent(Vector2(3, 0.5)),
        Agent(Vector2(6, 6)),
        Agent(Vector2(-2.4, -0.1)),
    ]
    for agent in agents:
        grid.insert(agent)

    center = Vector2(1, 1)
    radius = 3.0
    neighbors = grid.get_neighbors(center, radius)
    brute = [a for a in agents if (a.position - center).length_squared() <= radius * radius]
    assert sorted(id(a) for a in neighbors) == sorted(id(a) for a in brute)
    assert len(grid) == len(agents)


def test_rebuild_replaces_previous_contents():
    grid: SpatialGrid[VirtualAgent] = SpatialGrid(cell_size=5.2)
    grid.rebuild([VirtualAgent(Vector2(0.0, 0.0)), VirtualAgent(Vector2(100.0, 0.0))])
    assert len(grid.get_neighbors(Vector2(1.0, 0.0), 5.2)) == 1

    grid.rebuild([VirtualAgent(Vector2(50.0, 50.0))])
    assert grid.get_neighbors(Vector2(1.0, 0.0), 5.2) == []
    assert len(grid.get_neighbors(Vector2(52.0, 48.0), 5.2)) == 1
    assert len(grid) == 1


def test_clear_empties_all_buckets():
    grid: SpatialGrid[Agent] = SpatialGrid(cell_size=1.0)
    for x in range(5):
        grid.insert(Agent(Vector2(float(x), 0.0)))
    grid.clear()
    assert len(grid) == 0
    assert grid.get_neighbors(Vector2(2.0, 0.0), 10.0) == []
    grid.insert(Agent(Vector2(2.0, 0.0)))
    assert len(grid.get_neighbors(Vector2(2.0, 0.0), 0.5)) == 1


def test_cell_size_must_be_positive():
    with pytest.raises(ValueError):
        SpatialGrid(cell_size=0.0)
