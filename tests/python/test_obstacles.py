from __future__ import annotations

from pygame.math import Vector2
from pytest import approx

from flocking.sim.core.agent import Agent, Obstacle, ObstacleKind
from flocking.sim.systems.obstacles import build_virtual_agents, project_to_obstacle


def test_disc_projection_lies_on_boundary_along_center_line():
    obstacle = Obstacle(Vector2(0.0, 0.0), radius=15.0)
    agent = Agent(Vector2(30.0, 40.0), Vector2(4.0, -3.0))

    beta = project_to_obstacle(agent, obstacle)

    assert beta.position.distance_to(obstacle.position) == approx(15.0)
    assert beta.position.x == approx(9.0)
    assert beta.position.y == approx(12.0)
    # Agent, boundary point and center are collinear.
    assert beta.position.cross(agent.position) == approx(0.0, abs=1e-9)


def test_disc_projection_keeps_scaled_tangential_velocity():
    obstacle = Obstacle(Vector2(0.0, 0.0), radius=15.0)
    tangential = project_to_obstacle(Agent(Vector2(30.0, 40.0), Vector2(4.0, -3.0)), obstacle)
    assert tangential.velocity.x == approx(1.2)
    assert tangential.velocity.y == approx(-0.9)

    radial = project_to_obstacle(Agent(Vector2(30.0, 40.0), Vector2(3.0, 4.0)), obstacle)
    assert radial.velocity.length() == approx(0.0, abs=1e-12)


def test_disc_projection_inside_offset_obstacle():
    obstacle = Obstacle(Vector2(10.0, -5.0), radius=12.0)
    agent = Agent(Vector2(10.0, 15.0), Vector2(1.0, 1.0))

    beta = project_to_obstacle(agent, obstacle)

    assert beta.position.x == approx(10.0)
    assert beta.position.y == approx(7.0)
    assert beta.velocity.x == approx(12.0 / 20.0)
    assert beta.velocity.y == approx(0.0, abs=1e-12)


def test_disc_projection_degenerate_center():
    obstacle = Obstacle(Vector2(5.0, 5.0), radius=15.0)
    beta = project_to_obstacle(Agent(Vector2(5.05, 5.0), Vector2(3.0, 1.0)), obstacle)
    assert beta.position == Vector2(20.0, 5.0)
    assert beta.velocity == Vector2()


def test_wall_projection_picks_orientation_from_smaller_offset():
    horizontal = Obstacle(Vector2(0.0, 50.0), radius=10.0, kind=ObstacleKind.WALL)
    beta = project_to_obstacle(Agent(Vector2(3.0, 40.0), Vector2(2.0, 5.0)), horizontal)
    assert beta.position == Vector2(3.0, 50.0)
    assert beta.velocity == Vector2(2.0, 0.0)

    vertical = Obstacle(Vector2(50.0, 0.0), radius=10.0, kind=ObstacleKind.WALL)
    beta = project_to_obstacle(Agent(Vector2(40.0, 3.0), Vector2(2.0, 5.0)), vertical)
    assert beta.position == Vector2(50.0, 3.0)
    assert beta.velocity == Vector2(0.0, 5.0)


def test_build_virtual_agents_yields_one_per_pair_in_range():
    obstacles = [
        Obstacle(Vector2(-20.0, 0.0), radius=15.0),
        Obstacle(Vector2(20.0, 0.0), radius=15.0),
        Obstacle(Vector2(0.0, 200.0), radius=15.0),
    ]
    agents = [Agent(Vector2(0.0, 0.0)), Agent(Vector2(100.0, 100.0))]

    virtual_agents = build_virtual_agents(agents, obstacles, obstacle_range=5.2)

    assert len(virtual_agents) == 2
    assert sorted(b.position.x for b in virtual_agents) == approx([-5.0, 5.0])
    assert len(obstacles) == 3


def test_build_virtual_agents_range_is_strict():
    obstacle = Obstacle(Vector2(0.0, 0.0), radius=10.0)
    assert build_virtual_agents([Agent(Vector2(15.0, 0.0))], [obstacle], obstacle_range=5.0) == []
    assert len(build_virtual_agents([Agent(Vector2(14.9, 0.0))], [obstacle], obstacle_range=5.0)) == 1
    assert build_virtual_agents([Agent(Vector2(14.9, 0.0))], [], obstacle_range=5.0) == []
