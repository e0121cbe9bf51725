from __future__ import annotations

from typing import Iterable

from pygame.math import Vector2

from ..core.agent import Agent, NavigationTarget, VirtualAgent
from ..core.config import FlockingParameters
from .action import alpha_adjacency, beta_adjacency, phi_alpha, phi_beta
from .smoothing import sigma_1, sigma_epsilon, sigma_norm


def compute_alpha_force(agent: Agent, neighbors: Iterable[Agent], params: FlockingParameters) -> Vector2:
    """Gradient plus velocity-consensus term over flockmates inside the interaction range."""
    epsilon = params.epsilon
    max_range = params.interaction_range
    min_range = params.min_interaction_distance
    position = agent.position
    velocity = agent.velocity
    gradient_x = gradient_y = 0.0
    consensus_x = consensus_y = 0.0

    for other in neighbors:
        if other is agent:
            continue
        diff = other.position - position
        distance = diff.length()
        if not (min_range < distance < max_range):
            continue
        n_ij = sigma_epsilon(diff, epsilon)
        phi = phi_alpha(sigma_norm(diff, epsilon), params)
        gradient_x += n_ij.x * phi
        gradient_y += n_ij.y * phi

        a_ij = alpha_adjacency(position, other.position, params)
        consensus_x += (other.velocity.x - velocity.x) * a_ij
        consensus_y += (other.velocity.y - velocity.y) * a_ij

    return Vector2(
        gradient_x * params.c1_alpha + consensus_x * params.c2_alpha,
        gradient_y * params.c1_alpha + consensus_y * params.c2_alpha,
    )


def compute_beta_force(
    agent: Agent, virtual_agents: Iterable[VirtualAgent], params: FlockingParameters
) -> Vector2:
    """Repulsion plus damping from every virtual agent inside the obstacle range."""
    epsilon = params.epsilon
    max_range = params.obstacle_range
    min_range = params.min_interaction_distance
    position = agent.position
    velocity = agent.velocity
    repulsion_x = repulsion_y = 0.0
    damping_x = damping_y = 0.0

    for beta_agent in virtual_agents:
        diff = beta_agent.position - position
        distance = diff.length()
        if not (min_range < distance < max_range):
            continue
        n_ik = sigma_epsilon(diff, epsilon)
        phi = phi_beta(sigma_norm(diff, epsilon), params)
        repulsion_x += n_ik.x * phi
        repulsion_y += n_ik.y * phi

        b_ik = beta_adjacency(position, beta_agent.position, params)
        damping_x += (beta_agent.velocity.x - velocity.x) * b_ik
        damping_y += (beta_agent.velocity.y - velocity.y) * b_ik

    return Vector2(
        repulsion_x * params.c1_beta + damping_x * params.c2_beta,
        repulsion_y * params.c1_beta + damping_y * params.c2_beta,
    )


def compute_gamma_force(agent: Agent, target: NavigationTarget, params: FlockingParameters) -> Vector2:
    if not target.enabled:
        return Vector2()
    position_term = sigma_1(agent.position - target.position)
    velocity_term = agent.velocity - target.velocity
    return position_term * (-params.c1_gamma) - velocity_term * params.c2_gamma


def compute_acceleration(
    agent: Agent,
    neighbors: Iterable[Agent],
    virtual_agents: Iterable[VirtualAgent],
    target: NavigationTarget,
    params: FlockingParameters,
) -> Vector2:
    return (
        compute_alpha_force(agent, neighbors, params)
        + compute_beta_force(agent, virtual_agents, params)
        + compute_gamma_force(agent, target, params)
    )
