from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from pygame.math import Vector2

from ..core.config import FlockingParameters
from .smoothing import bump_function, sigma_1_scalar, sigma_norm, sigma_norm_length


@dataclass(frozen=True)
class ReferenceNorms:
    r_alpha: float
    d_alpha: float
    d_beta: float


@lru_cache(maxsize=32)
def reference_norms(params: FlockingParameters) -> ReferenceNorms:
    epsilon = params.epsilon
    return ReferenceNorms(
        r_alpha=sigma_norm_length(params.interaction_range, epsilon),
        d_alpha=sigma_norm_length(params.desired_distance, epsilon),
        d_beta=sigma_norm_length(params.desired_distance * params.obstacle_distance_ratio, epsilon),
    )


def alpha_adjacency(q_i: Vector2, q_j: Vector2, params: FlockingParameters) -> float:
    distance = sigma_norm(q_j - q_i, params.epsilon)
    return bump_function(distance / reference_norms(params).r_alpha, params.h_alpha)


def beta_adjacency(q_i: Vector2, obstacle_pos: Vector2, params: FlockingParameters) -> float:
    distance = sigma_norm(obstacle_pos - q_i, params.epsilon)
    return bump_function(distance / reference_norms(params).d_beta, params.h_beta)


def phi_alpha(z: float, params: FlockingParameters) -> float:
    """Pairwise action on sigma-distance ``z``.

    Positive beyond the desired spacing, which pulls an agent toward its
    neighbour along ``sigma_epsilon(q_j - q_i)``; negative inside it.
    """
    norms = reference_norms(params)
    bump = bump_function(z / norms.r_alpha, params.h_alpha)
    return bump * sigma_1_scalar(z - norms.d_alpha)


def phi_beta(z: float, params: FlockingParameters) -> float:
    d_beta = reference_norms(params).d_beta
    bump = bump_function(z / d_beta, params.h_beta)
    return bump * (sigma_1_scalar(z - d_beta) - 1.0)
