"""Smoothed norms and kernels shared by every force term.

The sigma-norm replaces the Euclidean norm with a function that is
differentiable at the origin, and the bump function gives every interaction a
compact support that fades smoothly instead of cutting off.
"""

from __future__ import annotations

import math

from pygame.math import Vector2

from ..utils.math2d import DEGENERATE_LENGTH


def sigma_norm_length(length: float, epsilon: float) -> float:
    return (1.0 / epsilon) * (math.sqrt(1.0 + epsilon * length * length) - 1.0)


def sigma_norm(z: Vector2, epsilon: float) -> float:
    return sigma_norm_length(z.length(), epsilon)


def sigma_epsilon(z: Vector2, epsilon: float) -> Vector2:
    """Smoothed unit vector ``z / sqrt(1 + eps |z|^2)``; zero for a degenerate ``z``."""
    norm_z = z.length()
    if norm_z < DEGENERATE_LENGTH:
        return Vector2()
    return z * (1.0 / math.sqrt(1.0 + epsilon * norm_z * norm_z))


def bump_function(z: float, h: float) -> float:
    if z < h:
        return 1.0
    if z < 1.0:
        return 0.5 * (1.0 + math.cos(math.pi * (z - h) / (1.0 - h)))
    return 0.0


def sigma_1_scalar(s: float) -> float:
    return s / math.sqrt(1.0 + s * s)


def sigma_1(z: Vector2) -> Vector2:
    norm_z = z.length()
    if norm_z < DEGENERATE_LENGTH:
        return Vector2()
    return z * (1.0 / math.sqrt(1.0 + norm_z * norm_z))
