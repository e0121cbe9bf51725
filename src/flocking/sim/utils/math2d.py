from __future__ import annotations

import math

from pygame.math import Vector2

DEGENERATE_LENGTH = 1e-10

def _safe_normalize(vector: Vector2) -> Vector2:
    return _safe_normalize_xy(vector.x, vector.y)

def _safe_normalize_xy(x: float, y: float) -> Vector2:
    magnitude = math.hypot(x, y)
    if magnitude < DEGENERATE_LENGTH:
        return Vector2()
    inv = 1.0 / magnitude
    return Vector2(x * inv, y * inv)

def _clamp_length(vector: Vector2, max_length: float) -> Vector2:
    if max_length <= 0:
        return Vector2()
    magnitude_sq = vector.length_squared()
    if magnitude_sq <= max_length * max_length:
        return Vector2(vector)
    return _safe_normalize(vector) * max_length

def _as_vector(value: Vector2 | tuple[float, float] | list[float]) -> Vector2:
    if isinstance(value, Vector2):
        return Vector2(value.x, value.y)
    x, y = value
    return Vector2(float(x), float(y))
