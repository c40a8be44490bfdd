#!/usr/bin/env python3
"""
sim/physics.py
==============
Low-level numeric helpers used by every simulation module.

Keeping these in a separate module avoids circular imports and makes unit
testing straightforward.
"""

from __future__ import annotations

import math
import random


def mps_to_kmh(speed_mps: float) -> int:
    """Convert m/s to whole km/h (truncated, as shown on the speedometer)."""
    return int(max(0.0, float(speed_mps)) * 3.6)


def kmh_to_mps(speed_kmh: float) -> float:
    """Convert km/h to m/s, clamping negatives to zero."""
    return max(0.0, float(speed_kmh)) / 3.6


def clamp(value: float, lo: float, hi: float) -> float:
    return min(max(value, lo), hi)


def smoothstep(edge0: float, edge1: float, x: float) -> float:
    """Hermite ramp from 0 at *edge0* to 1 at *edge1*."""
    t = clamp((x - edge0) / (edge1 - edge0), 0.0, 1.0)
    return t * t * (3.0 - 2.0 * t)


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def rand_range(rng: random.Random, lo: float, hi: float) -> float:
    """Uniform draw in ``[lo, hi)`` from the injected generator."""
    return lo + rng.random() * (hi - lo)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives.

    :func:`round` uses banker's rounding, which would make crash payouts
    drop a credit on exact halves.
    """
    return int(math.floor(value + 0.5))


def normalize(dx: float, dz: float) -> tuple:
    """Unit vector of *(dx, dz)*; the zero vector maps to ``(0, 0)``."""
    length = math.hypot(dx, dz)
    if length < 1e-9:
        return 0.0, 0.0
    return dx / length, dz / length
