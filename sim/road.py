#!/usr/bin/env python3
"""
sim/road.py
===========
Procedural road shape.

The road centre line is a pure function of travelled distance: two
superimposed sinusoids of different wavelength and phase.  The same
function places the road mesh, the traffic corridor and the camera
look-ahead, so it must stay stateless.
"""

from __future__ import annotations

import math

import numpy as np

# ── Curve constants ──────────────────────────────────────────────────────────
CURVE_A1: float = 2.2
CURVE_A2: float = 1.2
CURVE_F1: float = 2.0 * math.pi / 520.0
CURVE_F2: float = 2.0 * math.pi / 810.0
CURVE_PH2: float = 2.1


def curve_offset(distance: float, scale: float = 1.0) -> float:
    """Lateral offset (m) of the road centre at *distance* metres.

    Parameters
    ----------
    distance : float
        Absolute distance along the road.
    scale : float
        Amplitude multiplier (road-shape glitches swell or flatten it).
    """
    return scale * (
        CURVE_A1 * math.sin(CURVE_F1 * distance)
        + CURVE_A2 * math.sin(CURVE_F2 * distance + CURVE_PH2)
    )


def curve_slope(distance: float, scale: float = 1.0) -> float:
    """Analytic derivative d(offset)/d(distance)."""
    return scale * (
        CURVE_A1 * CURVE_F1 * math.cos(CURVE_F1 * distance)
        + CURVE_A2 * CURVE_F2 * math.cos(CURVE_F2 * distance + CURVE_PH2)
    )


def curve_heading(distance: float, scale: float = 1.0) -> float:
    """Yaw (radians) of the road tangent at *distance*."""
    return math.atan(curve_slope(distance, scale))


# Largest possible |slope|; bounds the change between adjacent samples.
MAX_SLOPE: float = CURVE_A1 * CURVE_F1 + CURVE_A2 * CURVE_F2


def sample_curve(start: float, stop: float, count: int, scale: float = 1.0):
    """Vectorised sampling for renderers.

    Returns
    -------
    tuple of numpy.ndarray
        ``(distances, offsets)``, each of length *count*.
    """
    distances = np.linspace(start, stop, count)
    offsets = scale * (
        CURVE_A1 * np.sin(CURVE_F1 * distances)
        + CURVE_A2 * np.sin(CURVE_F2 * distances + CURVE_PH2)
    )
    return distances, offsets
