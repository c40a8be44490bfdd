"""
ui/types.py
===========
Lightweight data containers used across every UI module.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Tuple

ColorRGB = Tuple[int, int, int]
ColorRGBA = Tuple[int, int, int, int]


@dataclass
class Camera:
    """Pinhole projection from the simulation's camera pose to pixels.

    World ``x`` is lateral, ``y`` up and ``z`` forward in the player
    frame.  ``yaw`` turns the view about ``y``; ``pitch`` tilts it.
    """
    screen_w: int
    screen_h: int
    fov_deg: float = 40.0
    x: float = 0.0
    y: float = 1.8
    z: float = -5.0
    yaw: float = 0.0
    pitch: float = 0.0
    near: float = 0.1

    @property
    def focal(self) -> float:
        return (self.screen_h / 2) / math.tan(math.radians(self.fov_deg) / 2)

    def project(self, wx: float, wy: float, wz: float) -> Optional[Tuple[float, float, float]]:
        """``(sx, sy, depth)`` for a world point, or None behind the near plane."""
        dx, dy, dz = wx - self.x, wy - self.y, wz - self.z
        cy, sy = math.cos(self.yaw), math.sin(self.yaw)
        rx = dx * cy - dz * sy
        rz = dx * sy + dz * cy
        cp, sp = math.cos(self.pitch), math.sin(self.pitch)
        ry = dy * cp - rz * sp
        depth = dy * sp + rz * cp
        if depth < self.near:
            return None
        f = self.focal
        return (
            self.screen_w / 2 + rx * f / depth,
            self.screen_h / 2 - ry * f / depth,
            depth,
        )


@dataclass
class ButtonRect:
    """Stores a button's screen rect and label for click detection."""
    label: str
    x: int
    y: int
    w: int
    h: int
    slot: int = 0

    def contains(self, mx: int, my: int) -> bool:
        return self.x <= mx <= self.x + self.w and self.y <= my <= self.y + self.h
