#!/usr/bin/env python3
"""Player and traffic car rendering as projected boxes (mixin)."""

from __future__ import annotations

import math
from typing import List, Optional, Sequence, Tuple

import numpy as np
import pygame

from sim.snapshot import NpcTransform, RenderFrame, Transform

from .types import Camera, ColorRGB

# Unit box corners (x, y, z) scaled by half-width / height / half-length.
_BOX = np.array([
    [-1, 0, -1], [1, 0, -1], [1, 0, 1], [-1, 0, 1],
    [-1, 1, -1], [1, 1, -1], [1, 1, 1], [-1, 1, 1],
], dtype=float)

# Faces as corner indices: rear, front, left, right, roof.
_FACES = ((0, 1, 5, 4), (3, 2, 6, 7), (0, 3, 7, 4), (1, 2, 6, 5), (4, 5, 6, 7))
_FACE_SHADE = (0.55, 0.75, 0.65, 0.65, 1.0)


class VehicleRenderer:
    """Mixin that draws every car in the frame, far to near."""

    def _box_corners(self, t: Transform) -> np.ndarray:
        scale = np.array([self.CAR_HALF_W, self.CAR_HEIGHT, self.CAR_HALF_L])
        local = _BOX * scale
        c, s = math.cos(t.yaw), math.sin(t.yaw)
        rot = np.array([[c, 0.0, s], [0.0, 1.0, 0.0], [-s, 0.0, c]])
        return local @ rot.T + np.array([t.x, t.y, t.z])

    def draw_car(self, surface: pygame.Surface, camera: Camera,
                 t: Transform, color: ColorRGB, fog: float = 0.0) -> None:
        corners = self._box_corners(t)
        projected: List[Optional[Tuple[float, float, float]]] = [
            camera.project(*p) for p in corners
        ]
        if any(p is None for p in projected):
            return
        faces = sorted(
            zip(_FACES, _FACE_SHADE),
            key=lambda fs: -sum(projected[i][2] for i in fs[0]),
        )
        for idx, shade in faces:
            shaded = tuple(int(ch * shade) for ch in color)
            tinted = self.mix_color(shaded, self.FOG_COLOR, fog)
            pygame.draw.polygon(surface, tinted, [projected[i][:2] for i in idx])

    def _npc_color(self, npc: NpcTransform) -> ColorRGB:
        palette: Sequence[ColorRGB] = self.SAME_COLORS if npc.same else self.ONCOMING_COLORS
        return palette[sum(map(ord, npc.id)) % len(palette)]

    def draw_vehicles(self, surface: pygame.Surface, frame: RenderFrame, camera: Camera) -> None:
        entries = [(n.transform, self._npc_color(n)) for n in frame.npcs]
        entries.append((frame.player, self.PLAYER_COLOR))
        entries.sort(key=lambda e: -e[0].z)
        for t, color in entries:
            depth = t.z - camera.z
            fog = 1.0 - math.exp(-((frame.fog_density * depth) ** 2))
            self.draw_car(surface, camera, t, color, fog)
