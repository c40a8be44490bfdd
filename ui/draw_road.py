"""
ui/draw_road.py
===============
Renders the sky, ground and the curving road surface in perspective:
alternating asphalt stripes, edge lines, the centre dash and
exponential-squared distance fog.

All functions are *pure renderers*: they read the render frame and draw
to a surface.
"""

from __future__ import annotations

import math
from typing import List, Optional, Tuple

import numpy as np
import pygame

from sim.road import sample_curve
from sim.snapshot import RenderFrame

from .types import Camera


def fog_factors(depths: np.ndarray, density: float) -> np.ndarray:
    """``1 - exp(-(density * depth)^2)`` for every depth."""
    return 1.0 - np.exp(-np.square(density * depths))


class RoadRenderer:
    """Mixin that draws the environment behind the vehicles."""

    def draw_sky(self, surface: pygame.Surface, camera: Camera) -> None:
        horizon = camera.project(camera.x, camera.y, camera.z + 1000.0)
        hy = int(horizon[1]) if horizon else self.height // 2
        hy = max(0, min(self.height, hy))
        bands = 12
        for i in range(bands):
            y0 = hy * i // bands
            y1 = hy * (i + 1) // bands
            color = self.mix_color(self.SKY_TOP_COLOR, self.SKY_HORIZON_COLOR, i / (bands - 1))
            pygame.draw.rect(surface, color, (0, y0, self.width, y1 - y0 + 1))
        pygame.draw.rect(surface, self.GROUND_COLOR, (0, hy, self.width, self.height - hy))

    def _road_edges(
        self, frame: RenderFrame, camera: Camera,
    ) -> List[Optional[Tuple[Tuple[float, float], Tuple[float, float], Tuple[float, float], float, float]]]:
        distance = frame.distance
        dists, offsets = sample_curve(
            distance - self.ROAD_DRAW_BEHIND,
            distance + self.ROAD_DRAW_AHEAD,
            self.ROAD_SAMPLES,
            frame.curve_scale,
        )
        rel = dists - distance
        rows = []
        for d, z, off in zip(dists, rel, offsets):
            left = camera.project(off - self.ROAD_HALF_W, 0.0, z)
            right = camera.project(off + self.ROAD_HALF_W, 0.0, z)
            centre = camera.project(off, 0.0, z)
            if left is None or right is None or centre is None:
                rows.append(None)
                continue
            rows.append((left[:2], right[:2], centre[:2], centre[2], float(d)))
        return rows

    def draw_road(self, surface: pygame.Surface, frame: RenderFrame, camera: Camera) -> None:
        rows = self._road_edges(frame, camera)
        depths = np.array([r[3] if r else 0.0 for r in rows])
        fog = fog_factors(depths, frame.fog_density)

        # far to near so nearer quads overdraw
        for i in range(len(rows) - 1, 0, -1):
            near, far = rows[i - 1], rows[i]
            if near is None or far is None:
                continue
            stripe = int(math.floor(near[4] / self.STRIPE_LEN)) % 2 == 0
            base = self.ROAD_COLOR_A if stripe else self.ROAD_COLOR_B
            f = float(fog[i])
            quad = [near[0], near[1], far[1], far[0]]
            pygame.draw.polygon(surface, self.mix_color(base, self.FOG_COLOR, f), quad)

            edge = self.mix_color(self.ROAD_EDGE_COLOR, self.FOG_COLOR, f)
            pygame.draw.line(surface, edge, near[0], far[0], 2)
            pygame.draw.line(surface, edge, near[1], far[1], 2)

            if int(math.floor(near[4] / self.DASH_LEN)) % 2 == 0:
                dash = self.mix_color(self.LANE_DASH_COLOR, self.FOG_COLOR, f)
                pygame.draw.line(surface, dash, near[2], far[2], 2)

    def draw_fog_veil(self, surface: pygame.Surface, frame: RenderFrame) -> None:
        """Uniform haze over the scene; heavier fog reads as denser haze."""
        alpha = int(max(0.0, min(1.0, frame.fog_density * 6.0)) * 90)
        if alpha <= 0:
            return
        veil = pygame.Surface((self.width, self.height), pygame.SRCALPHA)
        veil.fill((*self.FOG_COLOR, alpha))
        surface.blit(veil, (0, 0))
