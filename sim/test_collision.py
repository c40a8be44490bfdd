#!/usr/bin/env python3
"""
Tests for the hitbox overlap check and the crash response.
"""

from __future__ import annotations

import math
import unittest

from sim.collision import (
    apply_impact,
    crash_severity,
    find_impact,
    hitbox_extents,
    overlaps,
)
from sim.modifiers import GLITCHES, NO_EFFECTS, derive_params
from sim.progression import Upgrades
from sim.traffic import NpcEntity
from sim.tuning import Tuning
from sim.vehicle import PlayerState


def _params(glitch: str = ""):
    effects = NO_EFFECTS
    if glitch:
        effects = next(g.effects for g in GLITCHES if g.name == glitch)
    return derive_params(Tuning(), Upgrades(), effects, 0)


def _npc(render_x: float, z: float, same: bool = True, speed: float = 15.0, id: str = "N") -> NpcEntity:
    return NpcEntity(id=id, same=same, seed_index=0, z=z, speed=speed, render_x=render_x)


class OverlapTests(unittest.TestCase):
    def test_check_is_symmetric(self) -> None:
        half_x, half_z = hitbox_extents(_params())
        for dx, dz in ((0.2, 0.5), (1.2, 2.6), (1.31, 0.0), (0.0, 2.71), (-0.7, 1.9)):
            self.assertEqual(
                overlaps(dx, dz, half_x, half_z),
                overlaps(-dx, -dz, half_x, half_z),
            )

    def test_base_extents(self) -> None:
        half_x, half_z = hitbox_extents(_params())
        self.assertAlmostEqual(half_x, 0.45 + 0.85)
        self.assertAlmostEqual(half_z, 1.1 + 1.6)

    def test_ghost_extents(self) -> None:
        half_x, half_z = hitbox_extents(_params("Lean Ghost"))
        self.assertAlmostEqual(half_x, 0.45 + 0.425)
        self.assertAlmostEqual(half_z, 1.1 + 0.8)

    def test_edges_are_exclusive(self) -> None:
        self.assertFalse(overlaps(1.0, 0.0, 1.0, 1.0))
        self.assertTrue(overlaps(0.999, 0.999, 1.0, 1.0))


class FindImpactTests(unittest.TestCase):
    def test_hit_and_miss(self) -> None:
        params = _params()
        self.assertIsNotNone(find_impact(0.3, [_npc(1.3, 2.0)], 20.0, params))
        self.assertIsNone(find_impact(0.3, [_npc(1.7, 2.0)], 20.0, params))
        self.assertIsNone(find_impact(0.3, [_npc(0.3, 2.8)], 20.0, params))

    def test_narrow_hitbox_misses_a_graze(self) -> None:
        npc = _npc(1.0, 0.0)
        self.assertIsNotNone(find_impact(0.0, [npc], 20.0, _params()))
        self.assertIsNone(find_impact(0.0, [npc], 20.0, _params("Needle Threader")))

    def test_first_entity_in_pool_order_wins(self) -> None:
        first = _npc(0.0, 1.0, id="A")
        second = _npc(0.0, 0.5, id="B")
        impact = find_impact(0.0, [first, second], 20.0, _params())
        self.assertEqual(impact.npc.id, "A")
        self.assertAlmostEqual(impact.closing_speed, 35.0)


class CrashResponseTests(unittest.TestCase):
    def test_severity_by_direction_and_scrape(self) -> None:
        self.assertEqual(crash_severity(_npc(0, 0, same=True), _params()), 7.0)
        self.assertEqual(crash_severity(_npc(0, 0, same=False), _params()), 2.0)
        self.assertAlmostEqual(crash_severity(_npc(0, 0, same=True), _params("Truck Mode")), 9.8)

    def test_impulse_pushes_away_and_bleeds_speed(self) -> None:
        params = _params()
        player = PlayerState(speed=30.0, x=0.0)
        npc = _npc(0.5, 1.0, same=False, speed=-28.0)
        impact = find_impact(0.0, [npc], player.speed, params)
        apply_impact(player, impact, params)
        nx = -0.5 / math.hypot(0.5, 1.0)
        self.assertAlmostEqual(player.x, nx * 0.5)
        self.assertAlmostEqual(player.vx, nx * 6.0)
        self.assertAlmostEqual(player.speed, 30.0 - 2.0 * 2.0)

    def test_speed_never_negative_after_impact(self) -> None:
        params = _params()
        player = PlayerState(speed=20.0)
        impact = find_impact(0.0, [_npc(0.0, 0.5, same=True, speed=15.0)], player.speed, params)
        apply_impact(player, impact, params)
        self.assertEqual(player.speed, 0.0)
        self.assertEqual(player.x, 0.0)

    def test_push_respects_lateral_bounds(self) -> None:
        params = _params()
        player = PlayerState(speed=10.0, x=1.3)
        impact = find_impact(1.3, [_npc(0.9, 0.0)], player.speed, params)
        apply_impact(player, impact, params)
        self.assertAlmostEqual(player.x, 1.35)


if __name__ == "__main__":
    unittest.main()
