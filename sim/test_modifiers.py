#!/usr/bin/env python3
"""
Tests for effect folding, catalog selection, parameter derivation and
the glitch lifecycle.
"""

from __future__ import annotations

import random
import unittest
from dataclasses import replace

from sim.modifiers import (
    GLITCHES,
    NO_EFFECTS,
    RUN_MODIFIERS,
    Effects,
    GlitchState,
    derive_params,
    fold_effects,
    pick_distinct,
)
from sim.physics import kmh_to_mps
from sim.progression import Upgrades
from sim.tuning import SPEED_STAGES, Tuning


def _glitch(name: str) -> int:
    return next(i for i, g in enumerate(GLITCHES) if g.name == name)


class FoldEffectsTests(unittest.TestCase):
    def test_multiplicative_fields_stack(self) -> None:
        folded = fold_effects(Effects(score=1.2), Effects(score=1.15))
        self.assertAlmostEqual(folded.score, 1.38)

    def test_additive_fields_sum(self) -> None:
        folded = fold_effects(Effects(oncoming_spawn=0.35), Effects(oncoming_spawn=0.1))
        self.assertAlmostEqual(folded.oncoming_spawn, 0.45)

    def test_override_last_wins_and_flags_or(self) -> None:
        folded = fold_effects(
            Effects(hitbox_x=0.5, fog=True),
            Effects(hitbox_x=0.7, shake=True),
        )
        self.assertEqual(folded.hitbox_x, 0.7)
        self.assertTrue(folded.fog)
        self.assertTrue(folded.shake)

    def test_absent_layers_are_skipped(self) -> None:
        self.assertEqual(fold_effects(None, None), NO_EFFECTS)
        nitro = RUN_MODIFIERS[0].effects
        self.assertEqual(fold_effects(nitro, None), fold_effects(nitro))

    def test_present_lists_only_set_fields(self) -> None:
        self.assertEqual(Effects(accel=1.2, mirror=True).present(), {"accel": 1.2, "mirror": True})


class CatalogTests(unittest.TestCase):
    def test_catalog_sizes_and_durations(self) -> None:
        self.assertEqual(len(RUN_MODIFIERS), 4)
        self.assertEqual(len(GLITCHES), 18)
        self.assertTrue(all(m.duration is None for m in RUN_MODIFIERS))
        self.assertTrue(all(g.duration and g.duration > 0 for g in GLITCHES))
        self.assertEqual(len({g.name for g in GLITCHES}), len(GLITCHES))

    def test_pick_distinct_indices_in_range(self) -> None:
        rng = random.Random(11)
        for _ in range(200):
            picked = pick_distinct(rng, len(GLITCHES), 3)
            self.assertEqual(len(picked), 3)
            self.assertEqual(len(set(picked)), 3)
            self.assertTrue(all(0 <= i < len(GLITCHES) for i in picked))

    def test_pick_all_entries(self) -> None:
        picked = pick_distinct(random.Random(3), 4, 4)
        self.assertEqual(sorted(picked), [0, 1, 2, 3])

    def test_pick_more_than_available_raises(self) -> None:
        with self.assertRaises(ValueError):
            pick_distinct(random.Random(0), 2, 3)
        with self.assertRaises(ValueError):
            pick_distinct(random.Random(0), 2, -1)


class DeriveParamsTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tuning = Tuning()

    def test_base_values_without_layers(self) -> None:
        params = derive_params(self.tuning, Upgrades(), NO_EFFECTS, 0)
        self.assertAlmostEqual(params.max_speed, kmh_to_mps(SPEED_STAGES[0].cap_kmh))
        self.assertAlmostEqual(params.hit_x, self.tuning.hitbox_x_extra)
        self.assertAlmostEqual(params.hit_z, self.tuning.hitbox_z_extra)
        self.assertEqual(params.score_mult, 1.0)
        self.assertEqual(params.curve_scale, 1.0)
        self.assertEqual(params.tuning.base_accel, self.tuning.base_accel)

    def test_upgrades_and_run_modifier_multiply(self) -> None:
        upgrades = Upgrades(accel=2, max_speed=1)
        nitro = RUN_MODIFIERS[0].effects
        params = derive_params(self.tuning, upgrades, nitro, 0)
        self.assertAlmostEqual(params.tuning.base_accel, 9.5 * 1.10 * 1.25)
        self.assertAlmostEqual(params.max_speed, kmh_to_mps(100.0) * 1.03 * 1.05)

    def test_stage_index_selects_cap_and_is_clamped(self) -> None:
        params = derive_params(self.tuning, Upgrades(), NO_EFFECTS, 99)
        self.assertAlmostEqual(params.max_speed, kmh_to_mps(SPEED_STAGES[-1].cap_kmh))

    def test_speed_scale_applies_to_max_speed(self) -> None:
        tuning = replace(self.tuning, speed_scale=0.5)
        params = derive_params(tuning, Upgrades(), NO_EFFECTS, 0)
        self.assertAlmostEqual(params.max_speed, kmh_to_mps(100.0) * 0.5)

    def test_ghost_halves_both_extras(self) -> None:
        ghost = GLITCHES[_glitch("Lean Ghost")].effects
        params = derive_params(self.tuning, Upgrades(), ghost, 0)
        self.assertAlmostEqual(params.hit_x, 0.425)
        self.assertAlmostEqual(params.hit_z, 0.8)

    def test_hitbox_overrides(self) -> None:
        truck = GLITCHES[_glitch("Truck Mode")].effects
        params = derive_params(self.tuning, Upgrades(), truck, 0)
        self.assertAlmostEqual(params.hit_z, 1.6 * 1.6)
        self.assertAlmostEqual(params.scrape, 1.4)

    def test_presentation_effects(self) -> None:
        tunnel = derive_params(self.tuning, Upgrades(), Effects(fov_tight=True), 0).tuning
        self.assertAlmostEqual(tunnel.fov_min, 40.0 * 0.85)
        self.assertAlmostEqual(tunnel.fov_max, 58.0 * 0.85)
        wide = derive_params(self.tuning, Upgrades(), Effects(fov_wide=True), 0).tuning
        self.assertAlmostEqual(wide.fov_min, 40.0)
        self.assertAlmostEqual(wide.fov_max, 58.0 * 1.15)
        fog = derive_params(self.tuning, Upgrades(), Effects(fog=True), 0).tuning
        self.assertAlmostEqual(fog.fog_density, 0.06)

    def test_base_tuning_never_mutated(self) -> None:
        derive_params(self.tuning, Upgrades(accel=5), Effects(accel=2.0, lateral=2.0), 3)
        self.assertEqual(self.tuning, Tuning())


class GlitchStateTests(unittest.TestCase):
    def setUp(self) -> None:
        self.always = replace(Tuning(), glitch_chance_per_tick=1.0)
        self.rng = random.Random(5)

    def test_no_offer_before_minimum_run_time(self) -> None:
        state = GlitchState()
        self.assertFalse(state.maybe_offer(self.rng, 10.0, self.always))
        self.assertIsNone(state.offer)

    def test_offer_then_choose(self) -> None:
        state = GlitchState()
        self.assertTrue(state.maybe_offer(self.rng, 10.5, self.always))
        self.assertTrue(state.pending)
        self.assertEqual(len(set(state.offer)), 3)
        chosen_index = state.offer[1]
        entry = state.choose(1)
        self.assertEqual(entry, GLITCHES[chosen_index])
        self.assertEqual(state.active, chosen_index)
        self.assertEqual(state.remaining, entry.duration)
        self.assertFalse(state.pending)

    def test_no_second_offer_while_active(self) -> None:
        state = GlitchState()
        state.maybe_offer(self.rng, 11.0, self.always)
        state.choose(0)
        self.assertFalse(state.maybe_offer(self.rng, 12.0, self.always))

    def test_choose_without_offer_or_bad_slot(self) -> None:
        state = GlitchState()
        with self.assertRaises(RuntimeError):
            state.choose(0)
        state.maybe_offer(self.rng, 11.0, self.always)
        with self.assertRaises(IndexError):
            state.choose(3)
        self.assertTrue(state.pending)

    def test_expiry_removes_effects(self) -> None:
        state = GlitchState()
        state.maybe_offer(self.rng, 11.0, self.always)
        entry = state.choose(0)
        state.countdown(entry.duration - 1.0)
        self.assertIsNotNone(state.effects)
        state.countdown(1.0)
        self.assertIsNone(state.active)
        self.assertIsNone(state.effects)
        self.assertEqual(state.name, "")


if __name__ == "__main__":
    unittest.main()
