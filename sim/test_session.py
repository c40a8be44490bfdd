#!/usr/bin/env python3
"""
Scenario tests for the simulation context and its run state machine.
"""

from __future__ import annotations

import json
import unittest

from sim.modifiers import GLITCHES, RUN_MODIFIERS
from sim.progression import MetaProgression
from sim.road import curve_offset
from sim.session import RunState, Simulation
from sim.store import MemoryStore
from sim.vehicle import NO_INPUT, ControlInput

DT = 1.0 / 60.0
THROTTLE = ControlInput(accelerate=True)


def _park_traffic(sim: Simulation, z: float = 150.0) -> None:
    """Freeze every entity far ahead so nothing moves unless the player does."""
    for npc in sim.traffic.npcs:
        npc.z = z
        npc.speed = 0.0
        npc.wander_amp = 0.0
        npc.respawn = 100.0


def _running(sim: Simulation, slot: int = 0) -> Simulation:
    sim.offer_run_modifiers()
    sim.start_run(slot)
    return sim


class StateMachineTests(unittest.TestCase):
    def test_idle_tick_is_noop(self) -> None:
        sim = Simulation(seed=1)
        self.assertIs(sim.state, RunState.IDLE)
        self.assertFalse(sim.tick(DT, THROTTLE))
        self.assertEqual(sim.player.speed, 0.0)

    def test_start_requires_offer_and_valid_slot(self) -> None:
        sim = Simulation(seed=1)
        with self.assertRaises(RuntimeError):
            sim.start_run(0)
        offer = sim.offer_run_modifiers()
        self.assertEqual(len(offer), 3)
        self.assertEqual(len(set(offer)), 3)
        self.assertTrue(all(0 <= i < len(RUN_MODIFIERS) for i in offer))
        with self.assertRaises(IndexError):
            sim.start_run(3)
        chosen = sim.start_run(2)
        self.assertEqual(chosen, RUN_MODIFIERS[offer[2]])
        self.assertIs(sim.state, RunState.RUNNING)
        self.assertIsNone(sim.run_offer)

    def test_operations_rejected_in_wrong_state(self) -> None:
        sim = _running(Simulation(seed=2))
        with self.assertRaises(RuntimeError):
            sim.offer_run_modifiers()
        with self.assertRaises(RuntimeError):
            sim.choose_glitch(0)
        with self.assertRaises(RuntimeError):
            sim.bank_and_return()
        with self.assertRaises(RuntimeError):
            sim.configure(speed_scale=0.5)

    def test_negative_elapsed_time_raises(self) -> None:
        sim = _running(Simulation(seed=2))
        with self.assertRaises(ValueError):
            sim.tick(-0.01, NO_INPUT)

    def test_configure_overrides_tuning(self) -> None:
        sim = Simulation(seed=2)
        sim.configure(speed_scale=0.5, hitbox_x_extra=0.3)
        self.assertEqual(sim.tuning.speed_scale, 0.5)
        self.assertAlmostEqual(sim.params.max_speed, 100.0 / 3.6 * 0.5)
        with self.assertRaises(ValueError):
            sim.configure(warp_drive=1.0)


class AccelerationScenarioTests(unittest.TestCase):
    def test_five_seconds_of_throttle(self) -> None:
        sim = Simulation(seed=4)
        sim.configure(hitbox_x_extra=0.1)
        _running(sim)
        for _ in range(300):
            sim.tick(DT, THROTTLE)
            self.assertLessEqual(sim.player.speed, sim.params.max_speed + 1e-9)
            self.assertLessEqual(abs(sim.player.x), 1.35 + 1e-9)
        self.assertIs(sim.state, RunState.RUNNING)
        self.assertLessEqual(sim.player.speed, sim.params.tuning.base_accel * 5.0 + 1e-9)
        self.assertGreater(sim.player.score, 0.0)
        self.assertAlmostEqual(sim.progression.run_time, 5.0)
        self.assertGreater(sim.progression.meters, 0.0)
        self.assertAlmostEqual(sim.progression.meters, sim.player.z)

    def test_same_seed_same_run(self) -> None:
        def play(seed: int):
            sim = _running(Simulation(seed=seed))
            steer = ControlInput(accelerate=True, steer_left=True)
            for i in range(400):
                sim.tick(DT, steer if i % 90 < 45 else THROTTLE)
            return (
                sim.state, sim.player.speed, sim.player.x, sim.player.score,
                [(n.z, n.lane, n.speed) for n in sim.traffic.npcs],
            )

        self.assertEqual(play(21), play(21))


class CrashScenarioTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store = MemoryStore(MetaProgression(credits=5))
        self.sim = _running(Simulation(seed=8, store=self.store))
        _park_traffic(self.sim)
        target = self.sim.traffic.npcs[-1]
        target.same = True
        target.lane = 1
        target.z = 1.0
        self.target = target
        self.sim.player.x = 1.0 + self.sim.tuning.lane_margin_x
        self.sim.player.score = 101.0
        self.sim.progression.overtakes = 3

    def test_crash_pays_out_and_persists(self) -> None:
        self.assertTrue(self.sim.tick(DT, NO_INPUT))
        self.assertIs(self.sim.state, RunState.CRASHED)
        self.assertEqual(self.sim.last_run.earned, 26)
        self.assertEqual(self.sim.last_run.overtakes, 3)
        self.assertEqual(self.sim.meta.credits, 31)
        self.assertEqual(self.store.load().credits, 31)
        self.assertEqual(self.store.saves, 1)
        self.assertAlmostEqual(self.sim.crash_cooldown, 1.5)

    def test_wreck_coasts_then_settles(self) -> None:
        self.sim.tick(DT, NO_INPUT)
        score = self.sim.player.score
        overtakes = self.sim.progression.overtakes
        self.sim.player.speed = 10.0
        meters = self.sim.progression.meters
        self.assertTrue(self.sim.tick(0.05, THROTTLE))
        self.assertLess(self.sim.player.speed, 10.0)
        self.assertGreater(self.sim.progression.meters, meters)
        self.assertEqual(self.sim.player.score, score)
        self.assertEqual(self.sim.progression.overtakes, overtakes)
        for _ in range(40):
            self.sim.tick(0.05, THROTTLE)
        self.assertEqual(self.sim.crash_cooldown, 0.0)
        self.assertFalse(self.sim.tick(0.05, THROTTLE))
        self.assertIs(self.sim.state, RunState.CRASHED)
        self.assertEqual(self.store.saves, 1)

    def test_bank_and_new_run(self) -> None:
        self.sim.tick(DT, NO_INPUT)
        self.sim.bank_and_return()
        self.assertIs(self.sim.state, RunState.IDLE)
        with self.assertRaises(RuntimeError):
            self.sim.start_run(0)
        _running(self.sim)
        self.assertEqual(self.sim.player.score, 0.0)
        self.assertEqual(self.sim.progression.overtakes, 0)
        self.assertEqual(self.sim.meta.credits, 31)

    def test_glitch_cleared_by_crash(self) -> None:
        self.sim.glitch.active = 0
        self.sim.glitch.remaining = 10.0
        self.sim.tick(DT, NO_INPUT)
        self.assertIsNone(self.sim.glitch.active)
        self.assertEqual(self.sim.snapshot().hud.glitch, "")


class GlitchFlowTests(unittest.TestCase):
    def setUp(self) -> None:
        self.sim = Simulation(seed=13)
        self.sim.configure(glitch_chance_per_tick=1.0, glitch_min_run_time=0.0)
        _running(self.sim)
        _park_traffic(self.sim)

    def test_prompt_pauses_until_choice(self) -> None:
        self.assertTrue(self.sim.tick(DT, THROTTLE))
        self.assertIs(self.sim.state, RunState.AWAITING_MODIFIER_CHOICE)
        offer = self.sim.glitch.offer
        self.assertEqual(len(set(offer)), 3)
        z = self.sim.player.z
        self.assertFalse(self.sim.tick(DT, THROTTLE))
        self.assertEqual(self.sim.player.z, z)
        with self.assertRaises(IndexError):
            self.sim.choose_glitch(7)
        entry = self.sim.choose_glitch(1)
        self.assertEqual(entry, GLITCHES[offer[1]])
        self.assertIs(self.sim.state, RunState.RUNNING)
        hud = self.sim.snapshot().hud
        self.assertEqual(hud.glitch, entry.name)
        self.assertEqual(hud.glitch_remaining, entry.duration)

    def test_bullet_time_slows_world_near_danger(self) -> None:
        self.sim.tick(DT, THROTTLE)
        self.sim.glitch.offer = None
        self.sim.glitch.active = next(i for i, g in enumerate(GLITCHES) if g.name == "Bullet Time")
        self.sim.glitch.remaining = 22.0
        self.sim.state = RunState.RUNNING
        self.sim.player.x = -1.35
        self.sim.player.z = 0.0
        self.sim.player.speed = 20.0
        self.sim.traffic.npcs[0].z = 20.0
        self.sim.tick(0.05, NO_INPUT)
        slowed = 0.05 * 0.6
        self.assertAlmostEqual(self.sim.player.z, (20.0 - 3.0 * slowed) * slowed)


class SnapshotTests(unittest.TestCase):
    def test_idle_hud_values(self) -> None:
        snap = Simulation(seed=1).snapshot()
        self.assertEqual(snap.state, "IDLE")
        self.assertEqual(snap.hud.speed_kmh, 0)
        self.assertEqual(snap.hud.stage, 1)
        self.assertEqual(snap.hud.goal, 3)
        self.assertEqual(snap.hud.combo, "1.00")
        self.assertEqual(snap.hud.vignette, 0.0)

    def test_hot_heat_lights_vignette(self) -> None:
        sim = Simulation(seed=1)
        sim.player.heat = 3.0
        sim.player.combo = 2.5
        hud = sim.hud()
        self.assertAlmostEqual(hud.vignette, 0.5)
        self.assertEqual(hud.heat_bar, 1.0)
        self.assertEqual(hud.combo, "2.50")

    def test_render_frame_during_run(self) -> None:
        sim = _running(Simulation(seed=5))
        for _ in range(30):
            sim.tick(DT, THROTTLE)
        frame = sim.snapshot().render
        self.assertTrue(35.0 <= frame.fov <= 95.0)
        self.assertAlmostEqual(frame.player.x, sim.player.x + curve_offset(sim.player.z))
        self.assertEqual(frame.camera.position[1], 1.8)
        self.assertTrue(-0.3 <= frame.camera.pitch <= 0.3)
        for npc in frame.npcs:
            self.assertTrue(-20.0 <= npc.transform.z <= 200.0)

    def test_snapshot_is_json_serialisable(self) -> None:
        sim = _running(Simulation(seed=6))
        sim.tick(DT, THROTTLE)
        json.dumps(sim.snapshot().as_dict())


class UpgradeTests(unittest.TestCase):
    def test_upgrades_frozen_for_current_run(self) -> None:
        store = MemoryStore(MetaProgression(credits=100))
        sim = _running(Simulation(seed=3, store=store))
        self.assertTrue(sim.purchase_upgrade("accel"))
        self.assertEqual(store.load().upgrades.accel, 1)
        self.assertEqual(sim.run_upgrades.accel, 0)
        self.assertEqual(sim.meta.credits, 90)
        sim.state = RunState.CRASHED
        sim.bank_and_return()
        _running(sim)
        self.assertEqual(sim.run_upgrades.accel, 1)

    def test_purchase_without_credits(self) -> None:
        store = MemoryStore()
        sim = Simulation(seed=3, store=store)
        self.assertFalse(sim.purchase_upgrade("lateral"))
        self.assertEqual(store.saves, 0)


if __name__ == "__main__":
    unittest.main()
