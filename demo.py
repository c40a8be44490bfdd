#!/usr/bin/env python3
"""
Quick demo — drives the simulation headless with a simple autopilot so
you can watch runs, glitches, crashes and upgrades in the log without
opening a window.

Usage:
    python3 demo.py [seconds]
"""

import logging
import sys
from typing import Optional

from config import DEMO_SECONDS, TARGET_FPS
from sim.clock import SimulationClock
from sim.progression import UPGRADE_KINDS, upgrade_cost
from sim.session import RunState, Simulation
from sim.snapshot import Snapshot
from sim.vehicle import ControlInput

log = logging.getLogger("demo")


class Autopilot:
    """Input source that plays the whole loop on its own.

    Menus are answered with the first slot; while driving it holds the
    throttle and steers toward whichever side of the road has the
    largest time-to-collision.
    """

    # Entities further ahead than this are ignored when picking a side.
    _LOOKAHEAD_M = 60.0

    def __init__(self, simulation: Simulation):
        self.sim = simulation
        self.runs = 0
        self._side = 1.0

    def __call__(self, snap: Snapshot) -> ControlInput:
        sim = self.sim
        if sim.state is RunState.IDLE:
            self._shop()
            sim.offer_run_modifiers()
            sim.start_run(0)
            self.runs += 1
            return ControlInput()
        if sim.state is RunState.AWAITING_MODIFIER_CHOICE:
            sim.choose_glitch(0)
            return ControlInput()
        if sim.state is RunState.CRASHED:
            if sim.crash_cooldown <= 0.0:
                report = sim.last_run
                log.info("run %d over: %s", self.runs, report)
                sim.bank_and_return()
            return ControlInput()
        return self._drive()

    def _shop(self) -> None:
        for kind in UPGRADE_KINDS:
            if self.sim.meta.credits >= upgrade_cost(self.sim.meta.upgrades.level(kind)):
                self.sim.purchase_upgrade(kind)

    def _threat(self, lane: int) -> Optional[float]:
        sim = self.sim
        best = None
        for npc in sim.traffic.npcs:
            if npc.lane != lane or not 0.0 < npc.z < self._LOOKAHEAD_M:
                continue
            ttc = sim.traffic.time_to_collision(npc, sim.player.speed)
            if ttc is not None and (best is None or ttc < best):
                best = ttc
        return best

    def _drive(self) -> ControlInput:
        right, left = self._threat(1), self._threat(-1)
        if right is not None and (left is None or left > right):
            self._side = -1.0
        elif left is not None and (right is None or right > left):
            self._side = 1.0
        x = self.sim.player.x
        target = 0.9 * self._side
        return ControlInput(
            steer_left=x > target + 0.1,
            steer_right=x < target - 0.1,
            accelerate=True,
        )


def run_demo(simulation: Simulation, seconds: float = DEMO_SECONDS,
             fps: int = TARGET_FPS) -> Autopilot:
    """Simulate *seconds* of play without sleeping; returns the pilot."""
    pilot = Autopilot(simulation)
    clock = SimulationClock(simulation)
    clock.run(pilot, fps=fps, max_frames=int(seconds * fps), realtime=False)
    log.info(
        "demo finished runs=%d credits=%d upgrades=%s",
        pilot.runs, simulation.meta.credits, simulation.meta.upgrades,
    )
    return pilot


if __name__ == "__main__":
    from logging_setup import setup_logging

    setup_logging(logging.INFO)
    seconds = float(sys.argv[1]) if len(sys.argv) > 1 else DEMO_SECONDS
    print("Starting headless demo for %.0f simulated seconds..." % seconds)
    run_demo(Simulation(seed=7), seconds)
