#!/usr/bin/env python3
"""
test_demo.py
============
Smoke test for the headless autopilot demo.

Usage::

    python -m unittest test_demo
"""

import unittest

from demo import Autopilot, run_demo
from sim.session import RunState, Simulation


class DemoSmokeTest(unittest.TestCase):
    def test_autopilot_starts_a_run(self) -> None:
        sim = Simulation(seed=7)
        pilot = Autopilot(sim)
        controls = pilot(sim.snapshot())
        self.assertIs(sim.state, RunState.RUNNING)
        self.assertEqual(pilot.runs, 1)
        self.assertFalse(controls.accelerate)

    def test_autopilot_holds_throttle_while_driving(self) -> None:
        sim = Simulation(seed=7)
        pilot = Autopilot(sim)
        pilot(sim.snapshot())
        self.assertTrue(pilot(sim.snapshot()).accelerate)

    def test_short_headless_run(self) -> None:
        sim = Simulation(seed=7)
        pilot = run_demo(sim, seconds=5.0, fps=60)
        self.assertGreaterEqual(pilot.runs, 1)
        self.assertGreater(sim.progression.meters + sim.meta.credits, 0)


if __name__ == "__main__":
    unittest.main()
