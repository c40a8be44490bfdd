#!/usr/bin/env python3
"""
Teardown tests for the pygame view (no window is opened).
"""

from __future__ import annotations

import unittest
from unittest import mock

from sim.clock import MAX_FRAME_DT
from sim.session import Simulation
from ui.pygame_view import PygameRaceView


class TeardownTests(unittest.TestCase):
    def setUp(self) -> None:
        self.view = PygameRaceView(Simulation(seed=3))

    def _run_with_loop_error(self, error: BaseException) -> mock.MagicMock:
        with mock.patch("ui.pygame_view.pygame.init"), \
                mock.patch("ui.pygame_view.pygame.quit") as quit_, \
                mock.patch.object(self.view, "_open_window"), \
                mock.patch.object(self.view, "_main_loop", side_effect=error):
            with self.assertRaises(type(error)):
                self.view.run()
        return quit_

    def test_quit_after_tick_failure(self) -> None:
        quit_ = self._run_with_loop_error(RuntimeError("tick failed"))
        quit_.assert_called_once_with()

    def test_quit_after_keyboard_interrupt(self) -> None:
        quit_ = self._run_with_loop_error(KeyboardInterrupt())
        quit_.assert_called_once_with()

    def test_quit_after_window_failure(self) -> None:
        with mock.patch("ui.pygame_view.pygame.init"), \
                mock.patch("ui.pygame_view.pygame.quit") as quit_, \
                mock.patch.object(self.view, "_open_window", side_effect=OSError("no display")):
            with self.assertRaises(OSError):
                self.view.run()
        quit_.assert_called_once_with()

    def test_default_frame_clamp(self) -> None:
        self.assertEqual(self.view.sim_clock.max_dt, MAX_FRAME_DT)


if __name__ == "__main__":
    unittest.main()
