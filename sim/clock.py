"""
sim/clock.py
============
Outer frame driver.

:class:`SimulationClock` turns wall-clock timestamps into clamped tick
durations and feeds them to a :class:`~sim.session.Simulation`.  The
pygame view calls :meth:`SimulationClock.advance` once per rendered
frame; headless callers use :meth:`SimulationClock.run`.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from config import MAX_FRAME_DT
from sim.session import Simulation
from sim.snapshot import Snapshot
from sim.vehicle import NO_INPUT, ControlInput

log = logging.getLogger("clock")


class SimulationClock:
    """Frame-to-tick adapter.

    Parameters
    ----------
    simulation : Simulation
        Context to advance.
    max_dt : float
        Clamp applied to every elapsed interval.
    time_source : callable
        Monotonic seconds; injectable for tests.
    """

    def __init__(
        self,
        simulation: Simulation,
        max_dt: float = MAX_FRAME_DT,
        time_source: Callable[[], float] = time.perf_counter,
    ) -> None:
        if max_dt <= 0.0:
            raise ValueError(f"max_dt must be positive, got {max_dt}")
        self.simulation = simulation
        self.max_dt = max_dt
        self._time = time_source
        self._last: Optional[float] = None
        self._running = False
        self.frames = 0

    def elapsed(self, now: float) -> float:
        """Seconds since the previous call, clamped to ``[0, max_dt]``."""
        if self._last is None:
            self._last = now
            return 0.0
        dt = now - self._last
        self._last = now
        if dt < 0.0:
            log.warning("clock went backwards by %.4fs; ignoring frame", -dt)
            return 0.0
        return min(dt, self.max_dt)

    def advance(self, now: Optional[float] = None,
                controls: ControlInput = NO_INPUT) -> Snapshot:
        """Tick once for the interval ending at *now* and snapshot."""
        dt = self.elapsed(self._time() if now is None else now)
        self.simulation.tick(dt, controls)
        self.frames += 1
        return self.simulation.snapshot()

    def reset(self) -> None:
        """Forget the last timestamp (after a pause or a menu)."""
        self._last = None

    # ── headless loop ─────────────────────────────────────────────────────

    def run(
        self,
        input_source: Callable[[Snapshot], ControlInput],
        sink: Optional[Callable[[Snapshot], None]] = None,
        fps: float = 60.0,
        max_frames: Optional[int] = None,
        realtime: bool = True,
    ) -> int:
        """Drive the simulation until :meth:`stop` or *max_frames*.

        With ``realtime=False`` every frame advances exactly ``1 / fps``
        seconds and never sleeps.

        Returns the number of frames run.
        """
        period = 1.0 / fps
        self._running = True
        frames = 0
        snap = self.simulation.snapshot()
        sim_now = 0.0
        self.reset()
        if not realtime:
            self._last = sim_now
        log.info("clock started fps=%.1f realtime=%s", fps, realtime)
        try:
            while self._running and (max_frames is None or frames < max_frames):
                t0 = self._time()
                controls = input_source(snap)
                if realtime:
                    snap = self.advance(t0, controls)
                else:
                    sim_now += period
                    snap = self.advance(sim_now, controls)
                if sink is not None:
                    sink(snap)
                frames += 1
                if realtime:
                    time.sleep(max(0.0, period - (self._time() - t0)))
        except Exception:
            log.exception("clock loop aborted after %d frames", frames)
            raise
        finally:
            self._running = False
        log.info("clock stopped after %d frames", frames)
        return frames

    def stop(self) -> None:
        self._running = False
