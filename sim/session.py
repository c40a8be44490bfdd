#!/usr/bin/env python3
"""
sim/session.py
==============
Owned simulation context and run state machine.

:class:`Simulation` holds every piece of mutable state (player, traffic
pool, progression, glitch, meta economy, RNG) and exposes the external
operations: offering / choosing modifiers, buying upgrades, ticking and
snapshotting.

State machine::

    IDLE ──start_run──▶ RUNNING ──prompt──▶ AWAITING_MODIFIER_CHOICE
                          ▲  │                        │
                          │  └──crash──▶ CRASHED      │
                          └────choose_glitch──────────┘
    CRASHED ──bank_and_return──▶ IDLE

:meth:`Simulation.tick` dispatches on the state.  It is a no-op while
idle, while a prompt is pending and once a crash has settled.  For a
short cooldown after impact the wreck keeps coasting.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import fields, replace
from enum import Enum
from typing import Any, Optional, Tuple

from sim.collision import apply_impact, find_impact
from sim.modifiers import (
    GLITCHES,
    RUN_MODIFIERS,
    EffectiveParams,
    GlitchState,
    Modifier,
    derive_params,
    fold_effects,
    pick_distinct,
)
from sim.physics import clamp, kmh_to_mps, lerp, mps_to_kmh, round_half_up, smoothstep
from sim.progression import CrashReport, MetaProgression, ProgressionTracker, crash_payout
from sim.road import curve_heading, curve_offset
from sim.snapshot import CameraPose, HudSnapshot, NpcTransform, RenderFrame, Snapshot, Transform
from sim.store import MemoryStore
from sim.traffic import TrafficSimulator
from sim.tuning import Tuning
from sim.vehicle import NO_INPUT, ControlInput, PlayerState, lateral_bounds, step_vehicle

log = logging.getLogger("session")

_TUNING_FIELDS = {f.name for f in fields(Tuning)}


class RunState(str, Enum):
    IDLE = "IDLE"
    RUNNING = "RUNNING"
    AWAITING_MODIFIER_CHOICE = "AWAITING_MODIFIER_CHOICE"
    CRASHED = "CRASHED"


class Simulation:
    """The simulation context.

    Parameters
    ----------
    tuning : Tuning or None
        Base table; defaults when *None*.
    seed : int or None
        Seed for a private :class:`random.Random` (ignored if *rng* given).
    rng : random.Random or None
        Shared generator for traffic, selection and glitch rolls.
    store : object or None
        Anything with ``load() -> MetaProgression`` and
        ``save(MetaProgression) -> bool``; in-memory when *None*.
    """

    def __init__(
        self,
        tuning: Optional[Tuning] = None,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
        store: Any = None,
    ) -> None:
        self.base_tuning = tuning or Tuning()
        self.tuning = self.base_tuning
        self.rng = rng or random.Random(seed)
        self.store = store if store is not None else MemoryStore()
        self.meta: MetaProgression = self.store.load()

        self.state = RunState.IDLE
        self.player = PlayerState()
        self.progression = ProgressionTracker()
        self.glitch = GlitchState()
        self.traffic = TrafficSimulator(self.tuning, self.rng)
        self.traffic.seed()

        self.run_offer: Optional[Tuple[int, ...]] = None
        self.run_modifier: Optional[Modifier] = None
        self.run_upgrades = self.meta.upgrades.copy()
        self.crash_cooldown = 0.0
        self.last_run: Optional[CrashReport] = None

        self.controls = NO_INPUT
        self.steer = 0.0
        self.camera_position = (0.0, self.tuning.cam_height, self.tuning.cam_back)
        self.params: EffectiveParams = self._derive()

    # ── configuration ─────────────────────────────────────────────────────

    def configure(self, **overrides: Any) -> Tuning:
        """Per-session tuning overrides (speed scale, accel, fov, hitbox …).

        Only allowed while idle; rebuilds the traffic pool.
        """
        self._require(RunState.IDLE, "configure")
        unknown = set(overrides) - _TUNING_FIELDS
        if unknown:
            raise ValueError(f"unknown tuning fields: {sorted(unknown)}")
        self.tuning = replace(self.base_tuning, **overrides)
        self.traffic = TrafficSimulator(self.tuning, self.rng)
        self.traffic.seed()
        self.params = self._derive()
        log.info("tuning overrides %s", overrides)
        return self.tuning

    # ── run lifecycle ─────────────────────────────────────────────────────

    def offer_run_modifiers(self) -> Tuple[int, ...]:
        """Offer three distinct run modifiers (catalog indices)."""
        self._require(RunState.IDLE, "offer_run_modifiers")
        k = min(self.tuning.offer_size, len(RUN_MODIFIERS))
        self.run_offer = tuple(pick_distinct(self.rng, len(RUN_MODIFIERS), k))
        log.info("run offer %s", [RUN_MODIFIERS[i].name for i in self.run_offer])
        return self.run_offer

    def start_run(self, slot: int) -> Modifier:
        """Start a run with the offered modifier at *slot* (irreversible)."""
        self._require(RunState.IDLE, "start_run")
        if self.run_offer is None:
            raise RuntimeError("start_run needs a pending run-modifier offer")
        if not 0 <= slot < len(self.run_offer):
            raise IndexError(f"run slot {slot} outside offer of {len(self.run_offer)}")
        self.run_modifier = RUN_MODIFIERS[self.run_offer[slot]]
        self.run_offer = None
        self._reset_run()
        log.info(
            "run started modifier=%s upgrades=%s",
            self.run_modifier.name, self.run_upgrades,
        )
        return self.run_modifier

    def choose_glitch(self, slot: int) -> Modifier:
        """Resolve the pending glitch prompt and resume ticking."""
        self._require(RunState.AWAITING_MODIFIER_CHOICE, "choose_glitch")
        entry = self.glitch.choose(slot)
        self.params = self._derive()
        self.state = RunState.RUNNING
        return entry

    def bank_and_return(self) -> None:
        """Leave the crash screen for the menu."""
        self._require(RunState.CRASHED, "bank_and_return")
        self.crash_cooldown = 0.0
        self.state = RunState.IDLE

    def purchase_upgrade(self, kind: str) -> bool:
        """Buy one level of *kind*; applies from the next run."""
        if not self.meta.purchase(kind):
            return False
        self.store.save(self.meta)
        return True

    def _reset_run(self) -> None:
        self.player.reset()
        self.progression.reset()
        self.glitch.clear()
        self.traffic.seed()
        self.run_upgrades = self.meta.upgrades.copy()
        self.crash_cooldown = 0.0
        self.controls = NO_INPUT
        self.steer = 0.0
        self.camera_position = (0.0, self.tuning.cam_height, self.tuning.cam_back)
        self.params = self._derive()
        self.state = RunState.RUNNING

    def _require(self, state: RunState, op: str) -> None:
        if self.state is not state:
            raise RuntimeError(f"{op} is invalid in state {self.state.value}")

    def _derive(self) -> EffectiveParams:
        effects = fold_effects(
            self.run_modifier.effects if self.run_modifier else None,
            self.glitch.effects,
        )
        return derive_params(
            self.tuning, self.run_upgrades, effects, self.progression.stage_index,
        )

    # ── tick ──────────────────────────────────────────────────────────────

    def tick(self, dt: float, controls: ControlInput = NO_INPUT) -> bool:
        """Advance the simulation by *dt* seconds.

        Returns
        -------
        bool
            True when any state advanced, False for a no-op tick.

        Raises
        ------
        ValueError
            If *dt* is negative.
        """
        if dt < 0.0:
            raise ValueError(f"elapsed time must be non-negative, got {dt}")
        if self.state is RunState.RUNNING:
            self._tick_running(dt, controls)
            return True
        if self.state is RunState.CRASHED and self.crash_cooldown > 0.0:
            self._tick_wreck(dt)
            return True
        return False

    def _tick_running(self, dt: float, controls: ControlInput) -> None:
        player = self.player
        prog = self.progression
        prog.run_time += dt

        self.glitch.countdown(dt)
        if self.glitch.maybe_offer(self.rng, prog.run_time, self.tuning):
            self.state = RunState.AWAITING_MODIFIER_CHOICE
            return

        params = self._derive()
        world_dt = dt
        if params.effects.bullet_time:
            ttc = self.traffic.min_time_to_collision(player.speed)
            if ttc is not None and ttc < params.tuning.ttc_warn:
                world_dt = dt * params.tuning.bullet_time_scale

        self.controls = controls
        self.steer = step_vehicle(player, controls, params, world_dt)
        assert 0.0 <= player.speed <= params.max_speed + 1e-9, player.speed
        assert abs(player.x) <= lateral_bounds(params) + 1e-9, player.x
        prog.meters += player.speed * world_dt
        prog.decay_heat(player, world_dt, params.tuning)

        self._step_traffic(params, world_dt, live=True)

        if self.state is RunState.RUNNING:
            prog.accrue_score(player, world_dt, params)
        self.params = params
        self._update_camera(params, controls)

    def _tick_wreck(self, dt: float) -> None:
        self.crash_cooldown = max(0.0, self.crash_cooldown - dt)
        params = self._derive()
        self.controls = NO_INPUT
        self.steer = step_vehicle(self.player, NO_INPUT, params, dt)
        self.progression.meters += self.player.speed * dt
        self._step_traffic(params, dt, live=False)
        self.params = params
        self._update_camera(params, NO_INPUT)
        if self.crash_cooldown <= 0.0:
            log.info("wreck settled distance=%.1f", self.player.z)

    def _step_traffic(self, params: EffectiveParams, dt: float, live: bool) -> None:
        player = self.player
        traffic = self.traffic
        player_world_x = player.x + curve_offset(player.z, params.curve_scale)
        for npc in traffic.npcs:
            traffic.update(npc, player.speed, player.z, params, dt)
            traffic.avoid(npc, player.speed, dt)
            if not live:
                continue
            if self.state is RunState.RUNNING:
                impact = find_impact(player_world_x, (npc,), player.speed, params)
                if impact is not None:
                    self._crash(impact, params)
            if self.state is RunState.RUNNING and traffic.check_overtake(npc, player.speed):
                self.progression.register_overtake(player, npc.same, params.tuning)

    def _crash(self, impact, params: EffectiveParams) -> None:
        player = self.player
        prog = self.progression
        earned = crash_payout(player.score, prog.overtakes, params.tuning)
        self.meta.credits += earned
        self.store.save(self.meta)
        self.last_run = prog.report(player, earned)
        apply_impact(player, impact, params)
        self.glitch.clear()
        self.crash_cooldown = params.tuning.crash_cooldown
        self.state = RunState.CRASHED
        log.info(
            "crash npc=%s same=%s closing=%.1f score=%.0f overtakes=%d earned=%d",
            impact.npc.id, impact.npc.same, impact.closing_speed,
            player.score, prog.overtakes, earned,
        )

    # ── presentation ──────────────────────────────────────────────────────

    def _update_camera(self, params: EffectiveParams, controls: ControlInput) -> None:
        t = params.tuning
        target = (
            self.player.x + curve_offset(self.player.z, params.curve_scale),
            t.cam_height,
            t.cam_back,
        )
        self.camera_position = tuple(
            lerp(c, g, t.cam_follow_lerp) for c, g in zip(self.camera_position, target)
        )

    def _camera_pose(self, params: EffectiveParams) -> CameraPose:
        t = params.tuning
        look = (
            curve_offset(self.player.z + t.look_ahead_z, params.curve_scale),
            t.look_height,
            t.look_ahead_z,
        )
        cx, cy, cz = self.camera_position
        shake = self._shake(params)
        yaw = math.atan2(look[0] - cx, look[2] - cz) + self.controls.pointer_x * t.look_yaw_limit
        pitch = math.atan2(look[1] - cy, math.hypot(look[0] - cx, look[2] - cz))
        pitch = clamp(pitch + self.controls.pointer_y * t.look_pitch_limit, -0.3, 0.3)
        return CameraPose(position=(cx + shake, cy, cz), look_at=look, yaw=yaw, pitch=pitch)

    def _shake(self, params: EffectiveParams) -> float:
        if not params.effects.shake:
            return 0.0
        return math.sin(self.progression.run_time * 20.0) * 0.02

    def _fov(self, params: EffectiveParams) -> float:
        t = params.tuning
        frac = self.player.speed / (params.max_speed * 1.2) if params.max_speed > 0 else 0.0
        return clamp(t.fov_min + frac * (t.fov_max - t.fov_min), 35.0, 95.0)

    def render_frame(self) -> RenderFrame:
        params = self.params
        t = params.tuning
        cs = params.curve_scale
        lean = self.controls.lean
        player = Transform(
            x=self.player.x + curve_offset(self.player.z, cs) + (t.lean_x if lean else 0.0),
            y=0.2 + (t.lean_y if lean else 0.0),
            z=0.0,
            yaw=(self.steer + (t.lean_yaw if lean else 0.0)) * 0.12,
        )
        npcs = []
        for npc in self.traffic.npcs:
            if not self.traffic.in_window(npc):
                continue
            heading = curve_heading(self.player.z + npc.z, cs)
            npcs.append(NpcTransform(
                id=npc.id,
                same=npc.same,
                transform=Transform(
                    x=npc.render_x, y=0.0, z=npc.z,
                    yaw=heading if npc.same else heading + math.pi,
                ),
            ))
        return RenderFrame(
            player=player,
            npcs=npcs,
            camera=self._camera_pose(params),
            fov=self._fov(params),
            fog_density=t.fog_density,
            shake=self._shake(params),
            distance=self.player.z,
            curve_scale=cs,
        )

    def hud(self) -> HudSnapshot:
        t = self.tuning
        prog = self.progression
        player = self.player
        return HudSnapshot(
            speed_kmh=mps_to_kmh(player.speed),
            overtakes=prog.overtakes,
            goal=prog.goal,
            stage=prog.stage_number,
            speed_bar=clamp(player.speed / kmh_to_mps(prog.cap_kmh), 0.0, 1.0),
            score=round_half_up(player.score),
            combo=f"{player.combo:.2f}",
            heat_bar=clamp(player.heat / t.heat_bar_full, 0.0, 1.0),
            vignette=smoothstep(t.corridor_red_sec, t.corridor_amber_sec, player.heat) * 0.5,
            glitch=self.glitch.name,
            glitch_remaining=self.glitch.remaining,
            credits=self.meta.credits,
        )

    def snapshot(self) -> Snapshot:
        return Snapshot(
            state=self.state.value,
            hud=self.hud(),
            render=self.render_frame(),
            run_offer=self.run_offer,
            glitch_offer=self.glitch.offer,
            run_modifier=self.run_modifier.name if self.run_modifier else "",
            last_run=self.last_run,
            extras={
                "run_time": self.progression.run_time,
                "meters": self.progression.meters,
                "respawns": self.traffic.respawns,
                "effects": self.params.effects.present(),
            },
        )


def glitch_names(offer: Optional[Tuple[int, ...]]) -> Tuple[str, ...]:
    """Display names for a glitch offer."""
    if not offer:
        return ()
    return tuple(GLITCHES[i].name for i in offer)


def run_modifier_names(offer: Optional[Tuple[int, ...]]) -> Tuple[str, ...]:
    """Display names for a run-modifier offer."""
    if not offer:
        return ()
    return tuple(RUN_MODIFIERS[i].name for i in offer)
