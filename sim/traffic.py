#!/usr/bin/env python3
"""
sim/traffic.py
==============
Fixed-size pool of computer-controlled traffic.

Entities live in the player's frame: ``z`` is the longitudinal distance
ahead of (positive) or behind (negative) the player.  The pool is built
once; seeding and respawning both rewrite an entity's fields in place
through :meth:`TrafficSimulator._randomize`.

Each tick an entity runs :meth:`TrafficSimulator.update` (countdown,
lateral placement, closing motion, wander, forced respawns, recycling)
followed by :meth:`TrafficSimulator.avoid`, a time-to-collision based
swerve away from the player's corridor.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from typing import List, Optional

from sim.modifiers import EffectiveParams
from sim.physics import clamp, rand_range
from sim.road import curve_offset
from sim.tuning import Tuning

log = logging.getLogger("traffic")


@dataclass
class NpcEntity:
    """One recycled traffic car.

    Attributes
    ----------
    lane : int
        Side of the road, ``+1`` or ``-1``.
    z : float
        Position in the player frame (m).
    speed : float
        Signed speed; negative for oncoming traffic.
    same : bool
        True for same-direction traffic.
    respawn : float
        Countdown (s) that must reach zero before recycling.
    avoid_x : float
        Avoidance offset, bounded by ``avoid_skill_threshold``.
    overtaken : bool
        Set once this life has been counted as an overtake.
    render_x : float
        Last computed world lateral position (m).
    """

    id: str
    same: bool
    seed_index: int
    lane: int = 1
    z: float = 0.0
    speed: float = 0.0
    respawn: float = 0.0
    wander_phase: float = 0.0
    wander_freq: float = 0.0
    wander_amp: float = 0.0
    avoid_x: float = 0.0
    overtaken: bool = False
    render_x: float = 0.0

    @property
    def wander(self) -> float:
        return math.sin(self.wander_phase) * self.wander_amp


class TrafficSimulator:
    """Owns the NPC pool and its behaviour.

    Parameters
    ----------
    tuning : Tuning
        Base table; sizes the pool and supplies seeding constants.
    rng : random.Random
        Shared, injectable generator.
    """

    def __init__(self, tuning: Tuning, rng: random.Random) -> None:
        self.tuning = tuning
        self.rng = rng
        self.npcs: List[NpcEntity] = []
        for i in range(tuning.oncoming_seed_count):
            self.npcs.append(NpcEntity(id=f"ONC_{i:02d}", same=False, seed_index=i))
        for i in range(tuning.same_seed_count):
            self.npcs.append(NpcEntity(id=f"SAME_{i:02d}", same=True, seed_index=i))
        self.respawns = 0

    # ── field randomisation ───────────────────────────────────────────────

    def _randomize(
        self,
        npc: NpcEntity,
        base_z: float,
        jitter: float,
        oncoming_wander: float = 1.0,
    ) -> None:
        """Fresh lane, offset, speed, countdown and wander for *npc*.

        Speeds always come from the configured ranges; *oncoming_wander*
        only widens the lane wander of oncoming entities.
        """
        t = self.tuning
        rng = self.rng
        npc.lane = 1 if rng.random() > 0.5 else -1
        npc.z = base_z + rand_range(rng, -jitter, jitter)
        if npc.same:
            npc.speed = rand_range(rng, t.same_speed_min, t.same_speed_max)
            npc.respawn = t.same_respawn_min + rng.random() * t.same_respawn_var
            amp = t.lane_wander_amp_same
        else:
            npc.speed = -rand_range(rng, t.oncoming_speed_min, t.oncoming_speed_max)
            npc.respawn = t.oncoming_respawn_min + rng.random() * t.oncoming_respawn_var
            amp = t.lane_wander_amp_oncoming * oncoming_wander
        npc.wander_amp = amp * rand_range(rng, 0.7, 1.3)
        npc.wander_freq = rand_range(rng, t.lane_wander_freq_min, t.lane_wander_freq_max)
        npc.wander_phase = rng.random() * math.pi * 2.0
        npc.avoid_x = 0.0
        npc.overtaken = False

    def seed(self) -> None:
        """Spread the whole pool out ahead of the player (run start)."""
        t = self.tuning
        for npc in self.npcs:
            if npc.same:
                base = t.same_seed_z_start + npc.seed_index * t.same_seed_spacing
                jitter = t.same_seed_rand
            else:
                base = t.oncoming_seed_z_start + npc.seed_index * t.oncoming_spacing
                jitter = t.oncoming_seed_rand
            self._randomize(npc, base, jitter)
        self.respawns = 0
        log.debug("seeded %d entities", len(self.npcs))

    def respawn(self, npc: NpcEntity, params: Optional[EffectiveParams] = None) -> None:
        """Recycle *npc* near its direction's seed start."""
        t = self.tuning
        base = t.same_seed_z_start if npc.same else t.oncoming_seed_z_start
        oncoming_wander = params.oncoming_wander if params is not None else 1.0
        self._randomize(npc, base, t.respawn_jitter, oncoming_wander)
        self.respawns += 1
        log.debug(
            "respawn %s lane=%d z=%.1f speed=%.1f countdown=%.1f",
            npc.id, npc.lane, npc.z, npc.speed, npc.respawn,
        )

    # ── queries ───────────────────────────────────────────────────────────

    @staticmethod
    def closing_speed(npc: NpcEntity, player_speed: float) -> float:
        return player_speed + npc.speed

    def in_window(self, npc: NpcEntity) -> bool:
        return self.tuning.window_behind <= npc.z <= self.tuning.window_ahead

    def time_to_collision(self, npc: NpcEntity, player_speed: float) -> Optional[float]:
        """Seconds until *npc* reaches the player, or None if diverging/behind."""
        closing = self.closing_speed(npc, player_speed)
        if closing <= 0.0 or npc.z <= 0.0:
            return None
        return npc.z / closing

    def min_time_to_collision(self, player_speed: float) -> Optional[float]:
        best: Optional[float] = None
        for npc in self.npcs:
            ttc = self.time_to_collision(npc, player_speed)
            if ttc is not None and (best is None or ttc < best):
                best = ttc
        return best

    def lateral_position(self, npc: NpcEntity, player_z: float, curve_scale: float = 1.0) -> float:
        """World lateral position: lane corridor + wander + avoidance + road curve."""
        t = self.tuning
        avoid = npc.avoid_x * t.avoid_x_max
        return (
            npc.lane * (1.0 + t.lane_margin_x + npc.wander + avoid)
            + curve_offset(player_z + npc.z, curve_scale)
        )

    # ── per-tick behaviour ────────────────────────────────────────────────

    def update(self, npc: NpcEntity, player_speed: float, player_z: float,
               params: EffectiveParams, dt: float) -> None:
        """Motion, wander, forced respawns and recycling for one entity.

        ``render_x`` is sampled last, so it always pairs with the
        entity's final ``z`` for this tick.
        """
        t = self.tuning
        npc.respawn = max(0.0, npc.respawn - dt)
        npc.z -= self.closing_speed(npc, player_speed) * dt
        npc.wander_phase += npc.wander_freq * dt

        rate = params.same_spawn if npc.same else params.oncoming_spawn
        if rate > 0.0 and self.rng.random() < rate * dt:
            npc.respawn = 0.0

        if npc.z < -t.avoid_lookahead_dist:
            npc.respawn = 0.0

        if not self.in_window(npc) and npc.respawn <= 0.0:
            self.respawn(npc, params)
        npc.render_x = self.lateral_position(npc, player_z, params.curve_scale)

    def avoid(self, npc: NpcEntity, player_speed: float, dt: float) -> bool:
        """Predictive swerve; returns True while the entity is threatened.

        Engages at ``avoid_lerp`` per second toward the far side and
        relaxes multiplicatively at the slower ``avoid_relax_lerp``.
        """
        t = self.tuning
        closing = self.closing_speed(npc, player_speed)
        if closing <= 0.0:
            return False
        gap = npc.z
        ttc = gap / closing
        if gap > 0.0 and ttc < t.avoid_lookahead_sec:
            direction = -1.0 if npc.lane > 0 else 1.0
            npc.avoid_x = clamp(
                npc.avoid_x + t.avoid_lerp * dt * direction,
                -t.avoid_skill_threshold,
                t.avoid_skill_threshold,
            )
            return True
        npc.avoid_x *= 1.0 - t.avoid_relax_lerp * dt
        return False

    def check_overtake(self, npc: NpcEntity, player_speed: float) -> bool:
        """True exactly once per life, when the entity drops behind the player."""
        if npc.overtaken:
            return False
        if npc.z < self.tuning.overtake_line and self.closing_speed(npc, player_speed) > 0.0:
            npc.overtaken = True
            return True
        return False
