#!/usr/bin/env python3
"""
sim/tuning.py
=============
Tunable physics, traffic and scoring constants for the endless-road
simulation.  Every constant lives in the frozen :class:`Tuning`
dataclass so that experiments can swap tables without touching code;
per-run overrides go through :func:`dataclasses.replace`.

Also holds the speed-stage table that caps top speed and sets the
overtake goals.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class SpeedStage:
    """One speed-cap tier."""

    cap_kmh: float
    goal: int


SPEED_STAGES: Tuple[SpeedStage, ...] = (
    SpeedStage(100.0, 3),
    SpeedStage(130.0, 4),
    SpeedStage(160.0, 5),
    SpeedStage(190.0, 6),
    SpeedStage(220.0, 7),
    SpeedStage(250.0, 8),
    SpeedStage(280.0, 9),
)


@dataclass(frozen=True)
class Tuning:
    """Immutable bag of every base tunable.

    Groups: player handling, traffic seeding, traffic respawn, traffic
    motion, avoidance, collision, scoring, camera / presentation.
    """

    # ── Player handling ───────────────────────────────────────────────────
    lateral_accel: float = 28.0
    """Lateral acceleration per unit of steering signal (lanes/s²)."""

    damping_x: float = 6.0
    """Lateral velocity decay rate (1/s)."""

    base_accel: float = 9.5
    """Throttle acceleration (m/s²)."""

    brake_accel: float = 16.0
    """Brake deceleration (m/s²), stacked with auto-decay."""

    auto_down: float = 3.0
    """Coasting deceleration when the throttle is released (m/s²)."""

    lane_offset_max: float = 0.35
    """How far past the outer lane centres the player may drift."""

    lean_hold_scale: float = 1.5
    """Lateral-accel multiplier while lean is held."""

    pointer_steer_gain: float = 1.5
    """Steering contribution of the horizontal pointer axis."""

    speed_scale: float = 1.0
    """Global top-speed multiplier (tuning panel)."""

    # ── Traffic seeding ───────────────────────────────────────────────────
    oncoming_seed_count: int = 4
    oncoming_seed_z_start: float = 80.0
    oncoming_spacing: float = 70.0
    oncoming_seed_rand: float = 30.0
    same_seed_count: int = 6
    same_seed_z_start: float = 50.0
    same_seed_spacing: float = 35.0
    same_seed_rand: float = 30.0

    # ── Traffic respawn ───────────────────────────────────────────────────
    respawn_jitter: float = 10.0
    """± jitter around the seed start used when recycling an entity."""

    oncoming_respawn_min: float = 180.0
    oncoming_respawn_var: float = 140.0
    same_respawn_min: float = 120.0
    same_respawn_var: float = 160.0

    oncoming_speed_min: float = 16.0
    oncoming_speed_max: float = 24.0
    same_speed_min: float = 12.0
    same_speed_max: float = 23.0

    window_behind: float = -20.0
    """Trailing edge of the visible window (player frame, m)."""

    window_ahead: float = 200.0
    """Leading edge of the visible window (player frame, m)."""

    # ── Traffic motion ────────────────────────────────────────────────────
    lane_margin_x: float = 0.15
    lane_wander_amp_same: float = 0.1
    lane_wander_amp_oncoming: float = 0.14
    lane_wander_freq_min: float = 0.4
    lane_wander_freq_max: float = 0.9

    # ── Avoidance ─────────────────────────────────────────────────────────
    avoid_lookahead_sec: float = 1.6
    """Time-to-collision below which an entity starts to swerve."""

    avoid_lookahead_dist: float = 38.0
    """Entities this far behind the player are recycled."""

    avoid_x_max: float = 0.55
    """Lateral metres per unit of avoidance offset."""

    avoid_lerp: float = 0.08
    """Avoidance attack rate (units/s)."""

    avoid_relax_lerp: float = 0.04
    """Avoidance release rate (fraction/s); slower than attack."""

    avoid_skill_threshold: float = 0.35
    """Clamp on the avoidance offset magnitude."""

    ttc_danger: float = 1.0
    ttc_warn: float = 2.2
    """Time-to-collision that engages bullet time."""

    bullet_time_scale: float = 0.6
    """World time multiplier while bullet time is engaged."""

    # ── Collision ─────────────────────────────────────────────────────────
    hitbox_half_x: float = 0.45
    hitbox_half_z: float = 1.1
    hitbox_x_extra: float = 0.85
    hitbox_z_extra: float = 1.6
    crash_rel_speed_same: float = 7.0
    """Speed-loss severity for a same-direction crash."""

    crash_impact_oncoming: float = 2.0
    """Speed-loss severity for an oncoming crash."""

    crash_push: float = 0.5
    """Positional shove along the separation vector (m)."""

    crash_push_velocity: float = 6.0
    crash_cooldown: float = 1.5
    """Seconds the wreck coasts before the run settles."""

    # ── Scoring ───────────────────────────────────────────────────────────
    score_rate: float = 0.5
    combo_add: float = 0.5
    combo_decay: float = 0.28
    heat_oncoming: float = 0.15
    heat_same: float = 0.08
    heat_bar_full: float = 1.5
    overtake_line: float = -2.0
    """Player-frame position an entity must cross to count as overtaken."""

    payout_score_fraction: float = 0.2
    payout_per_overtake: float = 2.0
    slipstream_window: float = 0.3
    slipstream_bonus: float = 0.3

    # ── Glitch triggering ─────────────────────────────────────────────────
    glitch_chance_per_tick: float = 0.005
    glitch_min_run_time: float = 10.0
    offer_size: int = 3

    # ── Camera / presentation ─────────────────────────────────────────────
    corridor_red_sec: float = 1.2
    corridor_amber_sec: float = 2.5
    cam_follow_lerp: float = 0.22
    cam_height: float = 1.8
    cam_back: float = -5.0
    look_ahead_z: float = 12.0
    look_height: float = 0.8
    look_yaw_limit: float = 0.6
    look_pitch_limit: float = 0.35
    lean_x: float = -0.55
    lean_y: float = 0.08
    lean_yaw: float = -0.5
    fov_min: float = 40.0
    fov_max: float = 58.0
    fog_density: float = 0.03
