#!/usr/bin/env python3
"""
sim/vehicle.py
==============
Player vehicle state and its per-tick integration.

Lateral motion is an explicit damped-velocity model: steering drives
lateral acceleration and a decay term proportional to velocity pulls it
back toward zero.  Longitudinal motion is throttle / coast / brake with
a hard clamp at the effective top speed.
"""

from __future__ import annotations

from dataclasses import dataclass

from sim.modifiers import EffectiveParams
from sim.physics import clamp


@dataclass
class PlayerState:
    """Mutable player state for one run.

    Attributes
    ----------
    speed : float
        Longitudinal speed (m/s), always within ``[0, max_speed]``.
    x : float
        Lateral offset from the road centre line (lane units).
    vx : float
        Lateral velocity.
    z : float
        Distance travelled (m).
    combo, heat, score : float
        Scoring accumulators.
    """

    speed: float = 0.0
    x: float = 0.0
    vx: float = 0.0
    z: float = 0.0
    combo: float = 1.0
    heat: float = 0.0
    score: float = 0.0

    def reset(self) -> None:
        self.speed = 0.0
        self.x = 0.0
        self.vx = 0.0
        self.z = 0.0
        self.combo = 1.0
        self.heat = 0.0
        self.score = 0.0


@dataclass(frozen=True)
class ControlInput:
    """One frame of input, read-only to the core.

    ``pointer_x`` / ``pointer_y`` are roughly in ``[-0.5, 0.5]``.
    """

    steer_left: bool = False
    steer_right: bool = False
    accelerate: bool = False
    brake: bool = False
    lean: bool = False
    pointer_x: float = 0.0
    pointer_y: float = 0.0


NO_INPUT = ControlInput()


def lateral_bounds(params: EffectiveParams) -> float:
    """Half-width of the drivable band (``1 + laneOffsetMax``)."""
    return 1.0 + params.tuning.lane_offset_max


def steering_signal(controls: ControlInput, params: EffectiveParams) -> float:
    """Combined keyboard + pointer steering, inverted by mirror controls."""
    steer = (-1.0 if controls.steer_left else 0.0) + (1.0 if controls.steer_right else 0.0)
    steer += controls.pointer_x * params.tuning.pointer_steer_gain
    return -steer if params.mirror else steer


def step_vehicle(
    player: PlayerState,
    controls: ControlInput,
    params: EffectiveParams,
    dt: float,
) -> float:
    """Advance *player* by *dt* seconds.

    Returns
    -------
    float
        The steering signal used, for presentation (yaw).
    """
    tuning = params.tuning

    # ── lateral ───────────────────────────────────────────────────────────
    steer = steering_signal(controls, params)
    lateral = tuning.lateral_accel * (tuning.lean_hold_scale if controls.lean else 1.0)
    player.vx += steer * lateral * dt
    player.vx -= player.vx * tuning.damping_x * dt
    bound = lateral_bounds(params)
    player.x = clamp(player.x + player.vx * dt, -bound, bound)

    # ── longitudinal ──────────────────────────────────────────────────────
    if controls.accelerate:
        player.speed += tuning.base_accel * dt
    else:
        player.speed -= tuning.auto_down * dt
    if controls.brake:
        player.speed -= tuning.brake_accel * dt
    player.speed = clamp(player.speed, 0.0, params.max_speed)

    player.z += player.speed * dt
    return steer
