#!/usr/bin/env python3
"""
sim/collision.py
================
Player-versus-traffic overlap test and crash response.

The test is an axis-aligned box check in normalised units: each axis gap
is divided by the combined half-extent (base + extra) and a hit needs
both normalised gaps below one.  Only the magnitude of each gap matters,
so the check is symmetric in which body is called the player.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from sim.modifiers import EffectiveParams
from sim.physics import clamp, normalize
from sim.traffic import NpcEntity
from sim.vehicle import PlayerState, lateral_bounds


def overlaps(dx: float, dz: float, half_x: float, half_z: float) -> bool:
    """True when the gap *(dx, dz)* lies inside the combined extents."""
    return abs(dx / half_x) < 1.0 and abs(dz / half_z) < 1.0


def hitbox_extents(params: EffectiveParams) -> Tuple[float, float]:
    """Combined lateral / longitudinal half-extents for this tick."""
    t = params.tuning
    return t.hitbox_half_x + params.hit_x, t.hitbox_half_z + params.hit_z


@dataclass(frozen=True)
class Impact:
    """A detected crash."""

    npc: NpcEntity
    closing_speed: float
    player_x: float


def find_impact(
    player_world_x: float,
    npcs: Iterable[NpcEntity],
    player_speed: float,
    params: EffectiveParams,
) -> Optional[Impact]:
    """First entity (in pool order) overlapping the player, if any.

    The player sits at ``z = 0`` of its own frame; entity lateral
    positions come from the last :meth:`TrafficSimulator.update`.
    """
    half_x, half_z = hitbox_extents(params)
    for npc in npcs:
        if overlaps(npc.render_x - player_world_x, npc.z, half_x, half_z):
            return Impact(npc=npc, closing_speed=player_speed + npc.speed,
                          player_x=player_world_x)
    return None


def crash_severity(npc: NpcEntity, params: EffectiveParams) -> float:
    """Speed-loss factor; same-direction hits punish harder than oncoming."""
    t = params.tuning
    base = t.crash_rel_speed_same if npc.same else t.crash_impact_oncoming
    return base * params.scrape


def apply_impact(player: PlayerState, impact: Impact, params: EffectiveParams) -> None:
    """Shove the player away from the entity and bleed off speed."""
    t = params.tuning
    nx, _nz = normalize(impact.player_x - impact.npc.render_x, -impact.npc.z)
    bound = lateral_bounds(params)
    player.x = clamp(player.x + nx * t.crash_push, -bound, bound)
    player.vx = nx * t.crash_push_velocity
    player.speed = max(0.0, player.speed - impact.closing_speed * crash_severity(impact.npc, params))
