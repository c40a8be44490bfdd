#!/usr/bin/env python3
"""
sim/modifiers.py
================
Run modifiers, glitches and the per-tick parameter derivation.

Effects are a fixed-schema :class:`Effects` dataclass rather than an
open dict.  Each field declares how it folds (``mul``, ``add``,
``override`` or ``flag``) in its metadata, and :func:`fold_effects` is
the only place where effect sets are combined:

* ``mul``      — product of every present value.
* ``add``      — sum of every present value.
* ``override`` — last present value wins.
* ``flag``     — logical OR.

:func:`derive_params` then scales a :class:`~sim.tuning.Tuning` copy by
permanent upgrades, the folded effects and the current stage cap.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field, fields, replace
from typing import Any, List, Optional, Sequence, Tuple

from sim.physics import kmh_to_mps
from sim.progression import Upgrades
from sim.tuning import SPEED_STAGES, Tuning

log = logging.getLogger("modifiers")


def _mul(**kw: Any) -> Any:
    return field(default=None, metadata={"fold": "mul", **kw})


def _add(**kw: Any) -> Any:
    return field(default=None, metadata={"fold": "add", **kw})


def _override(**kw: Any) -> Any:
    return field(default=None, metadata={"fold": "override", **kw})


def _flag(**kw: Any) -> Any:
    return field(default=False, metadata={"fold": "flag", **kw})


@dataclass(frozen=True)
class Effects:
    """Sparse effect set; ``None`` / ``False`` means *not present*."""

    accel: Optional[float] = _mul()
    brake: Optional[float] = _mul()
    lateral: Optional[float] = _mul()
    damping: Optional[float] = _mul()
    score: Optional[float] = _mul()
    scrape: Optional[float] = _mul()
    oncoming_wander: Optional[float] = _mul()
    curve: Optional[float] = _mul()
    max_speed_bonus: Optional[float] = _add()
    oncoming_spawn: Optional[float] = _add()
    same_spawn: Optional[float] = _add()
    hitbox_x: Optional[float] = _override()
    hitbox_z: Optional[float] = _override()
    ghost: Optional[bool] = _override()
    bullet_time: bool = _flag()
    fog: bool = _flag()
    shake: bool = _flag()
    fov_tight: bool = _flag()
    fov_wide: bool = _flag()
    slipstream: bool = _flag()
    mirror: bool = _flag()

    def present(self) -> dict:
        """Only the fields that carry an effect (for logs and HUD)."""
        out = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None or value is False:
                continue
            out[f.name] = value
        return out


NO_EFFECTS = Effects()


def fold_effects(*layers: Optional[Effects]) -> Effects:
    """Combine effect layers in application order.

    ``None`` layers are skipped, so callers can pass an absent glitch
    directly.
    """
    combined: dict = {}
    for layer in layers:
        if layer is None:
            continue
        for f in fields(Effects):
            value = getattr(layer, f.name)
            if value is None or value is False:
                continue
            rule = f.metadata["fold"]
            prev = combined.get(f.name)
            if rule == "mul":
                combined[f.name] = value if prev is None else prev * value
            elif rule == "add":
                combined[f.name] = value if prev is None else prev + value
            elif rule == "override":
                combined[f.name] = value
            else:
                combined[f.name] = True
    return Effects(**combined)


@dataclass(frozen=True)
class Modifier:
    """Catalog entry.  ``duration`` is ``None`` for run-long modifiers."""

    name: str
    description: str
    effects: Effects
    duration: Optional[float] = None


RUN_MODIFIERS: Tuple[Modifier, ...] = (
    Modifier("Nitro", "Accel +25%, Max +5%", Effects(accel=1.25, max_speed_bonus=0.05)),
    Modifier("Sharp Brakes", "Brake +30%", Effects(brake=1.3)),
    Modifier("Sticky Tires", "Lateral +25%", Effects(lateral=1.25)),
    Modifier("Hot Streak", "Combo +0.15", Effects(score=1.15)),
)

GLITCHES: Tuple[Modifier, ...] = (
    Modifier("Bullet Time", "Time slows near danger. +20% score",
             Effects(bullet_time=True, score=1.2), 22.0),
    Modifier("Needle Threader", "Half width hitbox; -10% score",
             Effects(hitbox_x=0.5, score=0.9), 28.0),
    Modifier("Truck Mode", "Long hitbox, heavier scrapes",
             Effects(hitbox_z=1.6, scrape=1.4), 30.0),
    Modifier("Reverse Flow", "More oncoming spawns. +30% score",
             Effects(oncoming_spawn=0.35, score=1.3), 26.0),
    Modifier("Snake Road", "Road curves swell", Effects(curve=1.8), 24.0),
    Modifier("Lean Ghost", "Ghost hitbox shrinks by 50%", Effects(ghost=True), 25.0),
    Modifier("Fog Bank", "Heavy fog. +15% score", Effects(fog=True, score=1.15), 22.0),
    Modifier("Nitro Drip", "+20% accel", Effects(accel=1.2), 24.0),
    Modifier("Mirror Controls", "Steering inverted", Effects(mirror=True), 18.0),
    Modifier("Tunnel Vision", "Tighter FOV. +10% score",
             Effects(fov_tight=True, score=1.1), 20.0),
    Modifier("Fisheye", "Wider FOV. -10% score", Effects(fov_wide=True, score=0.9), 20.0),
    Modifier("Slipstream Draft", "Bonus for threading the centre", Effects(slipstream=True), 26.0),
    Modifier("Drift King", "+50% lateral, -40% damping",
             Effects(lateral=1.5, damping=0.6), 22.0),
    Modifier("Greased Road", "-30% lateral, -30% brake",
             Effects(lateral=0.7, brake=0.7), 22.0),
    Modifier("Blade Runner", "Faster oncoming. +20% score",
             Effects(oncoming_wander=1.35, score=1.2), 24.0),
    Modifier("Car-nival", "More same-lane spawns", Effects(same_spawn=0.3), 24.0),
    Modifier("Quake", "Cab shakes", Effects(shake=True), 18.0),
    Modifier("Straight Shot", "Road straightens", Effects(curve=0.6), 22.0),
)


def pick_distinct(rng: random.Random, n: int, k: int) -> List[int]:
    """Choose *k* distinct indices from ``range(n)`` without replacement.

    Uniform draws with rejection of duplicates.

    Raises
    ------
    ValueError
        If ``k`` is negative or larger than ``n``.
    """
    if k < 0 or k > n:
        raise ValueError(f"cannot pick {k} distinct entries from {n}")
    picked: List[int] = []
    used = set()
    while len(picked) < k:
        i = int(rng.random() * n)
        if i not in used:
            used.add(i)
            picked.append(i)
    return picked


# ══════════════════════════════════════════════════════════════════════════════
#  Effective parameters
# ══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class EffectiveParams:
    """Everything a tick needs, derived fresh from the layers.

    ``tuning`` is a scaled copy of the base table; the remaining fields
    are quantities that only exist after folding.
    """

    tuning: Tuning
    max_speed: float
    hit_x: float
    hit_z: float
    score_mult: float
    scrape: float
    oncoming_spawn: float
    same_spawn: float
    oncoming_wander: float
    curve_scale: float
    effects: Effects = NO_EFFECTS

    @property
    def mirror(self) -> bool:
        return self.effects.mirror


def derive_params(
    tuning: Tuning,
    upgrades: Upgrades,
    effects: Effects,
    stage_index: int,
) -> EffectiveParams:
    """Fold upgrades and effects into one parameter set for a tick.

    Parameters
    ----------
    tuning : Tuning
        Base table; never mutated.
    upgrades : Upgrades
        Permanent levels frozen at run start.
    effects : Effects
        Run modifier folded with the active glitch (if any).
    stage_index : int
        Current stage; selects the speed cap.
    """
    def mul(value: Optional[float]) -> float:
        return 1.0 if value is None else value

    fov_min = tuning.fov_min * (0.85 if effects.fov_tight else 1.0)
    if effects.fov_wide:
        fov_max = tuning.fov_max * 1.15
    elif effects.fov_tight:
        fov_max = tuning.fov_max * 0.85
    else:
        fov_max = tuning.fov_max

    scaled = replace(
        tuning,
        base_accel=tuning.base_accel * upgrades.bonus("accel") * mul(effects.accel),
        brake_accel=tuning.brake_accel * upgrades.bonus("brake") * mul(effects.brake),
        lateral_accel=tuning.lateral_accel * upgrades.bonus("lateral") * mul(effects.lateral),
        damping_x=tuning.damping_x * mul(effects.damping),
        fov_min=fov_min,
        fov_max=fov_max,
        fog_density=tuning.fog_density + (0.03 if effects.fog else 0.0),
    )

    stage = SPEED_STAGES[min(max(0, stage_index), len(SPEED_STAGES) - 1)]
    max_speed = (
        kmh_to_mps(stage.cap_kmh)
        * upgrades.bonus("max_speed")
        * (1.0 + (effects.max_speed_bonus or 0.0))
        * tuning.speed_scale
    )

    if effects.ghost:
        hit_x_factor = hit_z_factor = 0.5
    else:
        hit_x_factor = mul(effects.hitbox_x)
        hit_z_factor = mul(effects.hitbox_z)

    return EffectiveParams(
        tuning=scaled,
        max_speed=max_speed,
        hit_x=tuning.hitbox_x_extra * hit_x_factor,
        hit_z=tuning.hitbox_z_extra * hit_z_factor,
        score_mult=mul(effects.score),
        scrape=mul(effects.scrape),
        oncoming_spawn=effects.oncoming_spawn or 0.0,
        same_spawn=effects.same_spawn or 0.0,
        oncoming_wander=mul(effects.oncoming_wander),
        curve_scale=mul(effects.curve),
        effects=effects,
    )


# ══════════════════════════════════════════════════════════════════════════════
#  Glitch lifecycle
# ══════════════════════════════════════════════════════════════════════════════

@dataclass
class GlitchState:
    """At most one active glitch plus at most one pending offer."""

    active: Optional[int] = None
    remaining: float = 0.0
    offer: Optional[Tuple[int, ...]] = None
    catalog: Sequence[Modifier] = GLITCHES

    @property
    def effects(self) -> Optional[Effects]:
        if self.active is None:
            return None
        return self.catalog[self.active].effects

    @property
    def name(self) -> str:
        return "" if self.active is None else self.catalog[self.active].name

    @property
    def pending(self) -> bool:
        return self.offer is not None

    def clear(self) -> None:
        self.active = None
        self.remaining = 0.0
        self.offer = None

    def countdown(self, dt: float) -> None:
        """Run the active glitch's clock down; expire it at zero."""
        if self.active is None:
            return
        self.remaining = max(0.0, self.remaining - dt)
        if self.remaining <= 0.0:
            log.info("glitch expired name=%s", self.name)
            self.active = None

    def maybe_offer(self, rng: random.Random, run_time: float, tuning: Tuning) -> bool:
        """Roll for a new prompt; returns True when one was opened."""
        if self.active is not None or self.offer is not None:
            return False
        if run_time <= tuning.glitch_min_run_time:
            return False
        if rng.random() >= tuning.glitch_chance_per_tick:
            return False
        k = min(tuning.offer_size, len(self.catalog))
        self.offer = tuple(pick_distinct(rng, len(self.catalog), k))
        log.info(
            "glitch offer %s",
            [self.catalog[i].name for i in self.offer],
        )
        return True

    def choose(self, slot: int) -> Modifier:
        """Resolve the pending offer with the entry at *slot*.

        Raises
        ------
        RuntimeError
            If no offer is pending.
        IndexError
            If *slot* is outside the offer.
        """
        if self.offer is None:
            raise RuntimeError("no glitch offer pending")
        if not 0 <= slot < len(self.offer):
            raise IndexError(f"glitch slot {slot} outside offer of {len(self.offer)}")
        self.active = self.offer[slot]
        entry = self.catalog[self.active]
        self.remaining = float(entry.duration or 0.0)
        self.offer = None
        log.info("glitch chosen name=%s duration=%.1f", entry.name, self.remaining)
        return entry
