#!/usr/bin/env python3
"""
sim/progression.py
==================
In-run progression (overtakes, stages, heat, combo, score) and the
cross-run meta economy (credits and permanent upgrades).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from sim.physics import round_half_up
from sim.tuning import SPEED_STAGES, Tuning

log = logging.getLogger("progression")

UPGRADE_KINDS = ("accel", "brake", "max_speed", "lateral")

# Fractional bonus granted per upgrade level.
UPGRADE_STEPS: Dict[str, float] = {
    "accel": 0.05,
    "brake": 0.05,
    "max_speed": 0.03,
    "lateral": 0.05,
}

UPGRADE_EXPONENT_CAP = 10


def upgrade_cost(level: int) -> int:
    """Credits needed to buy the next level: ``10 * 2**min(level, 10)``."""
    return 10 * (1 << min(UPGRADE_EXPONENT_CAP, max(0, int(level))))


@dataclass
class Upgrades:
    """Permanent upgrade levels."""

    accel: int = 0
    brake: int = 0
    max_speed: int = 0
    lateral: int = 0

    def level(self, kind: str) -> int:
        if kind not in UPGRADE_KINDS:
            raise ValueError(f"unknown upgrade {kind!r}")
        return getattr(self, kind)

    def bonus(self, kind: str) -> float:
        """Multiplier contributed by *kind* (``1 + level * step``)."""
        return 1.0 + self.level(kind) * UPGRADE_STEPS[kind]

    def copy(self) -> "Upgrades":
        return Upgrades(self.accel, self.brake, self.max_speed, self.lateral)


@dataclass
class MetaProgression:
    """Persisted currency plus upgrade levels."""

    credits: int = 0
    upgrades: Upgrades = field(default_factory=Upgrades)

    def purchase(self, kind: str) -> bool:
        """Buy one level of *kind*.

        Returns False (and changes nothing) when credits are short.
        """
        cost = upgrade_cost(self.upgrades.level(kind))
        if self.credits < cost:
            log.info("upgrade rejected kind=%s cost=%d credits=%d", kind, cost, self.credits)
            return False
        self.credits -= cost
        setattr(self.upgrades, kind, self.upgrades.level(kind) + 1)
        log.info("upgrade bought kind=%s level=%d", kind, self.upgrades.level(kind))
        return True


def crash_payout(score: float, overtakes: int, tuning: Optional[Tuning] = None) -> int:
    """Credits earned by a run: ``round(score * 0.2 + overtakes * 2)``."""
    tuning = tuning or Tuning()
    return round_half_up(
        score * tuning.payout_score_fraction + overtakes * tuning.payout_per_overtake
    )


@dataclass
class CrashReport:
    """Summary shown after a run ends."""

    score: float
    overtakes: int
    meters: float
    earned: int


@dataclass
class ProgressionTracker:
    """Overtake counting, stage goals and score accumulation for one run."""

    overtakes: int = 0
    stage_index: int = 0
    goal: int = SPEED_STAGES[0].goal
    run_time: float = 0.0
    meters: float = 0.0

    def reset(self) -> None:
        self.overtakes = 0
        self.stage_index = 0
        self.goal = SPEED_STAGES[0].goal
        self.run_time = 0.0
        self.meters = 0.0

    @property
    def cap_kmh(self) -> float:
        return SPEED_STAGES[self.stage_index].cap_kmh

    @property
    def stage_number(self) -> int:
        return self.stage_index + 1

    # ── heat / combo ──────────────────────────────────────────────────────

    def decay_heat(self, player, dt: float, tuning: Tuning) -> None:
        """Linear heat decay; the combo multiplier follows heat."""
        player.heat = max(0.0, player.heat - tuning.combo_decay * dt)
        player.combo = 1.0 + player.heat * tuning.combo_add

    # ── overtakes / stages ────────────────────────────────────────────────

    def register_overtake(self, player, same: bool, tuning: Tuning) -> None:
        self.overtakes += 1
        player.heat += tuning.heat_same if same else tuning.heat_oncoming
        self._advance_stage()

    def _advance_stage(self) -> None:
        if self.overtakes < self.goal:
            return
        previous = self.stage_index
        self.stage_index = min(len(SPEED_STAGES) - 1, self.stage_index + 1)
        self.goal = SPEED_STAGES[self.stage_index].goal + self.overtakes
        log.info(
            "stage %d -> %d goal=%d overtakes=%d",
            previous + 1, self.stage_index + 1, self.goal, self.overtakes,
        )

    # ── score ─────────────────────────────────────────────────────────────

    def accrue_score(self, player, dt: float, params) -> float:
        """Add this tick's score and return the gain.

        The slipstream glitch pays up to ``slipstream_bonus`` extra of the
        tick's gain, scaling with how close the player is to the corridor
        centre.
        """
        tuning = params.tuning
        gain = dt * player.speed * tuning.score_rate * player.combo * params.score_mult
        if params.effects.slipstream and tuning.slipstream_window > 0.0:
            centred = max(0.0, tuning.slipstream_window - abs(player.x))
            gain += gain * tuning.slipstream_bonus * centred / tuning.slipstream_window
        player.score += gain
        return gain

    def report(self, player, earned: int) -> CrashReport:
        return CrashReport(
            score=player.score,
            overtakes=self.overtakes,
            meters=self.meters,
            earned=earned,
        )
