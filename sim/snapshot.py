"""
sim/snapshot.py
===============
Read-only containers handed to the render and HUD sinks after each tick.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from sim.progression import CrashReport


@dataclass(frozen=True)
class Transform:
    """World-space pose; ``z`` is relative to the player."""
    x: float
    y: float
    z: float
    yaw: float = 0.0


@dataclass(frozen=True)
class NpcTransform:
    id: str
    same: bool
    transform: Transform


@dataclass(frozen=True)
class CameraPose:
    position: Tuple[float, float, float]
    look_at: Tuple[float, float, float]
    yaw: float
    pitch: float


@dataclass(frozen=True)
class RenderFrame:
    """Everything the renderer needs; the core draws nothing."""
    player: Transform
    npcs: List[NpcTransform]
    camera: CameraPose
    fov: float
    fog_density: float
    shake: float
    distance: float
    curve_scale: float


@dataclass(frozen=True)
class HudSnapshot:
    speed_kmh: int
    overtakes: int
    goal: int
    stage: int
    speed_bar: float
    score: int
    combo: str
    heat_bar: float
    vignette: float
    glitch: str = ""
    glitch_remaining: float = 0.0
    credits: int = 0


@dataclass(frozen=True)
class Snapshot:
    """Full per-tick view of the simulation."""
    state: str
    hud: HudSnapshot
    render: Optional[RenderFrame] = None
    run_offer: Optional[Tuple[int, ...]] = None
    glitch_offer: Optional[Tuple[int, ...]] = None
    run_modifier: str = ""
    last_run: Optional[CrashReport] = None
    extras: Dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        """JSON-compatible mapping (API responses, logs)."""
        return asdict(self)
