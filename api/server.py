"""
api/server.py
=============
Optional FastAPI server that drives a simulation over HTTP, for bots,
replays and external tooling.

Start the server::

    python -m api.server          # → http://127.0.0.1:8000/state

Endpoints
---------
``GET  /state``               full snapshot
``POST /run/offer``           offer three run modifiers
``POST /run/start``           ``{"slot": n}`` start a run
``POST /step``                ``{"dt": s, "frames": n, "controls": {...}}``
``POST /glitch/choose``       ``{"slot": n}`` resolve a glitch prompt
``POST /run/bank``            leave the crash screen
``GET  /meta``                credits and upgrade levels
``POST /upgrades/{kind}``     buy one level
``POST /configure``           per-session tuning overrides (idle only)

Operations that are invalid in the current state answer 409; bad
slots, kinds or values answer 400.

.. note::

   This server is **not** required to run the Pygame view.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, Optional, Union

import uvicorn
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from sim.modifiers import GLITCHES
from sim.progression import UPGRADE_KINDS, upgrade_cost
from sim.session import Simulation, glitch_names, run_modifier_names
from sim.store import MetaRecord
from sim.vehicle import ControlInput

log = logging.getLogger("api")

# ── Pydantic request schemas ─────────────────────────────────────────────────


class ControlModel(BaseModel):
    """One frame of input."""
    steer_left: bool = False
    steer_right: bool = False
    accelerate: bool = False
    brake: bool = False
    lean: bool = False
    pointer_x: float = Field(default=0.0, ge=-1.0, le=1.0)
    pointer_y: float = Field(default=0.0, ge=-1.0, le=1.0)

    def to_input(self) -> ControlInput:
        return ControlInput(**self.model_dump())


class StepRequest(BaseModel):
    """Advance ``frames`` ticks of ``dt`` seconds with constant input."""
    dt: float = Field(default=1.0 / 60.0, ge=0.0, le=0.05)
    frames: int = Field(default=1, ge=1, le=3600)
    controls: ControlModel = Field(default_factory=ControlModel)


class SlotRequest(BaseModel):
    slot: int


class ConfigureRequest(BaseModel):
    overrides: Dict[str, Union[bool, int, float]]


# ── FastAPI application ──────────────────────────────────────────────────────


def create_app(simulation: Optional[Simulation] = None) -> FastAPI:
    """Build an app bound to *simulation* (a fresh one when *None*)."""
    sim = simulation or Simulation()
    lock = threading.Lock()

    app = FastAPI(
        title="Endless Overtake API",
        description="Drives the endless-road simulation one tick at a time.",
        version="1.0",
    )
    app.state.simulation = sim

    def guarded(action: Callable[[], Any]) -> Any:
        with lock:
            try:
                return action()
            except RuntimeError as exc:
                raise HTTPException(status_code=409, detail=str(exc))
            except (ValueError, IndexError) as exc:
                raise HTTPException(status_code=400, detail=str(exc))
            except Exception:
                log.exception("request failed in state %s", sim.state.value)
                raise HTTPException(status_code=500, detail="internal error")

    def meta_payload() -> Dict[str, Any]:
        record = MetaRecord.from_meta(sim.meta).model_dump()
        record["costs"] = {
            kind: upgrade_cost(sim.meta.upgrades.level(kind)) for kind in UPGRADE_KINDS
        }
        return record

    @app.get("/state")
    def get_state():
        def action():
            snap = sim.snapshot().as_dict()
            snap["run_offer_names"] = list(run_modifier_names(sim.run_offer))
            snap["glitch_offer_names"] = list(glitch_names(sim.glitch.offer))
            return snap
        return guarded(action)

    @app.post("/run/offer")
    def offer_run():
        def action():
            offer = sim.offer_run_modifiers()
            return {
                "offer": list(offer),
                "names": list(run_modifier_names(offer)),
            }
        return guarded(action)

    @app.post("/run/start")
    def start_run(req: SlotRequest):
        return guarded(lambda: {"modifier": sim.start_run(req.slot).name})

    @app.post("/step")
    def step(req: StepRequest):
        def action():
            controls = req.controls.to_input()
            advanced = 0
            for _ in range(req.frames):
                if not sim.tick(req.dt, controls):
                    break
                advanced += 1
            snap = sim.snapshot().as_dict()
            snap["advanced"] = advanced
            return snap
        return guarded(action)

    @app.post("/glitch/choose")
    def choose_glitch(req: SlotRequest):
        def action():
            entry = sim.choose_glitch(req.slot)
            return {"glitch": entry.name, "duration": entry.duration}
        return guarded(action)

    @app.get("/glitches")
    def list_glitches():
        return [
            {"name": g.name, "description": g.description, "duration": g.duration}
            for g in GLITCHES
        ]

    @app.post("/run/bank")
    def bank():
        def action():
            sim.bank_and_return()
            return {"state": sim.state.value, "credits": sim.meta.credits}
        return guarded(action)

    @app.get("/meta")
    def get_meta():
        return guarded(meta_payload)

    @app.post("/upgrades/{kind}")
    def buy_upgrade(kind: str):
        def action():
            bought = sim.purchase_upgrade(kind)
            payload = meta_payload()
            payload["purchased"] = bought
            return payload
        return guarded(action)

    @app.post("/configure")
    def configure(req: ConfigureRequest):
        def action():
            tuning = sim.configure(**req.overrides)
            return {"applied": sorted(req.overrides), "tuning": vars(tuning)}
        return guarded(action)

    return app


app = create_app()


# ── Standalone entry point ───────────────────────────────────────────────────

if __name__ == "__main__":
    import config
    from logging_setup import setup_logging
    from main import build_simulation

    setup_logging(logging.INFO)
    print(f"Starting Endless Overtake API on http://{config.API_HOST}:{config.API_PORT} …")
    uvicorn.run(create_app(build_simulation()), host=config.API_HOST, port=config.API_PORT)
