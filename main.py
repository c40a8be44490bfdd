#!/usr/bin/env python3
"""
main.py
=======
Entry point.

Environment overrides
---------------------
``OVERTAKE_SEED``       integer seed for the shared RNG
``OVERTAKE_STORE``      path of the meta-progression JSON file
``OVERTAKE_HEADLESS``   ``1`` runs the autopilot demo instead of pygame
``OVERTAKE_LOG_LEVEL``  logging level name (``INFO``, ``DEBUG`` …)
"""

import logging
import os
from typing import Optional

import config
from logging_setup import setup_logging
from sim.session import Simulation
from sim.store import MetaStore

project_root = os.path.abspath(os.path.dirname(__file__))


def _env_seed() -> Optional[int]:
    raw = os.environ.get("OVERTAKE_SEED")
    if raw is None or raw == "":
        return config.DEFAULT_SEED
    return int(raw)


def _env_store_path() -> str:
    path = os.environ.get("OVERTAKE_STORE", config.STORE_REL_PATH)
    if not os.path.isabs(path):
        path = os.path.join(project_root, path)
    return path


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in ("1", "true", "yes", "on")


def build_simulation() -> Simulation:
    """Simulation wired to the file store and the configured seed."""
    return Simulation(seed=_env_seed(), store=MetaStore(_env_store_path()))


def main():
    level_name = os.environ.get("OVERTAKE_LOG_LEVEL", "INFO").upper()
    setup_logging(getattr(logging, level_name, logging.INFO))
    log = logging.getLogger("main")

    simulation = build_simulation()
    log.info("Starting credits=%d store=%s", simulation.meta.credits, _env_store_path())

    try:
        if _env_flag("OVERTAKE_HEADLESS"):
            from demo import run_demo

            run_demo(simulation)
        else:
            from ui import run_pygame_view

            run_pygame_view(
                simulation,
                width=config.WINDOW_WIDTH,
                height=config.WINDOW_HEIGHT,
                fps=config.TARGET_FPS,
                max_dt=config.MAX_FRAME_DT,
            )
    except KeyboardInterrupt:
        log.info("Shutting down...")


if __name__ == "__main__":
    main()
