#!/usr/bin/env python3
"""
config.py
=========
Application-wide configuration constants.

Values can be overridden via environment variables (see :mod:`main`).
This module is a thin, import-safe leaf — it never imports from
other project packages.
"""

# ── Simulation defaults ──────────────────────────────────────────────────────
DEFAULT_SEED = None
MAX_FRAME_DT: float = 0.05  # longest single tick; stalled frames are clamped to it

# ── Persistence ──────────────────────────────────────────────────────────────
STORE_REL_PATH: str = "save/overtake_meta.json"

# ── UI defaults ──────────────────────────────────────────────────────────────
WINDOW_WIDTH: int = 1000
WINDOW_HEIGHT: int = 700
TARGET_FPS: int = 60

# ── HTTP control server ──────────────────────────────────────────────────────
API_HOST: str = "127.0.0.1"
API_PORT: int = 8000

# ── Headless demo ────────────────────────────────────────────────────────────
DEMO_SECONDS: float = 60.0
