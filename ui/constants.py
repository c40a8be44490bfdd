#!/usr/bin/env python3
"""Visual constants shared across all renderers."""

from __future__ import annotations

from typing import Sequence, Tuple

from .types import ColorRGB


class ViewConstants:
    """Mixin providing every visual / layout constant."""

    BG_COLOR: ColorRGB = (11, 12, 20)
    SKY_TOP_COLOR: ColorRGB = (14, 16, 32)
    SKY_HORIZON_COLOR: ColorRGB = (48, 36, 70)
    FOG_COLOR: ColorRGB = (34, 30, 52)
    GROUND_COLOR: ColorRGB = (18, 22, 26)
    ROAD_COLOR_A: ColorRGB = (44, 44, 50)
    ROAD_COLOR_B: ColorRGB = (38, 38, 44)
    ROAD_EDGE_COLOR: ColorRGB = (210, 210, 220)
    LANE_DASH_COLOR: ColorRGB = (240, 200, 80)
    HUD_BG_COLOR: ColorRGB = (22, 22, 22)
    HUD_BORDER_COLOR: ColorRGB = (42, 42, 42)
    HUD_TEXT_COLOR: ColorRGB = (230, 230, 235)
    HUD_DIM_COLOR: ColorRGB = (140, 140, 150)
    SPEED_BAR_COLOR: ColorRGB = (86, 168, 255)
    HEAT_BAR_COLOR: ColorRGB = (255, 136, 0)
    WARNING_COLOR: ColorRGB = (255, 60, 60)
    GLITCH_COLOR: ColorRGB = (180, 120, 255)
    CREDIT_COLOR: ColorRGB = (246, 191, 90)

    PLAYER_COLOR: ColorRGB = (0, 255, 127)
    SAME_COLORS: Sequence[ColorRGB] = (
        (86, 168, 255),
        (100, 226, 170),
        (246, 191, 90),
    )
    ONCOMING_COLORS: Sequence[ColorRGB] = (
        (255, 88, 88),
        (255, 160, 100),
    )

    ROAD_HALF_W = 1.75
    ROAD_SAMPLES = 64
    ROAD_DRAW_AHEAD = 200.0
    ROAD_DRAW_BEHIND = 4.0
    STRIPE_LEN = 6.0
    DASH_LEN = 4.0

    CAR_HALF_W = 0.45
    CAR_HALF_L = 1.1
    CAR_HEIGHT = 0.7

    HUD_BLINK_MS = 500
    CARD_W = 220
    CARD_H = 120

    UPGRADE_KEYS: Sequence[Tuple[str, str]] = (
        ("Q", "accel"),
        ("W", "brake"),
        ("E", "max_speed"),
        ("R", "lateral"),
    )

    SCREENSHOT_DIR = "screenshots"
