#!/usr/bin/env python3

from .types import ButtonRect, Camera, ColorRGB, ColorRGBA
from .constants import ViewConstants
from .helpers import ViewHelpers
from .draw_road import RoadRenderer
from .draw_vehicles import VehicleRenderer
from .hud import HudRenderer
from .pygame_view import PygameRaceView, run_pygame_view

__all__ = [
    "ButtonRect",
    "Camera",
    "ColorRGB",
    "ColorRGBA",
    "ViewConstants",
    "ViewHelpers",
    "RoadRenderer",
    "VehicleRenderer",
    "HudRenderer",
    "PygameRaceView",
    "run_pygame_view",
]
