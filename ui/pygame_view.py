#!/usr/bin/env python3
"""
Main view class — combines all UI mixins into one runnable Pygame window.

Module layout
─────────────
    ui/
    ├── types.py           – Camera projection, ButtonRect, colour aliases
    ├── constants.py       – ViewConstants mixin (all class-level constants)
    ├── helpers.py         – ViewHelpers mixin  (static utilities)
    ├── draw_road.py       – RoadRenderer mixin (sky, road, fog)
    ├── draw_vehicles.py   – VehicleRenderer mixin (projected car boxes)
    ├── hud.py             – HudRenderer mixin  (HUD, menus, prompts, splash)
    └── pygame_view.py     – PygameRaceView (this file – main loop)
"""

from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import List, Optional

import pygame

from sim.clock import MAX_FRAME_DT, SimulationClock
from sim.session import RunState, Simulation
from sim.snapshot import RenderFrame, Snapshot
from sim.vehicle import ControlInput

from .constants import ViewConstants
from .draw_road import RoadRenderer
from .draw_vehicles import VehicleRenderer
from .helpers import ViewHelpers
from .hud import HudRenderer
from .types import ButtonRect, Camera

log = logging.getLogger("ui")

_SLOT_KEYS = (pygame.K_1, pygame.K_2, pygame.K_3)
_UPGRADE_KEYCODES = {
    pygame.K_q: "accel",
    pygame.K_w: "brake",
    pygame.K_e: "max_speed",
    pygame.K_r: "lateral",
}


class PygameRaceView(
    ViewConstants,
    ViewHelpers,
    RoadRenderer,
    VehicleRenderer,
    HudRenderer,
):
    """Chase-camera view of a :class:`~sim.session.Simulation`.

    Inherits drawing logic from focused mixin modules so each file
    stays small and single-purpose.  The view owns no game state: it
    turns devices into :class:`ControlInput`, forwards menu choices to
    the simulation and draws the snapshot it gets back.
    """

    def __init__(self, simulation: Simulation, width: int = 1000, height: int = 700, fps: int = 60,
                 max_dt: float = MAX_FRAME_DT):
        self.sim = simulation
        self.sim_clock = SimulationClock(simulation, max_dt=max_dt)
        self.width = width
        self.height = height
        self.fps = fps

        self.screen: Optional[pygame.Surface] = None
        self.clock: Optional[pygame.time.Clock] = None
        self.font_small: Optional[pygame.font.Font] = None
        self.font_tiny: Optional[pygame.font.Font] = None
        self.font_title: Optional[pygame.font.Font] = None

        self.time_seconds = 0.0
        self.paused = False
        self.show_debug = False
        self.show_splash = True
        self._buttons: List[ButtonRect] = []
        self._screenshot_flash_until = 0.0

    # ------------------------------------------------------------------ #
    #  Resize                                                              #
    # ------------------------------------------------------------------ #
    def _handle_resize(self, new_w: int, new_h: int) -> None:
        self.width = max(400, new_w)
        self.height = max(300, new_h)
        self.screen = pygame.display.set_mode(
            (self.width, self.height), pygame.RESIZABLE
        )

    # ------------------------------------------------------------------ #
    #  Screenshot                                                          #
    # ------------------------------------------------------------------ #
    def _take_screenshot(self) -> None:
        if self.screen is None:
            return
        os.makedirs(self.SCREENSHOT_DIR, exist_ok=True)
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        path = os.path.join(self.SCREENSHOT_DIR, f"overtake_{stamp}.png")
        pygame.image.save(self.screen, path)
        self._screenshot_flash_until = self.time_seconds + 0.35

    # ------------------------------------------------------------------ #
    #  Input                                                               #
    # ------------------------------------------------------------------ #
    def _read_controls(self) -> ControlInput:
        keys = pygame.key.get_pressed()
        mx, my = pygame.mouse.get_pos()
        focused = pygame.mouse.get_focused()
        return ControlInput(
            steer_left=bool(keys[pygame.K_a] or keys[pygame.K_LEFT]),
            steer_right=bool(keys[pygame.K_d] or keys[pygame.K_RIGHT]),
            accelerate=bool(keys[pygame.K_w] or keys[pygame.K_UP]),
            brake=bool(keys[pygame.K_s] or keys[pygame.K_DOWN]),
            lean=bool(keys[pygame.K_LSHIFT] or keys[pygame.K_RSHIFT]),
            pointer_x=(mx / self.width - 0.5) if focused else 0.0,
            pointer_y=(0.5 - my / self.height) if focused else 0.0,
        )

    def _pick_slot(self, slot: int) -> None:
        state = self.sim.state
        try:
            if state is RunState.IDLE and self.sim.run_offer is not None:
                self.sim.start_run(slot)
                self.sim_clock.reset()
            elif state is RunState.AWAITING_MODIFIER_CHOICE:
                self.sim.choose_glitch(slot)
                self.sim_clock.reset()
        except IndexError:
            log.debug("slot %d not on offer", slot)

    def _handle_key(self, key: int) -> None:
        state = self.sim.state
        if key == pygame.K_p:
            self.paused = not self.paused
            self.sim_clock.reset()
        elif key == pygame.K_F3:
            self.show_debug = not self.show_debug
        elif key == pygame.K_F12:
            self._take_screenshot()
        elif key in _SLOT_KEYS:
            self._pick_slot(_SLOT_KEYS.index(key))
        elif state is RunState.IDLE and key in _UPGRADE_KEYCODES:
            self.sim.purchase_upgrade(_UPGRADE_KEYCODES[key])
        elif state is RunState.CRASHED and key == pygame.K_RETURN and self.sim.crash_cooldown <= 0.0:
            self.sim.bank_and_return()
            self.sim.offer_run_modifiers()

    def _handle_click(self, pos) -> None:
        for button in self._buttons:
            if button.contains(*pos):
                self._pick_slot(button.slot)
                return

    # ------------------------------------------------------------------ #
    #  Rendering                                                           #
    # ------------------------------------------------------------------ #
    def _camera_for(self, frame: RenderFrame) -> Camera:
        pose = frame.camera
        x, y, z = pose.position
        return Camera(
            screen_w=self.width,
            screen_h=self.height,
            fov_deg=frame.fov,
            x=x,
            y=y,
            z=z,
            yaw=pose.yaw,
            pitch=pose.pitch,
        )

    def _draw_world(self, surface: pygame.Surface, frame: RenderFrame) -> None:
        camera = self._camera_for(frame)
        self.draw_sky(surface, camera)
        self.draw_road(surface, frame, camera)
        self.draw_vehicles(surface, frame, camera)
        self.draw_fog_veil(surface, frame)

    def _draw_overlays(self, surface: pygame.Surface, snap: Snapshot) -> None:
        state = self.sim.state
        self._buttons = []
        if state is RunState.IDLE:
            levels = [
                (key, kind, self.sim.meta.upgrades.level(kind))
                for key, kind in self.UPGRADE_KEYS
            ]
            self._buttons = self.draw_menu(surface, snap, self.sim.meta.credits, levels)
            return
        self.draw_vignette(surface, snap.hud.vignette)
        self.draw_hud(surface, snap.hud, self.time_seconds)
        if state is RunState.AWAITING_MODIFIER_CHOICE:
            self._buttons = self.draw_glitch_prompt(surface, snap)
        elif state is RunState.CRASHED:
            self.draw_crash_screen(surface, snap, settled=self.sim.crash_cooldown <= 0.0)

    # ------------------------------------------------------------------ #
    #  Main loop                                                           #
    # ------------------------------------------------------------------ #
    def run(self) -> None:
        pygame.init()
        try:
            self._open_window()
            self._main_loop()
        finally:
            pygame.quit()

    def _open_window(self) -> None:
        pygame.display.set_caption("ENDLESS OVERTAKE")
        self.screen = pygame.display.set_mode(
            (self.width, self.height), pygame.RESIZABLE
        )
        self.clock = pygame.time.Clock()
        self.font_small = self._load_font(15, bold=True)
        self.font_tiny = self._load_font(11, bold=False)
        self.font_title = self._load_font(30, bold=True)

        if self.sim.state is RunState.IDLE and self.sim.run_offer is None:
            self.sim.offer_run_modifiers()

    def _main_loop(self) -> None:
        running = True
        while running:
            delta_time = self.clock.tick(self.fps) / 1000.0
            self.time_seconds += delta_time

            # ---- events ------------------------------------------------- #
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.VIDEORESIZE:
                    self._handle_resize(event.w, event.h)
                elif event.type == pygame.KEYDOWN:
                    if self.show_splash:
                        self.show_splash = False
                        self.sim_clock.reset()
                        continue
                    if event.key == pygame.K_ESCAPE:
                        running = False
                    else:
                        self._handle_key(event.key)
                elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                    self._handle_click(event.pos)

            # ---- splash ------------------------------------------------- #
            if self.show_splash:
                self.screen.fill(self.BG_COLOR)
                self._draw_splash(self.screen, self.time_seconds)
                pygame.display.flip()
                continue

            # ---- simulation tick ---------------------------------------- #
            try:
                if self.paused:
                    snap = self.sim.snapshot()
                else:
                    snap = self.sim_clock.advance(self.time_seconds, self._read_controls())
            except Exception:
                log.exception("simulation tick failed")
                raise

            # ---- render ------------------------------------------------- #
            self.screen.fill(self.BG_COLOR)
            if snap.render is not None:
                self._draw_world(self.screen, snap.render)
            self._draw_overlays(self.screen, snap)
            if self.show_debug:
                self._draw_debug_overlay(self.screen, snap, delta_time)
            if self.paused:
                self._draw_pause_banner(self.screen)
            if self.time_seconds < self._screenshot_flash_until:
                flash = pygame.Surface(
                    (self.width, self.height), pygame.SRCALPHA
                )
                flash.fill((255, 255, 255, 40))
                self.screen.blit(flash, (0, 0))

            pygame.display.flip()


# ---------------------------------------------------------------------- #
#  Convenience entry point                                                 #
# ---------------------------------------------------------------------- #
def run_pygame_view(
    simulation: Simulation, width: int = 1000, height: int = 700, fps: int = 60,
    max_dt: float = MAX_FRAME_DT,
) -> None:
    view = PygameRaceView(simulation=simulation, width=width, height=height, fps=fps, max_dt=max_dt)
    view.run()


if __name__ == "__main__":
    raise SystemExit(
        "pygame_view.py needs a Simulation. Run `python main.py` "
        "or call run_pygame_view(simulation)."
    )
