#!/usr/bin/env python3
"""HUD panel, danger vignette, menus, glitch prompt, crash screen, splash and pause banner (mixin)."""

from __future__ import annotations

from typing import List, Sequence, Tuple

import pygame

from sim.modifiers import GLITCHES, RUN_MODIFIERS, Modifier
from sim.progression import upgrade_cost
from sim.snapshot import HudSnapshot, Snapshot

from .types import ButtonRect


class HudRenderer:
    """Mixin that draws every overlay / HUD element."""

    # ------------------------------------------------------------------ #
    #  Main HUD panel                                                      #
    # ------------------------------------------------------------------ #

    def _draw_bar(self, surface: pygame.Surface, x: int, y: int, w: int, h: int,
                  frac: float, color) -> None:
        pygame.draw.rect(surface, (40, 40, 40), (x, y, w, h), border_radius=2)
        px = max(0, min(w, int(frac * w)))
        if px > 0:
            pygame.draw.rect(surface, color, (x, y, px, h), border_radius=2)

    def draw_hud(self, surface: pygame.Surface, hud: HudSnapshot, tick: float) -> None:
        if self.font_small is None or self.font_tiny is None or self.font_title is None:
            return

        panel = pygame.Rect(16, self.height - 116, 260, 100)
        pygame.draw.rect(surface, self.HUD_BG_COLOR, panel, border_radius=6)
        pygame.draw.rect(surface, self.HUD_BORDER_COLOR, panel, width=1, border_radius=6)

        self.render_text(surface, self.font_title, f"{hud.speed_kmh}",
                         (panel.x + 10, panel.y + 6), self.HUD_TEXT_COLOR)
        self.render_text(surface, self.font_tiny, "KM/H",
                         (panel.x + 92, panel.y + 22), self.HUD_DIM_COLOR)
        self.render_text(surface, self.font_tiny, f"STAGE {hud.stage}",
                         (panel.x + 170, panel.y + 10), self.HUD_DIM_COLOR)
        self._draw_bar(surface, panel.x + 10, panel.y + 46, 240, 6,
                       hud.speed_bar, self.SPEED_BAR_COLOR)
        self.render_text(surface, self.font_small,
                         f"OVERTAKES {hud.overtakes}/{hud.goal}",
                         (panel.x + 10, panel.y + 58), self.HUD_TEXT_COLOR)
        self.render_text(surface, self.font_tiny, "HEAT",
                         (panel.x + 10, panel.y + 80), self.HUD_DIM_COLOR)
        self._draw_bar(surface, panel.x + 50, panel.y + 84, 200, 6,
                       hud.heat_bar, self.HEAT_BAR_COLOR)

        self.render_text(surface, self.font_title, f"{hud.score}",
                         (self.width - 16, 12), self.HUD_TEXT_COLOR, anchor="topright")
        self.render_text(surface, self.font_small, f"x{hud.combo}",
                         (self.width - 16, 48), self.HEAT_BAR_COLOR, anchor="topright")
        self.render_text(surface, self.font_tiny, f"CREDITS {hud.credits}",
                         (self.width - 16, 70), self.CREDIT_COLOR, anchor="topright")

        if hud.glitch:
            blink_on = hud.glitch_remaining > 3.0 or int((tick * 1000) // self.HUD_BLINK_MS) % 2 == 0
            if blink_on:
                self.render_text(
                    surface, self.font_small,
                    f"GLITCH {hud.glitch.upper()}  {hud.glitch_remaining:4.1f}s",
                    (self.width // 2, 16), self.GLITCH_COLOR, anchor="midtop",
                )

    def draw_vignette(self, surface: pygame.Surface, opacity: float) -> None:
        """Red edge glow whose opacity follows the heat vignette value."""
        if opacity <= 0.01:
            return
        overlay = pygame.Surface((self.width, self.height), pygame.SRCALPHA)
        rings = 8
        for i in range(rings):
            alpha = int(255 * opacity * (1.0 - i / rings) * 0.5)
            inset = i * 10
            pygame.draw.rect(
                overlay, (*self.WARNING_COLOR, alpha),
                (inset, inset, self.width - 2 * inset, self.height - 2 * inset),
                width=10,
            )
        surface.blit(overlay, (0, 0))

    # ------------------------------------------------------------------ #
    #  Offer cards (run modifiers and glitches)                            #
    # ------------------------------------------------------------------ #

    def _draw_cards(self, surface: pygame.Surface, title: str,
                    entries: Sequence[Modifier], top: int) -> List[ButtonRect]:
        self.render_text(surface, self.font_small, title,
                         (self.width // 2, top), self.HUD_TEXT_COLOR, anchor="midtop")
        gap = 16
        total_w = len(entries) * self.CARD_W + (len(entries) - 1) * gap
        x = (self.width - total_w) // 2
        y = top + 28
        buttons = []
        for slot, entry in enumerate(entries):
            rect = pygame.Rect(x, y, self.CARD_W, self.CARD_H)
            pygame.draw.rect(surface, self.HUD_BG_COLOR, rect, border_radius=8)
            pygame.draw.rect(surface, self.GLITCH_COLOR, rect, width=1, border_radius=8)
            self.render_text(surface, self.font_small, f"{slot + 1}. {entry.name}",
                             (rect.x + 12, rect.y + 12), self.HUD_TEXT_COLOR)
            self.render_text(surface, self.font_tiny, entry.description,
                             (rect.x + 12, rect.y + 40), self.HUD_DIM_COLOR)
            if entry.duration:
                self.render_text(surface, self.font_tiny, f"{entry.duration:.0f}s",
                                 (rect.x + 12, rect.bottom - 24), self.GLITCH_COLOR)
            buttons.append(ButtonRect(entry.name, rect.x, rect.y, rect.w, rect.h, slot))
            x += self.CARD_W + gap
        return buttons

    def draw_menu(self, surface: pygame.Surface, snap: Snapshot,
                  credits: int, levels: Sequence[Tuple[str, str, int]]) -> List[ButtonRect]:
        """Run-modifier choice plus the upgrade shop.

        *levels* holds ``(key, kind, level)`` triples.
        """
        if self.font_small is None or self.font_tiny is None or self.font_title is None:
            return []
        self.draw_alpha_rect(surface, (0, 0, 0, 150), pygame.Rect(0, 0, self.width, self.height))
        self.render_text(surface, self.font_title, "ENDLESS OVERTAKE",
                         (self.width // 2, 60), self.HUD_TEXT_COLOR, anchor="midtop")
        entries = [RUN_MODIFIERS[i] for i in (snap.run_offer or ())]
        buttons = self._draw_cards(surface, "CHOOSE A RUN MODIFIER", entries, 130)

        y = 130 + 28 + self.CARD_H + 40
        self.render_text(surface, self.font_small, f"CREDITS {credits}",
                         (self.width // 2, y), self.CREDIT_COLOR, anchor="midtop")
        y += 28
        for key, kind, level in levels:
            cost = upgrade_cost(level)
            color = self.HUD_TEXT_COLOR if credits >= cost else self.HUD_DIM_COLOR
            self.render_text(
                surface, self.font_tiny,
                f"[{key}] {kind.upper():<10} LV {level:<3} COST {cost}",
                (self.width // 2, y), color, anchor="midtop",
            )
            y += 18
        return buttons

    def draw_glitch_prompt(self, surface: pygame.Surface, snap: Snapshot) -> List[ButtonRect]:
        if self.font_small is None or self.font_tiny is None:
            return []
        self.draw_alpha_rect(surface, (20, 0, 40, 140), pygame.Rect(0, 0, self.width, self.height))
        entries = [GLITCHES[i] for i in (snap.glitch_offer or ())]
        return self._draw_cards(surface, "GLITCH DETECTED - PICK ONE", entries, self.height // 2 - 90)

    def draw_crash_screen(self, surface: pygame.Surface, snap: Snapshot, settled: bool) -> None:
        if self.font_title is None or self.font_small is None or self.font_tiny is None:
            return
        report = snap.last_run
        self.draw_alpha_rect(surface, (40, 0, 0, 120), pygame.Rect(0, 0, self.width, self.height))
        self.render_text(surface, self.font_title, "CRASHED",
                         (self.width // 2, self.height // 2 - 80), self.WARNING_COLOR, anchor="center")
        if report is not None:
            lines = [
                f"SCORE     {report.score:.0f}",
                f"OVERTAKES {report.overtakes}",
                f"DISTANCE  {report.meters:.0f} m",
                f"EARNED    +{report.earned} CR",
            ]
            y = self.height // 2 - 40
            for line in lines:
                self.render_text(surface, self.font_small, line,
                                 (self.width // 2, y), self.HUD_TEXT_COLOR, anchor="midtop")
                y += 22
        if settled:
            self.render_text(surface, self.font_tiny, "ENTER  Bank & new run",
                             (self.width // 2, self.height // 2 + 60), self.HUD_DIM_COLOR, anchor="midtop")

    # ------------------------------------------------------------------ #
    #  Splash screen                                                       #
    # ------------------------------------------------------------------ #

    def _draw_splash(self, surface: pygame.Surface, tick: float) -> None:
        if self.font_title is None or self.font_small is None:
            return
        title = self.font_title.render("ENDLESS OVERTAKE", True, (240, 240, 240))
        surface.blit(
            title,
            title.get_rect(center=(self.width // 2, self.height // 2 - 30)),
        )
        if int(tick * 2) % 2 == 0:
            prompt = self.font_small.render("Press any key to start", True, (160, 160, 160))
            surface.blit(
                prompt,
                prompt.get_rect(center=(self.width // 2, self.height // 2 + 20)),
            )
        lines = [
            "A / D  Steer       (or mouse)",
            "W / S  Throttle / brake",
            "SHIFT  Lean",
            "1-3    Pick a card",
            "Q W E R  Buy upgrades (menu)",
            "P      Pause/Resume",
            "F3     Debug overlay",
            "F12    Screenshot",
        ]
        y = self.height // 2 + 60
        for line in lines:
            t = self.font_tiny.render(line, True, (100, 100, 100)) if self.font_tiny else None
            if t:
                surface.blit(t, t.get_rect(center=(self.width // 2, y)))
                y += 16

    # ------------------------------------------------------------------ #
    #  Debug / FPS overlay                                                 #
    # ------------------------------------------------------------------ #

    def _draw_debug_overlay(self, surface: pygame.Surface, snap: Snapshot, dt: float) -> None:
        if self.font_tiny is None:
            return
        fps = self.clock.get_fps() if self.clock else 0.0
        extras = snap.extras
        lines = [
            f"FPS   {fps:.1f}",
            f"DT    {dt * 1000:.1f} ms",
            f"STATE {snap.state}",
            f"RUN   {snap.run_modifier or '-'}",
            f"TIME  {extras.get('run_time', 0.0):.1f}s",
            f"DIST  {extras.get('meters', 0.0):.0f} m",
            f"NPCS  {len(snap.render.npcs) if snap.render else 0}",
            f"RESP  {extras.get('respawns', 0)}",
            f"FX    {','.join(extras.get('effects', {})) or '-'}",
        ]
        x, y = 16, 16
        for line in lines:
            text = self.font_tiny.render(line, True, (0, 255, 127))
            surface.blit(text, (x, y))
            y += 14

    # ------------------------------------------------------------------ #
    #  Pause banner                                                        #
    # ------------------------------------------------------------------ #

    def _draw_pause_banner(self, surface: pygame.Surface) -> None:
        overlay = pygame.Surface((self.width, self.height), pygame.SRCALPHA)
        overlay.fill((0, 0, 0, 100))
        surface.blit(overlay, (0, 0))
        if self.font_title:
            text = self.font_title.render("PAUSED", True, (220, 220, 220))
            surface.blit(text, text.get_rect(center=(self.width // 2, self.height // 2)))
