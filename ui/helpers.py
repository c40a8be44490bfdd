"""
ui/helpers.py
=============
Pure utility functions shared across UI modules:
colour blending, alpha-surface drawing, text and font loading.
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

import pygame

from .types import ColorRGB


# ── Colour helpers ───────────────────────────────────────────────────────────

def mix_color(a: Sequence[int], b: Sequence[int], t: float) -> ColorRGB:
    """Linear blend from *a* to *b*; *t* is clamped to ``[0, 1]``."""
    t = max(0.0, min(1.0, t))
    return (
        int(a[0] + (b[0] - a[0]) * t),
        int(a[1] + (b[1] - a[1]) * t),
        int(a[2] + (b[2] - a[2]) * t),
    )


# ── Alpha drawing helpers ────────────────────────────────────────────────────

def draw_alpha_rect(
    target: pygame.Surface,
    color: Tuple[int, ...],
    rect: pygame.Rect,
    border_radius: int = 0,
) -> None:
    """Draw a semi-transparent rectangle (colour tuple with 4 channels)."""
    tmp = pygame.Surface((rect.w, rect.h), pygame.SRCALPHA)
    pygame.draw.rect(tmp, color, (0, 0, rect.w, rect.h), border_radius=border_radius)
    target.blit(tmp, rect.topleft)


# ── Text helper ──────────────────────────────────────────────────────────────

def render_text(
    surface: pygame.Surface,
    font: pygame.font.Font,
    text: str,
    pos: Tuple[int, int],
    color: Tuple[int, ...] = (230, 230, 235),
    anchor: str = "topleft",
) -> pygame.Rect:
    """Render text with flexible *anchor* ('topleft', 'center', 'midright' …)."""
    img = font.render(text, True, color)
    rect = img.get_rect(**{anchor: pos})
    surface.blit(img, rect)
    return rect


class ViewHelpers:
    """Mixin exposing the helpers to the view classes."""

    mix_color = staticmethod(mix_color)
    draw_alpha_rect = staticmethod(draw_alpha_rect)
    render_text = staticmethod(render_text)

    @staticmethod
    def _load_font(size: int, bold: bool = False) -> pygame.font.Font:
        for name in ("DejaVu Sans Mono", "Consolas", "Menlo"):
            path: Optional[str] = pygame.font.match_font(name, bold=bold)
            if path:
                return pygame.font.Font(path, size)
        return pygame.font.Font(None, size + 4)
