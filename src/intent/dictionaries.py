"""English keyword dictionaries for camera, lighting and color signals.

These mappings are used by the rules-based resolver and should remain small and deterministic.
Matching is plain substring containment on normalized (lowercased) text.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from src.intent.schema import ColorPalette, Lighting

# Scanned in order; a later match overwrites an earlier one ("soft dramatic" -> studio_soft).
LIGHTING_KEYWORDS: tuple[tuple[tuple[str, ...], Lighting], ...] = (
    (("dramatic",), Lighting.dramatic_side),
    (("soft",), Lighting.studio_soft),
    (("natural", "daylight"), Lighting.natural_daylight),
    (("neon",), Lighting.neon),
)

COLOR_PALETTE_KEYWORDS: tuple[tuple[tuple[str, ...], ColorPalette], ...] = (
    (("warm",), ColorPalette.warm),
    (("cool", "cold"), ColorPalette.cool),
    (("vibrant",), ColorPalette.vibrant),
)

YAW_STEP_SLIGHT = 15
YAW_STEP_HARD = 45
YAW_STEP_DEFAULT = 30
FOV_STEP = 15

ZOOM_IN_PHRASES: tuple[str, ...] = ("zoom in", "closer")
ZOOM_OUT_PHRASES: tuple[str, ...] = ("zoom out", "wider")


@dataclass(frozen=True)
class CameraDelta:
    """Additive camera adjustment detected in an instruction."""

    yaw: int = 0
    fov: int = 0


def _last_match(text: str, table: tuple[tuple[tuple[str, ...], Any], ...]) -> Any:
    found = None
    for keywords, value in table:
        if any(k in text for k in keywords):
            found = value
    return found


def detect_lighting(text: str) -> Lighting | None:
    """Return the lighting preset named in the text (last keyword in scan order wins)."""

    return _last_match(text, LIGHTING_KEYWORDS)


def detect_color_palette(text: str) -> ColorPalette | None:
    """Return the color palette named in the text (last keyword in scan order wins)."""

    return _last_match(text, COLOR_PALETTE_KEYWORDS)


def yaw_step(text: str) -> int:
    """Magnitude of a left/right rotation: "slight" beats "hard" beats the default."""

    if "slight" in text:
        return YAW_STEP_SLIGHT
    if "hard" in text:
        return YAW_STEP_HARD
    return YAW_STEP_DEFAULT


def detect_camera_deltas(text: str) -> list[CameraDelta]:
    """Detect yaw and field-of-view adjustments in application order.

    Each delta is applied and clamped on its own, so "left ... right" at the yaw floor does not
    cancel out. "tilt" disables yaw detection (it is a roll instruction) and "copyright" does not
    count as "right".
    """

    deltas: list[CameraDelta] = []
    if "left" in text and "tilt" not in text:
        deltas.append(CameraDelta(yaw=-yaw_step(text)))
    if "right" in text and "copyright" not in text and "tilt" not in text:
        deltas.append(CameraDelta(yaw=yaw_step(text)))
    if any(p in text for p in ZOOM_IN_PHRASES):
        deltas.append(CameraDelta(fov=-FOV_STEP))
    if any(p in text for p in ZOOM_OUT_PHRASES):
        deltas.append(CameraDelta(fov=FOV_STEP))
    return deltas
