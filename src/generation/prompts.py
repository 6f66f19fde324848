"""Prompt text derived from structured parameters.

Used by the generation step to describe parameters in words, either as a fallback prompt when the
resolver produced none or appended to the resolver's prompt.
"""

from __future__ import annotations

from typing import Any

from src.intent.schema import CameraParams, Composition, Lighting, RealismLevel, StructuredParams

LIGHTING_PHRASES: dict[Lighting, str] = {
    Lighting.studio_soft: "soft studio lighting",
    Lighting.natural_daylight: "natural daylight",
    Lighting.dramatic_side: "dramatic side lighting",
    Lighting.backlit: "backlit with rim lighting",
    Lighting.overcast: "soft overcast lighting",
    Lighting.neon: "colorful neon lighting",
    Lighting.candlelight: "warm candlelight",
}

# Longer variants used for the final provider prompt and the structured prompt.
LIGHTING_DESCRIPTIONS: dict[Lighting, str] = {
    Lighting.studio_soft: "soft studio lighting with diffused shadows",
    Lighting.natural_daylight: "natural daylight, golden hour warmth",
    Lighting.dramatic_side: "dramatic side lighting with strong contrast",
    Lighting.backlit: "backlit with rim lighting",
    Lighting.overcast: "soft overcast ambient lighting",
    Lighting.neon: "colorful neon lighting",
    Lighting.candlelight: "warm candlelight ambiance",
}

COMPOSITION_PHRASES: dict[Composition, str] = {
    Composition.centered: "centered composition",
    Composition.rule_of_thirds: "rule of thirds composition",
    Composition.golden_ratio: "golden ratio composition",
    Composition.symmetrical: "symmetrical composition",
    Composition.dynamic: "dynamic composition",
}

REALISM_PHRASES: dict[RealismLevel, str] = {
    RealismLevel.high: "photorealistic, highly detailed",
    RealismLevel.stylized: "stylized, artistic",
}

# Sentence wording for `build_rich_prompt`; dynamic composition has no phrase there.
RICH_COMPOSITION_PHRASES: dict[Composition, str] = {
    Composition.rule_of_thirds: "composed using rule of thirds",
    Composition.centered: "centered composition",
    Composition.golden_ratio: "golden ratio composition",
    Composition.symmetrical: "symmetrical composition",
}

RICH_REALISM_PHRASES: dict[RealismLevel, str] = {
    RealismLevel.high: "photorealistic, highly detailed",
    RealismLevel.stylized: "artistic, stylized",
}


def _camera_phrases(camera: CameraParams) -> list[str]:
    parts: list[str] = []
    if abs(camera.yaw) > 15:
        parts.append(f"camera rotated {'right' if camera.yaw > 0 else 'left'}")
    if abs(camera.pitch) > 15:
        parts.append(f"{'high' if camera.pitch > 0 else 'low'} angle shot")
    if camera.fov < 30:
        parts.append("telephoto lens, shallow depth of field")
    elif camera.fov > 60:
        parts.append("wide angle lens")
    return parts


def build_prompt_from_params(params: StructuredParams) -> str:
    """Describe the parameters as a comma-separated text prompt."""

    parts: list[str] = []
    if params.subject_description:
        parts.append(params.subject_description)
    parts.append(LIGHTING_PHRASES[params.lighting])
    if params.color_palette is not None:
        parts.append(f"{params.color_palette} color palette")
    parts.extend(_camera_phrases(params.camera))
    parts.append(COMPOSITION_PHRASES[params.composition])
    if params.realism_level in REALISM_PHRASES:
        parts.append(REALISM_PHRASES[params.realism_level])
    if params.output_format == "hdr_16bit":
        parts.append("HDR, high dynamic range")
    return ", ".join(parts)


def build_rich_prompt(params: StructuredParams, prompt: str = "") -> str:
    """Combine an operation prompt with parameter descriptions into the provider prompt."""

    parts: list[str] = []
    if prompt:
        parts.append(prompt)
    if params.subject_description:
        parts.append(params.subject_description)
    parts.append(LIGHTING_DESCRIPTIONS[params.lighting])
    if params.composition in RICH_COMPOSITION_PHRASES:
        parts.append(RICH_COMPOSITION_PHRASES[params.composition])
    if params.color_palette is not None:
        parts.append(f"{params.color_palette} color palette")
    if params.realism_level in RICH_REALISM_PHRASES:
        parts.append(RICH_REALISM_PHRASES[params.realism_level])
    return ". ".join(parts)


def describe_camera_angle(camera: CameraParams) -> str:
    parts: list[str] = []
    if abs(camera.pitch) > 10:
        parts.append("high angle" if camera.pitch > 0 else "low angle")
    if abs(camera.yaw) > 10:
        parts.append("from the right" if camera.yaw > 0 else "from the left")
    if abs(camera.roll) > 5:
        parts.append("dutch angle")
    return ", ".join(parts) if parts else "straight on"


def fov_to_focal_length(fov: float) -> str:
    if fov < 20:
        return "135mm telephoto"
    if fov < 35:
        return "85mm portrait"
    if fov < 50:
        return "50mm standard"
    if fov < 70:
        return "35mm wide"
    return "24mm ultra-wide"


def params_to_structured_prompt(params: StructuredParams) -> dict[str, Any]:
    """Map parameters onto the provider's structured-prompt shape."""

    camera = params.camera
    return {
        "short_description": params.subject_description or "A professionally composed image",
        "lighting": {
            "type": LIGHTING_DESCRIPTIONS[params.lighting],
            "direction": "front",
            "shadows": "strong" if params.lighting == Lighting.dramatic_side else "soft",
        },
        "aesthetics": {
            "composition": params.composition.value.replace("_", " "),
            "color_scheme": str(params.color_palette or "natural"),
            "mood_atmosphere": (
                "artistic" if params.realism_level == RealismLevel.stylized else "realistic"
            ),
        },
        "photographic_characteristics": {
            "depth_of_field": "shallow" if camera.fov < 30 else "medium",
            "focus": "sharp on subject",
            "camera_angle": describe_camera_angle(camera),
            "lens_focal_length": fov_to_focal_length(camera.fov),
        },
        "style_medium": "photograph" if params.realism_level == RealismLevel.high else "digital art",
    }
