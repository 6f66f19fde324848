"""Edit intent schema (Pydantic models).

This schema is the contract between the NL resolvers (rules/LLM), the chat session and the image
generation step. Resolvers receive a `StructuredParams` snapshot and return a new one inside a
`ResolverResult`; they never mutate the snapshot they were given.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Operation(StrEnum):
    """Supported edit operation families."""

    inpaint_remove = "inpaint_remove"
    inpaint_replace = "inpaint_replace"
    inpaint_add = "inpaint_add"
    style_transfer = "style_transfer"
    generate_new = "generate_new"
    camera_adjust = "camera_adjust"

    @property
    def requires_mask(self) -> bool:
        """Whether the operation only edits a user-marked region."""

        return self in MASK_REQUIRED_OPERATIONS


MASK_REQUIRED_OPERATIONS: frozenset[Operation] = frozenset(
    {
        Operation.inpaint_remove,
        Operation.inpaint_replace,
        Operation.inpaint_add,
    }
)


class Lighting(StrEnum):
    """Lighting presets."""

    studio_soft = "studio_soft"
    natural_daylight = "natural_daylight"
    dramatic_side = "dramatic_side"
    backlit = "backlit"
    overcast = "overcast"
    neon = "neon"
    candlelight = "candlelight"


class ColorPalette(StrEnum):
    """Color palette presets."""

    warm = "warm"
    cool = "cool"
    vibrant = "vibrant"
    muted = "muted"
    monochrome = "monochrome"
    pastel = "pastel"
    natural = "natural"


class Composition(StrEnum):
    """Composition presets."""

    centered = "centered"
    rule_of_thirds = "rule_of_thirds"
    golden_ratio = "golden_ratio"
    symmetrical = "symmetrical"
    dynamic = "dynamic"


class RealismLevel(StrEnum):
    """How photographic the output should look."""

    high = "high"
    medium = "medium"
    stylized = "stylized"


class EditMode(StrEnum):
    """Whether generation edits the masked region only or the full image."""

    mask = "mask"
    full = "full"


CAMERA_BOUNDS: dict[str, tuple[int, int]] = {
    "yaw": (-180, 180),
    "pitch": (-90, 90),
    "roll": (-180, 180),
    "fov": (10, 120),
}


def clamp(value: float, low: float, high: float) -> float:
    """Clamp `value` into the closed interval `[low, high]`."""

    return max(low, min(high, value))


class CameraParams(BaseModel):
    """Virtual camera orientation (degrees) and field of view."""

    model_config = ConfigDict(extra="forbid")

    yaw: float = Field(default=0, ge=-180, le=180)
    pitch: float = Field(default=0, ge=-90, le=90)
    roll: float = Field(default=0, ge=-180, le=180)
    fov: float = Field(default=40, ge=10, le=120)

    def adjusted(self, *, yaw: float = 0, fov: float = 0) -> CameraParams:
        """Return a copy with additive deltas applied and every field clamped into bounds."""

        values = self.model_dump()
        values["yaw"] += yaw
        values["fov"] += fov
        for name, (low, high) in CAMERA_BOUNDS.items():
            values[name] = clamp(values[name], low, high)
        return CameraParams(**values)


class StructuredParams(BaseModel):
    """Persistent editing-intent state carried across chat turns."""

    model_config = ConfigDict(extra="forbid")

    camera: CameraParams = Field(default_factory=CameraParams)
    lighting: Lighting = Lighting.studio_soft
    color_palette: ColorPalette | None = None
    composition: Composition = Composition.centered
    subject_description: str | None = None
    realism_level: RealismLevel = RealismLevel.high
    edit_mode: EditMode | None = None
    output_format: str = "hdr_16bit"


def edit_mode_for(operation: Operation) -> EditMode:
    """Derive `edit_mode` from the operation class."""

    return EditMode.mask if operation.requires_mask else EditMode.full


def mask_required(operation: Operation, *, has_mask: bool) -> bool:
    """Whether the user must draw a mask before the operation can run."""

    return operation.requires_mask and not has_mask


def coerce_operation(value: Any, *, has_mask: bool) -> Operation:
    """Map an untrusted operation tag onto `Operation`.

    Unknown or missing tags fall back to `inpaint_replace` when a mask is drawn and to
    `style_transfer` otherwise.
    """

    if isinstance(value, str) and value in Operation.__members__:
        return Operation(value)
    return Operation.inpaint_replace if has_mask else Operation.style_transfer


class ResolverResult(BaseModel):
    """Outcome of resolving one user instruction."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    operation: Operation
    needs_mask: bool = Field(default=False, alias="needsMask")
    params: StructuredParams
    prompt: str = ""
    response: str = ""

    @model_validator(mode="after")
    def validate_contract(self) -> ResolverResult:
        """Enforce the edit_mode and mask-flag invariants."""

        if self.params.edit_mode != edit_mode_for(self.operation):
            raise ValueError("params.edit_mode must match the operation class")
        if self.needs_mask and not self.operation.requires_mask:
            raise ValueError("needsMask is only valid for mask-required operations")
        return self


class ResolveRequest(BaseModel):
    """A single resolution request as received at the boundary."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    user_message: str = Field(default="", alias="userMessage")
    current_params: StructuredParams = Field(default_factory=StructuredParams, alias="currentParams")
    has_mask: bool = Field(default=False, alias="hasMask")


def request_from_obj(obj: Any) -> ResolveRequest:
    """Validate and parse a `ResolveRequest` from an arbitrary decoded JSON object."""

    return ResolveRequest.model_validate(obj)
