"""Generation request validation and planning.

The mask rule is checked here again, independently of the resolver's `needs_mask`: the user may
draw (or not draw) a mask between resolving an instruction and asking for generation.
"""

from __future__ import annotations

import json
import zlib
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict

from src.generation.prompts import (
    build_prompt_from_params,
    build_rich_prompt,
    params_to_structured_prompt,
)
from src.intent.schema import Operation, StructuredParams

MASK_REQUIRED_MESSAGE = (
    "Please draw on the area you want to edit first! Mark the region with the brush, "
    "send it as a photo captioned \"mask\", then try again."
)
REMOVE_FALLBACK_PROMPT = "empty, background continues naturally"
PLACEHOLDER_URL_TEMPLATE = "https://picsum.photos/seed/{seed}/1024/1024"


class GenerationBuilderError(ValueError):
    """Raised when a generation request is incomplete."""


class MaskRequiredError(GenerationBuilderError):
    """Raised when a mask-required operation is requested without a mask."""

    def __init__(self, message: str = MASK_REQUIRED_MESSAGE) -> None:
        super().__init__(message)


class GenerationKind(StrEnum):
    """Provider endpoint family."""

    gen_fill = "gen_fill"
    generate = "generate"


class GenerationRequest(BaseModel):
    """Inputs of one generation call."""

    model_config = ConfigDict(extra="forbid")

    image: str
    mask: str | None = None
    params: StructuredParams
    prompt: str = ""
    operation: Operation | None = None


@dataclass(frozen=True)
class GenerationPlan:
    """A validated, provider-ready generation call."""

    kind: GenerationKind
    image: str
    mask: str | None
    prompt: str
    structured_prompt: dict[str, Any]


@dataclass(frozen=True)
class GenerationResult:
    image_url: str
    seed: int | None = None
    structured_prompt: str | None = None


def strip_data_url(value: str) -> str:
    """Return the raw base64 payload of a `data:...;base64,` URL (or the value unchanged)."""

    if value.startswith("data:") and "," in value:
        return value.split(",", 1)[1]
    return value


def effective_prompt(request: GenerationRequest) -> str:
    """Prompt to use for the operation; removals default to a background-fill prompt."""

    if request.operation == Operation.inpaint_remove:
        return request.prompt or REMOVE_FALLBACK_PROMPT
    return request.prompt or build_prompt_from_params(request.params)


def build_generation_plan(request: GenerationRequest) -> GenerationPlan:
    """Validate a generation request and turn it into a plan.

    Raises:
        GenerationBuilderError: If the image is missing.
        MaskRequiredError: If the operation edits a region but no mask is attached.
    """

    if not request.image.strip():
        raise GenerationBuilderError("Image is required")

    if request.operation is not None and request.operation.requires_mask and not request.mask:
        raise MaskRequiredError()

    mask = strip_data_url(request.mask) if request.mask else None
    return GenerationPlan(
        kind=GenerationKind.gen_fill if mask else GenerationKind.generate,
        image=strip_data_url(request.image),
        mask=mask,
        prompt=build_rich_prompt(request.params, effective_prompt(request)),
        structured_prompt=params_to_structured_prompt(request.params),
    )


def placeholder_result(plan: GenerationPlan) -> GenerationResult:
    """Deterministic stand-in for a provider response (same plan, same result)."""

    seed = zlib.crc32(plan.prompt.encode("utf-8")) % 1_000_000
    return GenerationResult(
        image_url=PLACEHOLDER_URL_TEMPLATE.format(seed=seed),
        seed=seed,
        structured_prompt=json.dumps(plan.structured_prompt, sort_keys=True),
    )
