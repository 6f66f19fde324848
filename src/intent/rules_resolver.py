"""Rules-based English edit-instruction resolver (no language model).

This resolver is deterministic and total:
    - classification is an ordered list of keyword patterns (first match wins),
    - camera, lighting and color signals are extracted independently of the operation,
    - it never raises; unrecognized input degrades to `style_transfer`.
"""

from __future__ import annotations

import re

from src.intent.dictionaries import detect_camera_deltas, detect_color_palette, detect_lighting
from src.intent.normalize import normalize_text
from src.intent.replies import (
    CAMERA_REPLY,
    GENERATE_NEW_REPLY,
    REPLACE_REPLY,
    STYLE_REPLY,
    add_reply,
    mask_required_reply,
    remove_reply,
)
from src.intent.schema import (
    Operation,
    ResolverResult,
    StructuredParams,
    edit_mode_for,
    mask_required,
)

_REMOVE_VERBS = r"(?:remove|delete|erase|get rid of|clear|eliminate)"
_REPLACE_VERBS = r"(?:replace|change|swap|turn|convert)"
_ADD_VERBS = r"(?:add|put|place|insert|include)"

_REMOVE_RE = re.compile(rf"\b{_REMOVE_VERBS}\b")
_REMOVE_OBJECT_RE = re.compile(
    rf"{_REMOVE_VERBS}\s+(?:the\s+)?(?P<object>.+?)(?:\s+from|\s+in|\s*$)"
)

_REPLACE_RE = re.compile(rf"\b{_REPLACE_VERBS}\b.*\b(?:to|into|with)\b")
_REPLACE_PAIR_RE = re.compile(
    rf"{_REPLACE_VERBS}\s+(?:the\s+)?(?P<source>.+?)\s+(?:to|into|with)\s+(?P<target>.+?)\s*$"
)

_ADD_RE = re.compile(rf"\b{_ADD_VERBS}\b")
_ADD_OBJECT_RE = re.compile(
    rf"{_ADD_VERBS}\s+(?:a\s+|some\s+)?(?P<object>.+?)(?:\s+here|\s+there|\s+in|\s+on|\s*$)"
)

_CAMERA_RE = re.compile(r"\b(?:zoom|rotate|tilt|angle|pan)\b")
# "style" keeps phrases like "cinematic style with zoom" out of the camera-only branch.
_CAMERA_EXCLUDE_RE = re.compile(r"\b(?:add|remove|change|style)\b")

_GENERATE_RE = re.compile(r"\b(?:create|generate|imagine|make me a|design)\b")


def _extract_object(pattern: re.Pattern[str], text: str) -> str:
    match = pattern.search(text)
    if not match:
        return ""
    return match.group("object").strip()


def resolve(user_message: str, current_params: StructuredParams, has_mask: bool) -> ResolverResult:
    """Resolve an instruction into an operation, updated params, prompt and reply.

    The input snapshot is not mutated; a new `StructuredParams` is returned inside the result.
    """

    text = normalize_text(user_message)
    subject = current_params.subject_description
    prompt = user_message

    if _REMOVE_RE.search(text):
        operation = Operation.inpaint_remove
        subject = _extract_object(_REMOVE_OBJECT_RE, text) or user_message
        prompt = f"Remove {subject} from the marked area and fill with natural background"
        reply = remove_reply(subject)
    elif _REPLACE_RE.search(text):
        operation = Operation.inpaint_replace
        match = _REPLACE_PAIR_RE.search(text)
        if match:
            source, target = match.group("source"), match.group("target")
            subject = f"Replace {source} with {target}"
            prompt = f"Replace {source} with {target} in the marked area, blend naturally"
        reply = REPLACE_REPLY
    elif _ADD_RE.search(text):
        # Without a marked region an "add" becomes a whole-image change.
        operation = Operation.inpaint_add if has_mask else Operation.style_transfer
        subject = _extract_object(_ADD_OBJECT_RE, text) or user_message
        prompt = f"Add {subject} in the marked area, blend seamlessly"
        reply = add_reply(subject)
    elif _CAMERA_RE.search(text) and not _CAMERA_EXCLUDE_RE.search(text):
        operation = Operation.camera_adjust
        reply = CAMERA_REPLY
    elif _GENERATE_RE.search(text) and not has_mask:
        operation = Operation.generate_new
        subject = user_message
        reply = GENERATE_NEW_REPLY
    else:
        operation = Operation.style_transfer
        subject = user_message
        reply = STYLE_REPLY

    camera = current_params.camera
    for delta in detect_camera_deltas(text):
        camera = camera.adjusted(yaw=delta.yaw, fov=delta.fov)

    params = current_params.model_copy(
        update={
            "camera": camera,
            "lighting": detect_lighting(text) or current_params.lighting,
            "color_palette": detect_color_palette(text) or current_params.color_palette,
            "subject_description": subject,
            "edit_mode": edit_mode_for(operation),
        }
    )

    needs_mask = mask_required(operation, has_mask=has_mask)
    if needs_mask:
        reply = mask_required_reply(params.subject_description)

    return ResolverResult(
        operation=operation,
        needs_mask=needs_mask,
        params=params,
        prompt=prompt,
        response=reply,
    )
