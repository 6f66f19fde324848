"""LLM-backed edit-instruction resolver.

The model classifies the instruction and proposes updated parameters as JSON. Its output is never
trusted as-is: the operation tag is checked against `Operation`, parameters are merged over the
current snapshot, clamped and validated, and the mask rule is recomputed locally.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from http.client import HTTPException
from pathlib import Path
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from pydantic import ValidationError

from src.intent.replies import DEFAULT_REPLY, mask_required_reply
from src.intent.schema import (
    CAMERA_BOUNDS,
    Operation,
    ResolverResult,
    StructuredParams,
    clamp,
    coerce_operation,
    edit_mode_for,
    mask_required,
)

logger = logging.getLogger(__name__)


class LLMResolverError(RuntimeError):
    """Raised when the LLM call fails or returns an unusable body."""


@dataclass(frozen=True)
class LLMConfig:
    """Configuration for the OpenAI-style (or Azure OpenAI) Chat Completions API call.

    When `api_version` is set, `api_base` is treated as an Azure resource endpoint and `model` as
    the deployment name.
    """

    api_key: str
    model: str = "gpt-4o-mini"
    api_base: str = "https://api.openai.com/v1"
    api_version: str | None = None
    timeout_s: float = 30.0
    temperature: float = 0.3


def _load_prompt() -> str:
    prompt_path = Path(__file__).resolve().parent / "prompt_resolver_v1.md"
    return prompt_path.read_text(encoding="utf-8")


def _strip_code_fences(text: str) -> str:
    value = (text or "").strip()
    if value.startswith("```"):
        value = value.strip("`")
        # After stripping backticks, try to remove leading "json" marker.
        value = value.removeprefix("json").strip()
    return value


def _chat_completions_url(config: LLMConfig) -> str:
    base = config.api_base.rstrip("/")
    if config.api_version:
        return (
            f"{base}/openai/deployments/{config.model}/chat/completions"
            f"?api-version={config.api_version}"
        )
    return base + "/chat/completions"


def _auth_headers(config: LLMConfig) -> dict[str, str]:
    if config.api_version:
        return {"api-key": config.api_key}
    return {"Authorization": f"Bearer {config.api_key}"}


def build_user_prompt(user_message: str, current_params: StructuredParams, has_mask: bool) -> str:
    """Render the per-request context sent alongside the fixed instruction set."""

    params_json = json.dumps(current_params.model_dump(mode="json"), indent=2)
    mask_state = (
        "YES - User has marked a specific region to edit"
        if has_mask
        else "NO - No specific region selected"
    )
    return (
        f"CURRENT PARAMETERS:\n{params_json}\n\n"
        f"USER HAS DRAWN MASK: {mask_state}\n\n"
        f'USER INSTRUCTION: "{user_message}"\n\n'
        "Analyze the intent and return the JSON response."
    )


def request_resolution_json(user_prompt: str, *, config: LLMConfig) -> dict[str, Any]:
    """Call the LLM and return the decoded JSON object it produced.

    Raises:
        LLMResolverError: On connection errors, timeouts, non-2xx statuses and unparsable bodies.
    """

    payload = {
        "model": config.model,
        "temperature": config.temperature,
        "response_format": {"type": "json_object"},
        "messages": [
            {"role": "system", "content": _load_prompt()},
            {"role": "user", "content": user_prompt},
        ],
    }

    req = Request(
        _chat_completions_url(config),
        method="POST",
        headers={"Content-Type": "application/json", **_auth_headers(config)},
        data=json.dumps(payload).encode(),
    )

    try:
        with urlopen(req, timeout=config.timeout_s) as resp:  # noqa: S310 (explicit network call)
            body = resp.read()
    except HTTPError as exc:
        raise LLMResolverError(f"LLM HTTP error: {exc.code}") from exc
    except URLError as exc:
        raise LLMResolverError("LLM connection error") from exc
    except TimeoutError as exc:
        raise LLMResolverError("LLM request timed out") from exc
    except (OSError, HTTPException) as exc:
        raise LLMResolverError("LLM connection error") from exc

    try:
        decoded = json.loads(body)
        content = decoded["choices"][0]["message"]["content"]
    except Exception as exc:  # noqa: BLE001
        raise LLMResolverError("Unexpected LLM response format") from exc

    if not content:
        raise LLMResolverError("Empty LLM response")

    try:
        obj = json.loads(_strip_code_fences(content))
    except json.JSONDecodeError as exc:
        raise LLMResolverError("LLM did not return valid JSON") from exc

    if not isinstance(obj, dict):
        raise LLMResolverError("LLM JSON is not an object")
    return obj


def _clamp_camera(camera: dict[str, Any]) -> dict[str, Any]:
    clamped = dict(camera)
    for name, (low, high) in CAMERA_BOUNDS.items():
        value = clamped.get(name)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            clamped[name] = clamp(value, low, high)
    return clamped


def merge_params(
        current_params: StructuredParams,
        raw_params: dict[str, Any],
        operation: Operation,
) -> StructuredParams:
    """Overlay model-proposed params onto the current snapshot and validate the result.

    Unknown keys are dropped (this tolerates a flattened body that also carries `operation`,
    `prompt` etc.), camera values are clamped and `edit_mode` is derived from `operation`.
    """

    merged = current_params.model_dump(mode="json")
    for name in StructuredParams.model_fields:
        if name not in raw_params:
            continue
        value = raw_params[name]
        if name == "camera" and isinstance(value, dict):
            value = _clamp_camera({**merged["camera"], **value})
        merged[name] = value

    merged["edit_mode"] = edit_mode_for(operation).value
    return StructuredParams.model_validate(merged)


def result_from_llm_obj(
        obj: dict[str, Any],
        *,
        current_params: StructuredParams,
        has_mask: bool,
) -> ResolverResult:
    """Turn a decoded LLM body into a validated `ResolverResult`.

    Raises:
        LLMResolverError: If the proposed parameters do not fit the schema.
    """

    raw_operation = obj.get("operation")
    operation = coerce_operation(raw_operation, has_mask=has_mask)
    if raw_operation != operation.value:
        logger.warning("llm operation=%r rejected; defaulted to %s", raw_operation, operation)

    nested = obj.get("params")
    raw_params = nested if isinstance(nested, dict) else obj

    try:
        params = merge_params(current_params, raw_params, operation)
    except ValidationError as exc:
        raise LLMResolverError(f"LLM returned invalid params: {exc.error_count()} error(s)") from exc

    upstream_needs_mask = bool(obj.get("needsMask", False))
    needs_mask = mask_required(operation, has_mask=has_mask)
    if upstream_needs_mask != needs_mask:
        logger.info("llm needsMask=%s overridden to %s", upstream_needs_mask, needs_mask)

    prompt = obj.get("prompt")
    response = obj.get("response")
    response = response if isinstance(response, str) and response else DEFAULT_REPLY
    if needs_mask and not upstream_needs_mask:
        response = mask_required_reply(params.subject_description)

    return ResolverResult(
        operation=operation,
        needs_mask=needs_mask,
        params=params,
        prompt=prompt if isinstance(prompt, str) else "",
        response=response,
    )


def resolve_via_llm(
        user_message: str,
        current_params: StructuredParams,
        has_mask: bool,
        *,
        config: LLMConfig,
) -> ResolverResult:
    """Resolve an instruction with the LLM (single attempt, errors propagate)."""

    user_prompt = build_user_prompt(user_message, current_params, has_mask)
    obj = request_resolution_json(user_prompt, config=config)
    return result_from_llm_obj(obj, current_params=current_params, has_mask=has_mask)
