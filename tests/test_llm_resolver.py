"""Tests for the LLM-backed resolver: response validation and failure propagation.

No network access: `urlopen` is replaced with fakes.
"""

from __future__ import annotations

import io
import json
from http.client import IncompleteRead, RemoteDisconnected
from typing import Any
from urllib.error import HTTPError, URLError

import pytest

from src.intent import llm_resolver
from src.intent.llm_resolver import (
    LLMConfig,
    LLMResolverError,
    build_user_prompt,
    resolve_via_llm,
    result_from_llm_obj,
)
from src.intent.replies import DEFAULT_REPLY
from src.intent.schema import (
    CameraParams,
    EditMode,
    Lighting,
    Operation,
    StructuredParams,
)

_CONFIG = LLMConfig(api_key="test-key", timeout_s=5.0)


class _FakeResponse:
    def __init__(self, body: bytes) -> None:
        self._body = body

    def read(self) -> bytes:
        return self._body

    def __enter__(self) -> _FakeResponse:
        return self

    def __exit__(self, *_exc: object) -> None:
        return None


def _completion(content: str) -> bytes:
    return json.dumps({"choices": [{"message": {"content": content}}]}).encode()


def _install_urlopen(monkeypatch: pytest.MonkeyPatch, body: bytes) -> list[Any]:
    calls: list[Any] = []

    def _fake_urlopen(req: Any, timeout: float) -> _FakeResponse:
        calls.append((req, timeout))
        return _FakeResponse(body)

    monkeypatch.setattr(llm_resolver, "urlopen", _fake_urlopen)
    return calls


def test_invalid_operation_defaults_by_mask_state() -> None:
    obj = {"operation": "make_it_pop", "params": {}, "prompt": "p", "response": "r"}

    with_mask = result_from_llm_obj(obj, current_params=StructuredParams(), has_mask=True)
    without_mask = result_from_llm_obj(obj, current_params=StructuredParams(), has_mask=False)

    assert with_mask.operation == Operation.inpaint_replace
    assert with_mask.params.edit_mode == EditMode.mask
    assert without_mask.operation == Operation.style_transfer
    assert without_mask.params.edit_mode == EditMode.full


def test_missing_fields_use_defaults() -> None:
    result = result_from_llm_obj(
        {"operation": "style_transfer"},
        current_params=StructuredParams(lighting=Lighting.neon),
        has_mask=False,
    )
    assert result.needs_mask is False
    assert result.prompt == ""
    assert result.response == DEFAULT_REPLY
    assert result.params.lighting == Lighting.neon


def test_flattened_params_are_accepted() -> None:
    obj = {
        "operation": "style_transfer",
        "lighting": "dramatic_side",
        "color_palette": "warm",
        "prompt": "moody",
        "response": "ok",
    }
    result = result_from_llm_obj(obj, current_params=StructuredParams(), has_mask=False)
    assert result.params.lighting == Lighting.dramatic_side
    assert result.params.color_palette == "warm"
    assert result.prompt == "moody"


def test_params_merge_over_snapshot_and_clamp_camera() -> None:
    current = StructuredParams(
        camera=CameraParams(yaw=10, pitch=5, fov=40),
        subject_description="old subject",
    )
    obj = {
        "operation": "camera_adjust",
        "params": {"camera": {"yaw": -400, "fov": 5}},
        "response": "Camera adjusted",
    }
    result = result_from_llm_obj(obj, current_params=current, has_mask=False)
    assert result.params.camera.yaw == -180
    assert result.params.camera.fov == 10
    assert result.params.camera.pitch == 5
    assert result.params.subject_description == "old subject"
    assert result.params.edit_mode == EditMode.full


def test_mask_gate_is_recomputed_locally() -> None:
    obj = {
        "operation": "inpaint_remove",
        "needsMask": False,
        "params": {"subject_description": "the bin"},
        "response": "Removing it!",
    }
    result = result_from_llm_obj(obj, current_params=StructuredParams(), has_mask=False)
    assert result.needs_mask is True
    assert "draw on the bin" in result.response

    obj["needsMask"] = True
    result = result_from_llm_obj(obj, current_params=StructuredParams(), has_mask=True)
    assert result.needs_mask is False
    assert result.response == "Removing it!"


def test_model_mask_reply_is_kept_when_flagged() -> None:
    obj = {
        "operation": "inpaint_add",
        "needsMask": True,
        "params": {},
        "response": "Draw where the hat goes.",
    }
    result = result_from_llm_obj(obj, current_params=StructuredParams(), has_mask=False)
    assert result.needs_mask is True
    assert result.response == "Draw where the hat goes."


def test_invalid_params_raise() -> None:
    obj = {"operation": "style_transfer", "params": {"lighting": "moonbeam"}}
    with pytest.raises(LLMResolverError):
        result_from_llm_obj(obj, current_params=StructuredParams(), has_mask=False)


def test_user_prompt_carries_context() -> None:
    prompt = build_user_prompt("zoom in", StructuredParams(), True)
    assert '"fov": 40' in prompt
    assert "USER HAS DRAWN MASK: YES" in prompt
    assert 'USER INSTRUCTION: "zoom in"' in prompt


def test_resolve_via_llm_success(monkeypatch: pytest.MonkeyPatch) -> None:
    content = json.dumps(
        {
            "operation": "inpaint_replace",
            "needsMask": False,
            "params": {"subject_description": "Replace sky with sunset"},
            "prompt": "Replace sky with sunset",
            "response": "On it!",
        }
    )
    calls = _install_urlopen(monkeypatch, _completion(content))

    result = resolve_via_llm("replace the sky with a sunset", StructuredParams(), True, config=_CONFIG)

    assert result.operation == Operation.inpaint_replace
    assert result.params.subject_description == "Replace sky with sunset"
    assert result.response == "On it!"

    req, timeout = calls[0]
    assert timeout == 5.0
    assert req.full_url == "https://api.openai.com/v1/chat/completions"
    assert req.get_header("Authorization") == "Bearer test-key"
    payload = json.loads(req.data)
    assert payload["temperature"] == 0.3
    assert payload["response_format"] == {"type": "json_object"}
    assert payload["messages"][0]["role"] == "system"


def test_azure_url_and_header(monkeypatch: pytest.MonkeyPatch) -> None:
    config = LLMConfig(
        api_key="azure-key",
        model="gpt-4o",
        api_base="https://example.openai.azure.com/",
        api_version="2024-02-01",
    )
    calls = _install_urlopen(monkeypatch, _completion('{"operation": "camera_adjust"}'))

    resolve_via_llm("zoom in", StructuredParams(), False, config=config)

    req, _timeout = calls[0]
    assert req.full_url == (
        "https://example.openai.azure.com/openai/deployments/gpt-4o/chat/completions"
        "?api-version=2024-02-01"
    )
    assert req.get_header("Api-key") == "azure-key"


def test_code_fenced_content_is_unwrapped(monkeypatch: pytest.MonkeyPatch) -> None:
    content = '```json\n{"operation": "generate_new", "prompt": "a castle"}\n```'
    _install_urlopen(monkeypatch, _completion(content))

    result = resolve_via_llm("imagine a castle", StructuredParams(), False, config=_CONFIG)
    assert result.operation == Operation.generate_new
    assert result.prompt == "a castle"


@pytest.mark.parametrize(
    "body",
    [
        b"not json",
        json.dumps({"choices": []}).encode(),
        _completion(""),
        _completion("I think you want a style transfer"),
        _completion('["style_transfer"]'),
    ],
)
def test_malformed_bodies_raise(monkeypatch: pytest.MonkeyPatch, body: bytes) -> None:
    _install_urlopen(monkeypatch, body)
    with pytest.raises(LLMResolverError):
        resolve_via_llm("make it pop", StructuredParams(), False, config=_CONFIG)


@pytest.mark.parametrize(
    "exc",
    [
        HTTPError("https://api.openai.com/v1/chat/completions", 500, "boom", {}, io.BytesIO(b"")),
        URLError("unreachable"),
        TimeoutError("timed out"),
        ConnectionResetError("reset by peer"),
        RemoteDisconnected("closed"),
        IncompleteRead(b"partial"),
    ],
)
def test_transport_failures_raise(monkeypatch: pytest.MonkeyPatch, exc: Exception) -> None:
    def _failing_urlopen(_req: Any, timeout: float) -> _FakeResponse:
        raise exc

    monkeypatch.setattr(llm_resolver, "urlopen", _failing_urlopen)
    with pytest.raises(LLMResolverError):
        resolve_via_llm("remove the car", StructuredParams(), False, config=_CONFIG)


def test_empty_nested_params_are_not_read_from_top_level() -> None:
    obj = {"operation": "style_transfer", "params": {}, "lighting": "neon"}
    result = result_from_llm_obj(obj, current_params=StructuredParams(), has_mask=False)
    assert result.params.lighting == Lighting.studio_soft
