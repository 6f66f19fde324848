"""Resolver strategy selection and the request boundary.

The strategy (LLM or rules) is chosen once from configuration. A failing LLM call is reported to
the caller; it is not retried with the rules resolver.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from time import monotonic
from typing import TYPE_CHECKING, Literal, Protocol

from src.intent import rules_resolver
from src.intent.llm_resolver import LLMConfig, resolve_via_llm
from src.intent.schema import ResolveRequest, ResolverResult, StructuredParams

if TYPE_CHECKING:
    from src.config.settings import Settings

logger = logging.getLogger(__name__)

ResolverSource = Literal["llm", "rules"]


class EmptyInstructionError(ValueError):
    """Raised when the user message is missing or blank."""


class IntentResolver(Protocol):
    """Turns one user instruction into a `ResolverResult`."""

    source: ResolverSource

    def resolve(
            self,
            user_message: str,
            current_params: StructuredParams,
            has_mask: bool,
    ) -> ResolverResult:
        ...


@dataclass(frozen=True)
class RulesResolver:
    """Deterministic keyword resolver, used when no LLM credential is configured."""

    source: ResolverSource = "rules"

    def resolve(
            self,
            user_message: str,
            current_params: StructuredParams,
            has_mask: bool,
    ) -> ResolverResult:
        return rules_resolver.resolve(user_message, current_params, has_mask)


@dataclass(frozen=True)
class LLMResolver:
    """Resolver that delegates classification to a Chat Completions model."""

    config: LLMConfig
    source: ResolverSource = "llm"

    def resolve(
            self,
            user_message: str,
            current_params: StructuredParams,
            has_mask: bool,
    ) -> ResolverResult:
        return resolve_via_llm(user_message, current_params, has_mask, config=self.config)


def llm_config_from_settings(settings: Settings) -> LLMConfig | None:
    """Build the LLM config, or return `None` when no API key is configured."""

    if not settings.llm_api_key:
        return None
    return LLMConfig(
        api_key=settings.llm_api_key,
        model=settings.llm_model,
        api_base=settings.llm_api_base,
        api_version=settings.llm_api_version,
        timeout_s=settings.llm_timeout_s,
    )


def build_resolver(settings: Settings) -> IntentResolver:
    """Select the resolver strategy from configuration (LLM if a key is set, else rules)."""

    config = llm_config_from_settings(settings)
    if config is None:
        logger.info("resolver=rules (LLM_API_KEY not set)")
        return RulesResolver()
    logger.info("resolver=llm model=%s", config.model)
    return LLMResolver(config=config)


def resolve_instruction(resolver: IntentResolver, request: ResolveRequest) -> ResolverResult:
    """Validate the request and resolve it.

    Raises:
        EmptyInstructionError: If `user_message` is blank (client error).
        LLMResolverError: If the LLM strategy fails (dependency error).
    """

    if not request.user_message.strip():
        raise EmptyInstructionError("User message is required")

    started = monotonic()
    result = resolver.resolve(request.user_message, request.current_params, request.has_mask)

    latency_ms = int((monotonic() - started) * 1000)
    logger.info(
        "resolved source=%s operation=%s needs_mask=%s has_mask=%s latency_ms=%d",
        resolver.source,
        result.operation,
        result.needs_mask,
        request.has_mask,
        latency_ms,
    )
    return result
