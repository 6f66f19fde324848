"""Application composition root.

This module wires together configuration, the selected intent resolver, and session storage for
the bot runtime.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from src.config.settings import Settings
from src.intent.resolver import IntentResolver, build_resolver
from src.session.store import SessionStore


@dataclass(frozen=True)
class App:
    """Shared application dependencies for handlers."""

    settings: Settings
    resolver: IntentResolver
    sessions: SessionStore = field(default_factory=SessionStore)


def create_app(settings: Settings) -> App:
    """Create the application container.

    The resolver strategy is selected here, once per process.
    """

    return App(settings=settings, resolver=build_resolver(settings))
