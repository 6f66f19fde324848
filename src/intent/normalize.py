"""Text normalization for deterministic intent resolution."""

from __future__ import annotations


def normalize_text(text: str | None) -> str:
    """Normalize user text for rules-based resolution.

    Only lowercases the text. Whitespace and punctuation are preserved because object phrases are
    extracted from the normalized text and end up in prompts.
    """

    return (text or "").lower()
