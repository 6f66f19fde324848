"""User-facing reply texts produced by the resolvers."""

from __future__ import annotations

DEFAULT_REPLY = "✨ Got it! Send /generate to apply changes."
STYLE_REPLY = "🎨 I'll apply those changes. Send /generate!"
GENERATE_NEW_REPLY = "🎨 I'll generate that for you. Send /generate!"
CAMERA_REPLY = "📷 Camera adjusted! Send /generate to see the new angle."
REPLACE_REPLY = "🔄 I'll replace that for you. Send /generate!"


def remove_reply(subject: str) -> str:
    return f'🗑️ I\'ll remove "{subject}" from the marked area. Send /generate!'


def add_reply(subject: str) -> str:
    return f'✨ I\'ll add "{subject}" to the marked area. Send /generate!'


def mask_required_reply(subject: str | None) -> str:
    """Instruction shown when an inpaint operation has no mask yet."""

    target = subject or "the area"
    return (
        f"🎯 Please draw on {target} first!\n\n"
        "Mark the area with the brush, send it as a photo captioned \"mask\", then send /generate."
    )
