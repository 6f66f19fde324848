"""aiogram message handlers.

Every incoming message gets exactly one reply. Resolver and generation errors are answered with a
short user-facing message; details only go to the log. A failed instruction never changes the
chat's session.
"""

from __future__ import annotations

import logging

from aiogram.types import Message

from src.app import App
from src.generation.builder import (
    GenerationBuilderError,
    GenerationRequest,
    MaskRequiredError,
    build_generation_plan,
    placeholder_result,
)
from src.intent.llm_resolver import LLMResolverError
from src.intent.resolver import EmptyInstructionError, resolve_instruction
from src.session.store import EditSession

logger = logging.getLogger(__name__)

HELP_TEXT = (
    "Send a photo to start editing, then describe the change in words "
    "(e.g. \"remove the car\", \"make it warm and dramatic\", \"zoom in\").\n"
    "To edit a region, draw on the photo and send it captioned \"mask\".\n"
    "/generate renders the current edit, /reset starts over."
)
EMPTY_INSTRUCTION_REPLY = "Please describe the edit you want."
FAILED_REPLY = "Failed to process instruction. Please try again."
NO_IMAGE_REPLY = "Please send an image first."
IMAGE_RECEIVED_REPLY = "🖼️ Image received. Describe the edit you want."


def _is_command_text(text: str) -> bool:
    return text.lstrip().startswith("/")


def _resolve_into_session(app: App, session: EditSession, raw_text: str) -> str:
    """Resolve `raw_text`, fold the result into `session` and return the reply text.

    On any failure the session is left untouched and a generic reply is returned.
    """

    # noinspection PyBroadException
    try:
        result = resolve_instruction(app.resolver, session.request_for(raw_text))
    except EmptyInstructionError:
        return EMPTY_INSTRUCTION_REPLY
    except LLMResolverError as exc:
        logger.warning("resolver failed source=%s reason=%s", app.resolver.source, exc)
        return FAILED_REPLY
    except Exception:
        # Handler boundary: reply without leaking details.
        logger.exception("handler failed")
        return FAILED_REPLY

    session.apply(result)
    return result.response


async def handle_start(message: Message, app: App) -> None:
    """Reply with usage help."""

    await message.answer(HELP_TEXT)


async def handle_reset(message: Message, app: App) -> None:
    """Drop the chat's image, mask and parameters."""

    app.sessions.get(message.chat.id).reset()
    await message.answer("Session reset. Send a photo to start again.")


async def handle_photo(message: Message, app: App) -> None:
    """Store an incoming photo as the working image, or as the mask if captioned "mask".

    Any other caption is resolved as the first instruction for the new image.
    """

    session = app.sessions.get(message.chat.id)
    file_id = message.photo[-1].file_id
    caption = (message.caption or "").lower()

    if "mask" in caption:
        if session.image is None:
            await message.answer(NO_IMAGE_REPLY)
            return
        session.set_mask(file_id)
        await message.answer("🖌️ Mask attached. Describe the edit or send /generate.")
        return

    session.set_image(file_id)
    instruction = (message.caption or "").strip()
    if not instruction or _is_command_text(instruction):
        await message.answer(IMAGE_RECEIVED_REPLY)
        return

    # A captioned photo is an image plus its first instruction.
    reply = _resolve_into_session(app, session, instruction)
    await message.answer(f"🖼️ Image received.\n\n{reply}")


async def handle_instruction(message: Message, app: App) -> None:
    """Resolve a free-text instruction and fold the result into the chat session."""

    raw_text = message.text or message.caption or ""
    if _is_command_text(raw_text):
        await message.answer(HELP_TEXT)
        return

    session = app.sessions.get(message.chat.id)
    await message.answer(_resolve_into_session(app, session, raw_text))


async def handle_generate(message: Message, app: App) -> None:
    """Validate the pending edit and reply with a (placeholder) generated image."""

    session = app.sessions.get(message.chat.id)
    if session.image is None:
        await message.answer(NO_IMAGE_REPLY)
        return

    last = session.last_result
    request = GenerationRequest(
        image=session.image,
        mask=session.mask,
        params=session.params,
        prompt=last.prompt if last is not None else "",
        operation=last.operation if last is not None else None,
    )

    try:
        plan = build_generation_plan(request)
    except MaskRequiredError as exc:
        logger.info("generation blocked reason=mask_required operation=%s", request.operation)
        await message.answer(f"🎯 {exc}")
        return
    except GenerationBuilderError as exc:
        logger.info("generation rejected reason=%s", exc)
        await message.answer(str(exc))
        return

    result = placeholder_result(plan)
    logger.info(
        "generated kind=%s operation=%s seed=%s",
        plan.kind,
        request.operation,
        result.seed,
    )
    await message.answer(f"🖼️ {result.image_url}")
