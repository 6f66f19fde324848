"""Bot router composition."""

from __future__ import annotations

from aiogram import F, Router
from aiogram.filters import Command, CommandStart

from src.bot.handlers import (
    handle_generate,
    handle_instruction,
    handle_photo,
    handle_reset,
    handle_start,
)

router = Router(name="root")
router.message.register(handle_start, CommandStart())
router.message.register(handle_reset, Command("reset"))
router.message.register(handle_generate, Command("generate"))
router.message.register(handle_photo, F.photo)
router.message.register(handle_instruction)
