"""
nexus/app/handlers/commands.py

Chat commands: /help /list /track /untrack /status.

Reply text is built by the *_reply coroutines; the handlers only extract
the sender and answer. Cache calls wait on the cache lock and do Redis I/O,
so they run in a thread (asyncio.to_thread) and never block the event loop.
"""

import asyncio
import logging
from typing import Optional

from aiogram import Router
from aiogram.enums import ParseMode
from aiogram.filters import Command, CommandObject
from aiogram.types import Message

from nexus.app.centers import CenterRegistry
from nexus.app.errors import DomainError, NexusError
from nexus.app.i18n.loader import t
from nexus.app.tracking import SubscriberCache

logger = logging.getLogger(__name__)

COMMANDS = ("help", "list", "track", "untrack", "status")


def help_text() -> str:
    lines = [t("help:header")]
    lines += [f"/{name} - {t(f'help:{name}')}" for name in COMMANDS]
    return "\n".join(lines)


def list_reply(centers: CenterRegistry) -> str:
    """MarkdownV2."""
    return "\n".join(centers.markdown_lines())


async def track_reply(
    cache: SubscriberCache,
    centers: CenterRegistry,
    args: Optional[str],
    user_id: Optional[int],
    chat_id: int,
) -> str:
    if not args:
        return t("track:usage")
    if user_id is None:
        return t("error:unknown_sender")

    try:
        center = centers.by_short_name(args.strip())
        await asyncio.to_thread(cache.track_center, chat_id, user_id, center.id)
    except DomainError as e:
        return str(e)
    except NexusError:
        logger.exception(f"track failed for user={user_id}")
        return t("track:failed")

    return t("track:ok", None, center.full_name)


async def untrack_reply(
    cache: SubscriberCache,
    centers: CenterRegistry,
    args: Optional[str],
    user_id: Optional[int],
) -> str:
    if not args:
        return t("untrack:usage")
    if user_id is None:
        return t("error:unknown_sender")

    try:
        center = centers.by_short_name(args.strip())
        await asyncio.to_thread(cache.untrack_center, user_id, center.id)
    except DomainError as e:
        return str(e)
    except NexusError:
        logger.exception(f"untrack failed for user={user_id}")
        return t("track:failed")

    return t("untrack:ok", None, center.full_name)


async def status_reply(
    cache: SubscriberCache,
    centers: CenterRegistry,
    user_id: Optional[int],
) -> tuple[str, Optional[ParseMode]]:
    """(text, parse_mode): the tracked list is MarkdownV2, errors are plain."""
    if user_id is None:
        return t("error:unknown_sender"), None

    try:
        record = await asyncio.to_thread(cache.get_subscriber_data, user_id)
    except NexusError:
        logger.exception(f"status failed for user={user_id}")
        return t("status:failed"), None

    lines = centers.markdown_lines(record.subscriptions if record else [])
    if not lines:
        lines = [t("status:none")]

    return "\n".join([t("status:title"), *lines]), ParseMode.MARKDOWN_V2


def _sender_id(message: Message) -> Optional[int]:
    return message.from_user.id if message.from_user else None


def setup(cache: SubscriberCache, centers: CenterRegistry) -> Router:
    """Build the command router around the shared cache."""

    router = Router(name="commands")

    @router.message(Command("help", "start"))
    async def help_handler(message: Message):
        await message.answer(help_text())

    @router.message(Command("list"))
    async def list_handler(message: Message):
        await message.answer(list_reply(centers), parse_mode=ParseMode.MARKDOWN_V2)

    @router.message(Command("track"))
    async def track_handler(message: Message, command: CommandObject):
        text = await track_reply(cache, centers, command.args, _sender_id(message), message.chat.id)
        await message.answer(text)

    @router.message(Command("untrack"))
    async def untrack_handler(message: Message, command: CommandObject):
        text = await untrack_reply(cache, centers, command.args, _sender_id(message))
        await message.answer(text)

    @router.message(Command("status"))
    async def status_handler(message: Message):
        text, parse_mode = await status_reply(cache, centers, _sender_id(message))
        await message.answer(text, parse_mode=parse_mode)

    return router
