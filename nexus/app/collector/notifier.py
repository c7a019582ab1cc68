"""
Telegram delivery for slot notifications.

The aiogram Bot (and its aiohttp session) is created lazily on the loop
that first sends, so the worker thread gets its own session instead of
sharing the one bound to the main event loop.
"""

import logging
from typing import Optional

from aiogram import Bot
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.exceptions import TelegramAPIError

from nexus.app.errors import TransportError

logger = logging.getLogger(__name__)


class TelegramNotifier:

    def __init__(self, token: str, bot: Optional[Bot] = None):
        self._token = token
        self._bot = bot

    def _get_bot(self) -> Bot:
        if self._bot is None:
            self._bot = Bot(
                token=self._token,
                default=DefaultBotProperties(parse_mode=ParseMode.MARKDOWN_V2),
            )
        return self._bot

    async def send(self, chat_id: int, text: str) -> None:
        """Raises TransportError if Telegram rejects or cannot be reached."""
        try:
            await self._get_bot().send_message(chat_id=chat_id, text=text)
        except TelegramAPIError as e:
            raise TransportError(f"Failed to send bot message to chat={chat_id}: {e}", endpoint="telegram") from e
        logger.info(f"Telegram notification sent to chat={chat_id}")

    async def close(self) -> None:
        if self._bot is not None:
            await self._bot.session.close()
            self._bot = None
