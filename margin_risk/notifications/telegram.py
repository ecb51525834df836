"""Telegram notification service."""
import html
import logging
import ssl

import aiohttp
import certifi

from ..config import TelegramConfig

logger = logging.getLogger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org/bot{token}/sendMessage"


class TelegramNotifier:
    """Send risk notices via two Telegram bots: one for alerts, one for logs."""

    def __init__(self, config: TelegramConfig) -> None:
        self.alert_bot_token = config.alert_bot_token
        self.log_bot_token = config.log_bot_token
        self.chat_id = config.chat_id

    @staticmethod
    def _format(message: str, subject: str = "") -> str:
        body = html.escape(message, quote=False)
        if subject:
            return f"<b>{html.escape(subject, quote=False)}</b>\n\n{body}"
        return body

    async def _send_message(
        self, text: str, bot_token: str, silent: bool = False
    ) -> bool:
        """Post ``text`` through the bot identified by ``bot_token``."""
        if not bot_token or not self.chat_id:
            logger.warning("Telegram credentials not configured")
            return False

        payload = {
            "chat_id": self.chat_id,
            "text": text,
            "parse_mode": "HTML",
            "disable_notification": silent,
        }

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        async with aiohttp.ClientSession(connector=connector) as session:
            async with session.post(
                TELEGRAM_API_URL.format(token=bot_token), json=payload
            ) as response:
                if response.status != 200:
                    logger.error("Telegram sendMessage failed: HTTP %s", response.status)
                    return False
                return True

    async def send_alert(self, message: str, subject: str = "") -> bool:
        """Send a risk alert through the unmuted alert bot."""
        sent = await self._send_message(
            self._format(message, subject), self.alert_bot_token, silent=False
        )
        if sent:
            logger.info("Telegram alert sent: %s", subject or "(no subject)")
        return sent

    async def send_log(self, message: str, silent: bool = True) -> bool:
        """Send a routine snapshot through the log bot."""
        sent = await self._send_message(
            self._format(message), self.log_bot_token, silent=silent
        )
        if sent:
            logger.debug("Telegram log sent")
        return sent
