"""Unit tests for notification services."""
from __future__ import annotations

import smtplib
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from margin_risk.config import EmailConfig, TelegramConfig
from margin_risk.notifications.email import EmailNotifier
from margin_risk.notifications.telegram import TelegramNotifier


def _mock_session(status: int) -> AsyncMock:
    mock_response = AsyncMock()
    mock_response.status = status
    mock_response.__aenter__ = AsyncMock(return_value=mock_response)
    mock_response.__aexit__ = AsyncMock(return_value=None)

    mock_session = AsyncMock()
    mock_session.post = MagicMock(return_value=mock_response)
    mock_session.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session.__aexit__ = AsyncMock(return_value=None)
    return mock_session


# ---------------------------------------------------------------------------
# TelegramNotifier
# ---------------------------------------------------------------------------


@pytest.fixture()
def telegram_notifier() -> TelegramNotifier:
    return TelegramNotifier(
        TelegramConfig(
            enabled=True,
            alert_bot_token="alert-tok",
            log_bot_token="log-tok",
            chat_id="12345",
        )
    )


class TestTelegramNotifier:
    @pytest.mark.asyncio
    async def test_send_alert_success(self, telegram_notifier: TelegramNotifier) -> None:
        session = _mock_session(200)
        with patch("margin_risk.notifications.telegram.aiohttp.ClientSession", return_value=session):
            with patch("margin_risk.notifications.telegram.aiohttp.TCPConnector"):
                result = await telegram_notifier.send_alert("equity < 50%", subject="Margin call")

        assert result is True
        url = session.post.call_args[0][0]
        payload = session.post.call_args.kwargs["json"]
        assert "botalert-tok" in url
        assert payload["chat_id"] == "12345"
        assert payload["disable_notification"] is False
        assert payload["text"] == "<b>Margin call</b>\n\nequity &lt; 50%"

    @pytest.mark.asyncio
    async def test_send_alert_failure(self, telegram_notifier: TelegramNotifier) -> None:
        session = _mock_session(403)
        with patch("margin_risk.notifications.telegram.aiohttp.ClientSession", return_value=session):
            with patch("margin_risk.notifications.telegram.aiohttp.TCPConnector"):
                result = await telegram_notifier.send_alert("test alert")

        assert result is False

    @pytest.mark.asyncio
    async def test_send_log_uses_log_bot(self, telegram_notifier: TelegramNotifier) -> None:
        session = _mock_session(200)
        with patch("margin_risk.notifications.telegram.aiohttp.ClientSession", return_value=session):
            with patch("margin_risk.notifications.telegram.aiohttp.TCPConnector"):
                result = await telegram_notifier.send_log("snapshot", silent=True)

        assert result is True
        assert "botlog-tok" in session.post.call_args[0][0]
        assert session.post.call_args.kwargs["json"]["disable_notification"] is True

    @pytest.mark.asyncio
    async def test_unconfigured_returns_false(self) -> None:
        notifier = TelegramNotifier(TelegramConfig(enabled=True))
        assert await notifier.send_alert("test") is False
        assert await notifier.send_log("test") is False


# ---------------------------------------------------------------------------
# EmailNotifier
# ---------------------------------------------------------------------------


@pytest.fixture()
def email_notifier() -> EmailNotifier:
    return EmailNotifier(
        EmailConfig(
            enabled=True,
            alert_email="trader@example.com",
            smtp_server="smtp.example.com",
            smtp_port=587,
            sender_email="risk@example.com",
            sender_password="password123",
        )
    )


class TestEmailNotifier:
    @pytest.mark.asyncio
    async def test_send_alert_success(self, email_notifier: EmailNotifier) -> None:
        mock_smtp = MagicMock()
        mock_smtp.__enter__.return_value = mock_smtp
        with patch("margin_risk.notifications.email.smtplib.SMTP", return_value=mock_smtp) as smtp_cls:
            result = await email_notifier.send_alert("body", subject="Margin call")

        assert result is True
        smtp_cls.assert_called_once_with("smtp.example.com", 587)
        mock_smtp.starttls.assert_called_once()
        mock_smtp.login.assert_called_once_with("risk@example.com", "password123")
        sent = mock_smtp.send_message.call_args[0][0]
        assert sent["Subject"] == "[margin-risk] Margin call"
        assert sent["To"] == "trader@example.com"

    @pytest.mark.asyncio
    async def test_send_alert_smtp_error(self, email_notifier: EmailNotifier) -> None:
        with patch(
            "margin_risk.notifications.email.smtplib.SMTP",
            side_effect=ConnectionError("SMTP down"),
        ):
            assert await email_notifier.send_alert("body", subject="Test") is False

    @pytest.mark.asyncio
    async def test_login_rejected(self, email_notifier: EmailNotifier) -> None:
        mock_smtp = MagicMock()
        mock_smtp.__enter__.return_value = mock_smtp
        mock_smtp.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")
        with patch("margin_risk.notifications.email.smtplib.SMTP", return_value=mock_smtp):
            assert await email_notifier.send_alert("body") is False
        mock_smtp.send_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_alert_email_returns_false(self) -> None:
        assert await EmailNotifier(EmailConfig(enabled=True)).send_alert("test") is False

    @pytest.mark.asyncio
    async def test_no_credentials_returns_false(self) -> None:
        notifier = EmailNotifier(EmailConfig(enabled=True, alert_email="t@example.com"))
        assert await notifier.send_alert("test") is False

    @pytest.mark.asyncio
    async def test_send_log_is_noop(self, email_notifier: EmailNotifier) -> None:
        assert await email_notifier.send_log("test") is False
