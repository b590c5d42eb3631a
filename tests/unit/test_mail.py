"""Unit tests for verification mail scheduling and transports."""

import logging
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.bh_common.background import BackgroundTaskQueue
from src.bh_mail.service import (
    VerificationMailer,
    render_verification_mail,
    verification_link,
)
from src.bh_mail.transport import LoggingMailTransport, SmtpMailTransport


def test_verification_link_embeds_token() -> None:
    link = verification_link("a+b/c", base_url="https://bothost.test/")
    assert link == "https://bothost.test/api/v1/auth/verify-email?token=a%2Bb%2Fc"


async def test_schedule_only_enqueues() -> None:
    transport = AsyncMock()
    queue = BackgroundTaskQueue("test")
    mailer = VerificationMailer(transport=transport, queue=queue)

    assert mailer.schedule("alice@example.com", "alice", "tok123")
    transport.send.assert_not_awaited()

    await queue.run_pending()

    transport.send.assert_awaited_once()
    to, subject, body = transport.send.await_args.args
    assert to == "alice@example.com"
    assert "Verify" in subject
    assert "token=tok123" in body
    assert "alice" in body


async def test_send_failure_is_swallowed() -> None:
    transport = AsyncMock()
    transport.send.side_effect = OSError("connection refused")
    mailer = VerificationMailer(transport=transport, queue=BackgroundTaskQueue("test"))

    await mailer.send_now("alice@example.com", "body")

    transport.send.assert_awaited_once()


async def test_logging_transport_keeps_body_out_of_info_logs(
    caplog: pytest.LogCaptureFixture,
) -> None:
    body = render_verification_mail("alice", verification_link("secret-token-123"))
    with caplog.at_level(logging.INFO, logger="src.bh_mail.transport"):
        await LoggingMailTransport().send("a@example.com", "Verify", body)

    assert "a@example.com" in caplog.text
    assert "secret-token-123" not in caplog.text


async def test_smtp_transport_uses_starttls_and_login() -> None:
    smtp = MagicMock()
    smtp.__enter__.return_value = smtp
    transport = SmtpMailTransport(
        host="smtp.test",
        port=587,
        username="mailer",
        password="pw",
        use_tls=True,
        sender="no-reply@bothost.test",
    )

    with patch("src.bh_mail.transport.smtplib.SMTP", return_value=smtp) as smtp_cls:
        await transport.send("alice@example.com", "Hello", "Body")

    smtp_cls.assert_called_once_with("smtp.test", 587, timeout=10.0)
    smtp.starttls.assert_called_once()
    smtp.login.assert_called_once_with("mailer", "pw")
    sent = smtp.send_message.call_args.args[0]
    assert sent["To"] == "alice@example.com"
    assert sent["From"] == "no-reply@bothost.test"
    assert sent.get_content_type() == "text/plain"
