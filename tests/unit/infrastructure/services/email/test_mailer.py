"""Unit tests for the mailer."""

import logging
import unittest.mock as mock
from typing import Iterator

import aiosmtplib
import pytest
from structlog.testing import capture_logs

from multismtp.application.bootstrap import create_smtp_wiring
from multismtp.core.config import Settings
from multismtp.core.context import clear_current_context, set_current_context
from multismtp.core.exceptions import MailDeliveryError
from multismtp.core.hooks import HookEvent, HookRegistry
from multismtp.domain.entities.mail_context import MailContext
from multismtp.infrastructure.services.email.mailer import Mailer


@pytest.fixture
def app_settings() -> Settings:
    return Settings(
        default_from_email="site@example.com",
        default_from_name="Site",
        sendmail_path="/usr/sbin/sendmail",
    )


@pytest.fixture
def smtp_class() -> Iterator[mock.MagicMock]:
    """Patch aiosmtplib.SMTP; the connected client is smtp_class.client."""
    with mock.patch("aiosmtplib.SMTP") as patched:
        client = mock.AsyncMock()
        client.last_ehlo_response = aiosmtplib.SMTPResponse(250, "smtp.example.com at your service")
        for method in (client.auth_login, client.auth_plain, client.login):
            method.return_value = aiosmtplib.SMTPResponse(235, "2.7.0 Authentication successful")
        client.send_message.return_value = ({}, "2.0.0 OK queued")
        patched.return_value.__aenter__.return_value = client
        patched.return_value.__aexit__.return_value = False
        patched.client = client
        yield patched


def _sendmail_process(returncode: int = 0, stderr: bytes = b"") -> mock.MagicMock:
    process = mock.MagicMock()
    process.communicate = mock.AsyncMock(return_value=(b"", stderr))
    process.returncode = returncode
    return process


@pytest.mark.asyncio
async def test_smtp_send_with_ssl_defaults(required_source, registry, app_settings, smtp_class) -> None:
    """Registered wiring switches delivery to SMTP over implicit TLS."""
    create_smtp_wiring(required_source).register(registry)
    mailer = Mailer(registry, app_settings)

    success = await mailer.send(
        to="recipient@example.com",
        subject="Test Subject",
        text_body="Text Body",
        html_body="<p>HTML Body</p>",
    )

    assert success is True
    smtp_class.assert_called_once_with(
        hostname="smtp.example.com",
        port=465,
        use_tls=True,
        start_tls=False,
        timeout=10,
    )
    smtp_class.client.auth_login.assert_called_once_with("mailer", "s3cret")
    smtp_class.client.send_message.assert_called_once()

    sent_message = smtp_class.client.send_message.call_args[0][0]
    assert sent_message["Subject"] == "Test Subject"
    assert sent_message["To"] == "recipient@example.com"
    assert sent_message["From"] == "Site <site@example.com>"
    assert sent_message["Reply-To"] is None
    assert smtp_class.client.send_message.call_args.kwargs["sender"] == "site@example.com"


@pytest.mark.asyncio
async def test_smtp_send_with_starttls_and_plain(
    required_source, registry, app_settings, smtp_class
) -> None:
    required_source.update(SECURE="tls", PORT=587, AUTH_TYPE="PLAIN")
    create_smtp_wiring(required_source).register(registry)

    await Mailer(registry, app_settings).send("r@example.com", "S", "Body")

    smtp_class.assert_called_once_with(
        hostname="smtp.example.com",
        port=587,
        use_tls=False,
        start_tls=True,
        timeout=10,
    )
    smtp_class.client.auth_plain.assert_called_once_with("mailer", "s3cret")
    smtp_class.client.auth_login.assert_not_called()


@pytest.mark.asyncio
async def test_smtp_send_without_security_skips_login(
    required_source, registry, app_settings, smtp_class
) -> None:
    required_source.update(SECURE="none", PORT=25)
    create_smtp_wiring(required_source).register(registry)

    await Mailer(registry, app_settings).send("r@example.com", "S", "Body")

    smtp_class.assert_called_once_with(
        hostname="smtp.example.com",
        port=25,
        use_tls=False,
        start_tls=False,
        timeout=10,
    )
    smtp_class.client.auth_login.assert_not_called()
    smtp_class.client.auth_plain.assert_not_called()
    smtp_class.client.login.assert_not_called()
    smtp_class.client.send_message.assert_called_once()


@pytest.mark.asyncio
async def test_ntlm_falls_back_to_negotiated_login(
    required_source, registry, app_settings, smtp_class
) -> None:
    required_source["AUTH_TYPE"] = "NTLM"
    create_smtp_wiring(required_source).register(registry)

    await Mailer(registry, app_settings).send("r@example.com", "S", "Body")

    smtp_class.client.login.assert_called_once_with("mailer", "s3cret")


@pytest.mark.asyncio
async def test_overrides_reply_to_and_return_path(
    required_source, registry, app_settings, smtp_class
) -> None:
    required_source.update(
        FROM="ops@example.com",
        FROM_NAME="Ops",
        RETURN_PATH="bounces@example.com",
        REPLYTO_FROM="help@example.com",
    )
    create_smtp_wiring(required_source).register(registry)

    await Mailer(registry, app_settings).send("r@example.com", "S", "Body")

    sent_message = smtp_class.client.send_message.call_args[0][0]
    assert sent_message["From"] == "Ops <ops@example.com>"
    assert sent_message["Reply-To"] == "Ops <help@example.com>"
    assert smtp_class.client.send_message.call_args.kwargs["sender"] == "bounces@example.com"


@pytest.mark.asyncio
async def test_smtp_failure_raises_delivery_error(
    required_source, registry, app_settings, smtp_class
) -> None:
    create_smtp_wiring(required_source).register(registry)
    smtp_class.client.send_message.side_effect = aiosmtplib.SMTPException("rejected")

    with pytest.raises(MailDeliveryError) as exc_info:
        await Mailer(registry, app_settings).send("r@example.com", "S", "Body")

    assert exc_info.value.transport == "smtp"
    assert "rejected" in exc_info.value.message


def _exchanges(logs: list[dict]) -> list[dict]:
    return [entry for entry in logs if entry["event"] == "SMTP exchange"]


@pytest.mark.asyncio
async def test_debug_logs_smtp_exchange_in_admin_context(
    required_source, registry, app_settings, smtp_class
) -> None:
    required_source["DEBUG"] = True
    create_smtp_wiring(required_source).register(registry)

    with capture_logs() as logs:
        await Mailer(registry, app_settings).send(
            "r@example.com", "S", "Body", context=MailContext(is_admin=True)
        )

    exchanges = _exchanges(logs)
    assert [entry["step"] for entry in exchanges] == ["ehlo", "auth", "data"]
    assert exchanges[0]["code"] == 250
    assert exchanges[1]["code"] == 235
    assert exchanges[2]["reply"] == "2.0.0 OK queued"
    assert exchanges[2]["refused"] == []
    assert all(entry["host"] == "smtp.example.com" for entry in exchanges)


@pytest.mark.parametrize(
    "debug,context",
    [
        (True, MailContext(is_admin=True, is_background=True)),
        (True, MailContext(is_admin=False)),
        (False, MailContext(is_admin=True)),
    ],
)
@pytest.mark.asyncio
async def test_smtp_exchange_not_logged_without_debug(
    required_source, registry, app_settings, smtp_class, debug, context
) -> None:
    required_source["DEBUG"] = debug
    create_smtp_wiring(required_source).register(registry)

    with capture_logs() as logs:
        await Mailer(registry, app_settings).send("r@example.com", "S", "Body", context=context)

    assert _exchanges(logs) == []
    assert any(entry["event"] == "Email sent" for entry in logs)


@pytest.mark.asyncio
async def test_debug_leaves_stdlib_loggers_untouched(
    required_source, registry, app_settings, smtp_class
) -> None:
    required_source["DEBUG"] = True
    create_smtp_wiring(required_source).register(registry)
    before = {name: logging.getLogger(name).level for name in ("", "aiosmtplib")}

    await Mailer(registry, app_settings).send(
        "r@example.com", "S", "Body", context=MailContext(is_admin=True)
    )

    assert {name: logging.getLogger(name).level for name in before} == before


@pytest.mark.asyncio
async def test_current_context_is_used_when_none_given(
    required_source, registry, app_settings, smtp_class
) -> None:
    required_source["DEBUG"] = True
    create_smtp_wiring(required_source).register(registry)
    set_current_context(MailContext(is_admin=True))

    try:
        with capture_logs() as logs:
            await Mailer(registry, app_settings).send("r@example.com", "S", "Body")
    finally:
        clear_current_context()

    assert [entry["step"] for entry in _exchanges(logs)] == ["ehlo", "auth", "data"]


@pytest.mark.asyncio
async def test_without_wiring_uses_sendmail(registry: HookRegistry, app_settings, smtp_class) -> None:
    process = _sendmail_process()

    with mock.patch(
        "asyncio.create_subprocess_exec", new=mock.AsyncMock(return_value=process)
    ) as create_process:
        success = await Mailer(registry, app_settings).send("r@example.com", "S", "Body")

    assert success is True
    smtp_class.assert_not_called()
    assert create_process.call_args[0] == (
        "/usr/sbin/sendmail",
        "-t",
        "-i",
        "-f",
        "site@example.com",
    )
    raw = process.communicate.call_args[0][0]
    assert b"To: r@example.com" in raw


@pytest.mark.asyncio
async def test_from_override_applies_without_smtp(registry: HookRegistry, app_settings) -> None:
    """Invalid SMTP settings still let the from overrides through."""
    create_smtp_wiring({"FROM": "ops@example.com"}).register(registry, warn=lambda message: None)

    transport = await Mailer(registry, app_settings).prepare_transport(MailContext())

    assert transport.mailer == "sendmail"
    assert transport.from_address == "ops@example.com"
    assert transport.from_name == "Site"


@pytest.mark.asyncio
async def test_normal_priority_hook_overrides_from(required_source, registry, app_settings) -> None:
    required_source["FROM"] = "ops@example.com"
    create_smtp_wiring(required_source).register(registry)
    registry.register(HookEvent.ON_MAIL_FROM, lambda e, d, c: "custom@example.com")

    transport = await Mailer(registry, app_settings).prepare_transport(MailContext())

    assert transport.from_address == "custom@example.com"


@pytest.mark.asyncio
async def test_sendmail_failure_raises_delivery_error(registry: HookRegistry, app_settings) -> None:
    process = _sendmail_process(returncode=75, stderr=b"queue full")

    with mock.patch("asyncio.create_subprocess_exec", new=mock.AsyncMock(return_value=process)):
        with pytest.raises(MailDeliveryError) as exc_info:
            await Mailer(registry, app_settings).send("r@example.com", "S", "Body")

    assert exc_info.value.transport == "sendmail"
    assert "queue full" in exc_info.value.message


@pytest.mark.asyncio
async def test_missing_sendmail_binary_raises_delivery_error(
    registry: HookRegistry, app_settings
) -> None:
    with mock.patch(
        "asyncio.create_subprocess_exec",
        new=mock.AsyncMock(side_effect=FileNotFoundError("no sendmail")),
    ):
        with pytest.raises(MailDeliveryError) as exc_info:
            await Mailer(registry, app_settings).send("r@example.com", "S", "Body")

    assert exc_info.value.transport == "sendmail"
