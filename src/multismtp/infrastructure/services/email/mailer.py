"""Mailer.

Composes messages, runs the mail hooks and hands the result to the
configured transport: SMTP via aiosmtplib, or the local sendmail binary.
"""

import asyncio
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Optional

import aiosmtplib

from multismtp.core.config import Settings, get_settings
from multismtp.core.context import get_current_context
from multismtp.core.exceptions import MailDeliveryError
from multismtp.core.hooks import HookEvent, HookRegistry
from multismtp.core.logging import get_logger
from multismtp.domain.entities.mail_context import MailContext
from multismtp.infrastructure.services.email.transport import TransportConfig

logger = get_logger(__name__)


class Mailer:
    """Sends messages through whatever transport the hooks configure.

    Without any ``on_mailer_init`` hook the local sendmail binary is used.
    """

    def __init__(self, registry: HookRegistry, settings: Optional[Settings] = None) -> None:
        """Initialize the mailer.

        Args:
            registry: Registry holding the mail hooks.
            settings: Application settings. Defaults to the cached settings.
        """
        self.registry = registry
        self.settings = settings or get_settings()

    async def prepare_transport(self, context: MailContext) -> TransportConfig:
        """Build the transport configuration for one message and run the hooks."""
        transport = TransportConfig()
        transport.from_address = await self.registry.apply_filters(
            HookEvent.ON_MAIL_FROM, self.settings.default_from_email, context
        )
        transport.from_name = await self.registry.apply_filters(
            HookEvent.ON_MAIL_FROM_NAME, self.settings.default_from_name, context
        )

        await self.registry.trigger(HookEvent.ON_MAILER_INIT, data=transport, context=context)
        return transport

    def build_message(
        self,
        transport: TransportConfig,
        to: str,
        subject: str,
        text_body: str,
        html_body: Optional[str] = None,
    ) -> MIMEMultipart:
        """Compose the MIME message from the prepared transport configuration."""
        message = MIMEMultipart("alternative")
        message["Subject"] = subject
        message["From"] = formataddr((transport.from_name, transport.from_address))
        message["To"] = to

        if transport.reply_to:
            message["Reply-To"] = ", ".join(
                formataddr((entry.name, entry.address)) for entry in transport.reply_to
            )

        message.attach(MIMEText(text_body, "plain"))
        if html_body is not None:
            message.attach(MIMEText(html_body, "html"))

        return message

    async def send(
        self,
        to: str,
        subject: str,
        text_body: str,
        html_body: Optional[str] = None,
        context: Optional[MailContext] = None,
    ) -> bool:
        """Send an email.

        Args:
            to: Recipient email address.
            subject: Email subject line.
            text_body: Plain text email body.
            html_body: Optional HTML email body.
            context: Mail context. Defaults to the current context.

        Returns:
            True if the transport accepted the message.

        Raises:
            MailDeliveryError: If the transport rejected the message.
        """
        if context is None:
            context = get_current_context() or MailContext()

        transport = await self.prepare_transport(context)
        message = self.build_message(transport, to, subject, text_body, html_body)

        if transport.mailer == "smtp":
            await self._send_smtp(transport, message)
        else:
            await self._send_sendmail(transport, message)

        logger.info(
            "Email sent",
            to=to,
            transport=transport.mailer,
            request_id=context.request_id,
        )
        return True

    async def _send_smtp(self, transport: TransportConfig, message: MIMEMultipart) -> None:
        use_tls = transport.secure == "ssl"
        start_tls = transport.secure == "tls"

        try:
            async with aiosmtplib.SMTP(
                hostname=transport.host,
                port=transport.port,
                use_tls=use_tls,
                start_tls=start_tls,
                timeout=transport.timeout,
            ) as smtp:
                self._log_exchange(transport, "ehlo", smtp.last_ehlo_response)

                if transport.smtp_auth:
                    if transport.auth_type == "LOGIN":
                        response = await smtp.auth_login(transport.username, transport.password)
                    elif transport.auth_type == "PLAIN":
                        response = await smtp.auth_plain(transport.username, transport.password)
                    else:
                        # aiosmtplib has no NTLM mechanism; let it negotiate
                        response = await smtp.login(transport.username, transport.password)
                    self._log_exchange(transport, "auth", response)

                refused, reply = await smtp.send_message(
                    message, sender=transport.envelope_sender
                )
                if transport.debug:
                    logger.info(
                        "SMTP exchange",
                        step="data",
                        host=transport.host,
                        reply=reply,
                        refused=sorted(refused),
                    )
        except aiosmtplib.SMTPException as e:
            logger.error("Failed to send email via SMTP", host=transport.host, error=str(e))
            raise MailDeliveryError(f"SMTP delivery failed: {e}", transport="smtp") from e

    def _log_exchange(
        self,
        transport: TransportConfig,
        step: str,
        response: Optional[aiosmtplib.SMTPResponse],
    ) -> None:
        """Log a server response when the transport is in debug mode."""
        if not transport.debug or response is None:
            return
        logger.info(
            "SMTP exchange",
            step=step,
            host=transport.host,
            code=response.code,
            reply=response.message,
        )

    async def _send_sendmail(self, transport: TransportConfig, message: MIMEMultipart) -> None:
        args = [self.settings.sendmail_path, "-t", "-i"]
        if transport.envelope_sender:
            args.extend(["-f", transport.envelope_sender])

        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.error("Failed to start sendmail", path=self.settings.sendmail_path, error=str(e))
            raise MailDeliveryError(f"Could not run sendmail: {e}", transport="sendmail") from e

        _, stderr = await process.communicate(message.as_bytes())
        if process.returncode != 0:
            error = stderr.decode(errors="replace").strip()
            logger.error("sendmail rejected message", returncode=process.returncode, error=error)
            raise MailDeliveryError(
                f"sendmail exited with status {process.returncode}: {error}",
                transport="sendmail",
            )
