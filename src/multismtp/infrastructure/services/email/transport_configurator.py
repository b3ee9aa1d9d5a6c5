"""Transport configurator.

Points a per-message TransportConfig at the SMTP server described by a
validated settings table, and supplies the from-address/from-name
overrides.
"""

from typing import Optional

from multismtp.core.logging import get_logger
from multismtp.domain.entities.mail_context import MailContext
from multismtp.domain.settings_table import SettingName, SettingsTable
from multismtp.infrastructure.services.email.transport import TransportConfig

logger = get_logger(__name__)


class TransportConfigurator:
    """Applies validated SMTP settings to transport configurations.

    Only register this against ``on_mailer_init`` after the settings
    table passed validation; ``configure`` relies on required names being
    present and defaults having been applied.
    """

    def __init__(self, settings: SettingsTable) -> None:
        self.settings = settings

    def configure(
        self,
        transport: TransportConfig,
        context: Optional[MailContext] = None,
    ) -> None:
        """Switch the transport to SMTP using the configured server.

        Args:
            transport: The transport configuration of the message being sent.
            context: The current mail context, used for the debug decision.
        """
        settings = self.settings

        if (
            settings.is_enabled(SettingName.DEBUG)
            and context is not None
            and context.is_admin
            and not context.is_background
        ):
            transport.debug = True

        transport.mailer = "smtp"
        transport.smtp_auth = settings[SettingName.SECURE] != "none"

        # required
        transport.host = settings[SettingName.HOST]
        transport.username = settings[SettingName.USER]
        transport.password = settings[SettingName.PASSWORD]

        # assumed
        transport.port = settings[SettingName.PORT]
        transport.secure = settings[SettingName.SECURE]
        transport.auth_type = settings[SettingName.AUTH_TYPE]
        transport.timeout = settings[SettingName.TIMEOUT]

        # optional
        if SettingName.RETURN_PATH in settings:
            transport.sender = settings[SettingName.RETURN_PATH]

        if SettingName.REPLYTO_FROM in settings:
            transport.add_reply_to(
                settings[SettingName.REPLYTO_FROM],
                settings.get(SettingName.REPLYTO_FROM_NAME, transport.from_name),
            )

        logger.debug(
            "Transport configured for SMTP",
            host=transport.host,
            port=transport.port,
            secure=transport.secure,
            smtp_auth=transport.smtp_auth,
            debug=transport.debug,
        )

    def on_mailer_init(
        self,
        event: str,
        data: TransportConfig,
        context: Optional[MailContext],
    ) -> None:
        """Hook callback for ``on_mailer_init``."""
        self.configure(data, context)

    def get_from(self) -> str:
        """Configured from address, verbatim."""
        return self.settings[SettingName.FROM]

    def get_from_name(self) -> str:
        """Configured from name, verbatim."""
        return self.settings[SettingName.FROM_NAME]

    def on_mail_from(self, event: str, data: str, context: Optional[MailContext]) -> str:
        """Hook callback for ``on_mail_from``."""
        return self.get_from()

    def on_mail_from_name(
        self,
        event: str,
        data: str,
        context: Optional[MailContext],
    ) -> str:
        """Hook callback for ``on_mail_from_name``."""
        return self.get_from_name()
