"""Per-message transport configuration record.

The mailer builds one TransportConfig for every outgoing message, lets
``on_mailer_init`` hooks mutate it, then dispatches according to it.
"""

from typing import Literal

from pydantic import BaseModel, Field

DEFAULT_SMTP_PORT = 25
DEFAULT_SMTP_TIMEOUT = 300


class ReplyTo(BaseModel):
    """A Reply-To address with its display name."""

    address: str
    name: str = ""


class TransportConfig(BaseModel):
    """Mutable transport configuration for a single message.

    Fields left untouched by hooks keep the local-delivery defaults below.
    """

    mailer: Literal["sendmail", "smtp"] = "sendmail"
    host: str = "localhost"
    port: int = DEFAULT_SMTP_PORT
    username: str = ""
    password: str = ""
    secure: str = ""
    auth_type: str = ""
    smtp_auth: bool = False
    timeout: int = DEFAULT_SMTP_TIMEOUT
    debug: bool = False

    from_address: str = ""
    from_name: str = ""
    # Envelope sender (return path). Empty means use the From address.
    sender: str = ""
    reply_to: list[ReplyTo] = Field(default_factory=list)

    def add_reply_to(self, address: str, name: str = "") -> None:
        """Append a Reply-To entry."""
        self.reply_to.append(ReplyTo(address=address, name=name))

    @property
    def envelope_sender(self) -> str:
        """Address used for delivery-failure notifications."""
        return self.sender or self.from_address
