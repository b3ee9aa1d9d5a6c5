"""Current mail context using ContextVars.

Lets the mailer pick up the caller's MailContext without passing it
through every call, while keeping concurrent sends isolated.
"""

from contextvars import ContextVar
from typing import Optional

from multismtp.domain.entities.mail_context import MailContext

_current_mail_context: ContextVar[Optional[MailContext]] = ContextVar(
    "current_mail_context", default=None
)


def get_current_context() -> Optional[MailContext]:
    """Get the current mail context, or None if not set."""
    return _current_mail_context.get()


def set_current_context(context: MailContext) -> None:
    """Set the current mail context."""
    _current_mail_context.set(context)


def clear_current_context() -> None:
    """Clear the current mail context."""
    _current_mail_context.set(None)
