"""Exception types raised by MultiSMTP."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from multismtp.domain.services.settings_validator import ValidationFailure


class MultiSMTPError(Exception):
    """Base class for all MultiSMTP errors."""


class SettingsValidationError(MultiSMTPError):
    """Raised when the SMTP settings table violates a validation rule.

    Args:
        failure: The first rule violation found by the validator.
    """

    def __init__(self, failure: "ValidationFailure") -> None:
        self.failure = failure
        super().__init__(failure.message)


class MailDeliveryError(MultiSMTPError):
    """Raised when a message could not be handed to the transport."""

    def __init__(self, message: str, transport: str) -> None:
        self.message = message
        self.transport = transport
        super().__init__(message)
