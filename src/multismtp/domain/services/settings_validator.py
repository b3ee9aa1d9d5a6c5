"""SMTP settings validator.

Checks a resolved settings table against a four-category ruleset:

- required: names that must be present
- is_email: names that, if present, must be valid email addresses
- is_integer: names that, if present, must hold an ``int``
- enumerated: names that, if present, must equal one of the allowed strings

Categories are evaluated in that order, names in list order within each,
and only the first violation is reported.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from email_validator import SPECIAL_USE_DOMAIN_NAMES, EmailNotValidError, validate_email

from multismtp.core.exceptions import SettingsValidationError
from multismtp.domain.settings_table import SettingName


class ValidationErrorKind(str, Enum):
    """Kinds of settings rule violations."""

    MISSING_REQUIRED = "missing_required"
    INVALID_EMAIL = "invalid_email"
    INVALID_INTEGER = "invalid_integer"
    INVALID_ENUM = "invalid_enum"


@dataclass(frozen=True)
class ValidationRuleset:
    """Constraints applied to a settings table.

    Attributes:
        required: Names that must be present.
        is_email: Names that must parse as an email address when present.
        is_integer: Names that must be integers when present.
        enumerated: Name to allowed values, checked when present.
    """

    required: tuple[str, ...] = ()
    is_email: tuple[str, ...] = ()
    is_integer: tuple[str, ...] = ()
    enumerated: Mapping[str, tuple[str, ...]] = field(default_factory=dict)


@dataclass(frozen=True)
class ValidationFailure:
    """The first rule a settings table violated.

    Attributes:
        kind: Which rule category failed.
        setting: Name of the offending setting.
        allowed: Allowed values, only for INVALID_ENUM.
    """

    kind: ValidationErrorKind
    setting: str
    allowed: tuple[str, ...] = ()

    @property
    def message(self) -> str:
        """Operator-facing description of the failure."""
        if self.kind is ValidationErrorKind.MISSING_REQUIRED:
            return (
                f"{self.setting} is required for SMTP. "
                "Please define it in the environment."
            )
        if self.kind is ValidationErrorKind.INVALID_EMAIL:
            return f"Value of {self.setting} is not a valid email address."
        if self.kind is ValidationErrorKind.INVALID_INTEGER:
            return f"{self.setting} should be an integer."
        allowed = '", "'.join(self.allowed)
        return f'{self.setting} is invalid. It should be one of these values: "{allowed}"'

    def as_exception(self) -> SettingsValidationError:
        """Wrap the failure in an exception for callers that raise."""
        return SettingsValidationError(self)


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a validation pass.

    Attributes:
        success: True when no rule was violated.
        error: The first violation, or None on success.
    """

    success: bool = True
    error: Optional[ValidationFailure] = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(success=True)

    @classmethod
    def failed(cls, error: ValidationFailure) -> "ValidationResult":
        return cls(success=False, error=error)


def build_default_ruleset() -> ValidationRuleset:
    """Build the ruleset for the recognized SMTP settings."""
    return ValidationRuleset(
        required=(SettingName.HOST, SettingName.USER, SettingName.PASSWORD),
        is_email=(SettingName.RETURN_PATH, SettingName.REPLYTO_FROM),
        is_integer=(SettingName.PORT, SettingName.TIMEOUT),
        enumerated={
            SettingName.SECURE: ("ssl", "tls", "none"),
            SettingName.AUTH_TYPE: ("LOGIN", "PLAIN", "NTLM"),
        },
    )


def _neutral_domain(address: str) -> str:
    """Swap a special-use domain suffix for "example".

    Names such as ``mail.local`` or ``corp.test`` follow the same syntax
    rules as any other domain but email-validator rejects them outright.
    Internal relays use them for bounce addresses.
    """
    local, sep, domain = address.rpartition("@")
    lowered = domain.lower()
    for reserved in SPECIAL_USE_DOMAIN_NAMES:
        if lowered == reserved or lowered.endswith("." + reserved):
            return f"{local}{sep}{domain[: len(domain) - len(reserved)]}example"
    return address


def is_email(value: Any) -> bool:
    """Check the value is a bare email address.

    Syntax only: no DNS lookups, no display-name form ("Name <addr>").
    Non-strings are never valid.
    """
    if not isinstance(value, str):
        return False
    try:
        validate_email(
            _neutral_domain(value),
            allow_display_name=False,
            check_deliverability=False,
            globally_deliverable=False,
        )
    except EmailNotValidError:
        return False
    return True


def is_integer(value: Any) -> bool:
    """Check the runtime type is int. Numeric strings and bools fail."""
    return isinstance(value, int) and not isinstance(value, bool)


def validate(settings: Mapping[str, Any], ruleset: ValidationRuleset) -> ValidationResult:
    """Validate a settings table, stopping at the first violation.

    Args:
        settings: Resolved settings table (defaults already applied).
        ruleset: Constraints to check.

    Returns:
        ValidationResult with the first failure, if any.
    """
    for name in ruleset.required:
        if name not in settings:
            return ValidationResult.failed(
                ValidationFailure(ValidationErrorKind.MISSING_REQUIRED, name)
            )

    for name in ruleset.is_email:
        if name in settings and not is_email(settings[name]):
            return ValidationResult.failed(
                ValidationFailure(ValidationErrorKind.INVALID_EMAIL, name)
            )

    for name in ruleset.is_integer:
        if name in settings and not is_integer(settings[name]):
            return ValidationResult.failed(
                ValidationFailure(ValidationErrorKind.INVALID_INTEGER, name)
            )

    for name, allowed in ruleset.enumerated.items():
        if name in settings and settings[name] not in allowed:
            return ValidationResult.failed(
                ValidationFailure(ValidationErrorKind.INVALID_ENUM, name, tuple(allowed))
            )

    return ValidationResult.ok()
