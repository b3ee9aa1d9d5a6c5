"""SMTP settings table.

Defines the recognized SMTP setting names, their types and defaults, and
turns a raw key-value source into an immutable, resolved table.

Resolution applies the default policy to absent names only. A resolved table
remembers which names the operator defined explicitly, since some behavior
(the from overrides) is opt-in and must not trigger on a default.
"""

import os
import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any, Optional

from multismtp.core.logging import get_logger

logger = get_logger(__name__)

ENV_PREFIX = "GLOBAL_SMTP_"

_TRUE_LITERALS = frozenset({"1", "true", "yes", "on"})
_FALSE_LITERALS = frozenset({"0", "false", "no", "off", ""})
# Plain ASCII digits only: no underscores, no other Unicode digits
_INTEGER_LITERAL = re.compile(r"[+-]?[0-9]+")


class SettingName:
    """Recognized SMTP setting names."""

    HOST = "HOST"
    USER = "USER"
    PASSWORD = "PASSWORD"
    PORT = "PORT"
    SECURE = "SECURE"
    AUTH_TYPE = "AUTH_TYPE"
    TIMEOUT = "TIMEOUT"
    FROM = "FROM"
    FROM_NAME = "FROM_NAME"
    RETURN_PATH = "RETURN_PATH"
    REPLYTO_FROM = "REPLYTO_FROM"
    REPLYTO_FROM_NAME = "REPLYTO_FROM_NAME"
    DEBUG = "DEBUG"
    DISABLE = "DISABLE"


@dataclass(frozen=True)
class SettingSpec:
    """Declared type of a single setting.

    Attributes:
        name: Setting name without the environment prefix.
        kind: One of "string", "integer", "boolean", "email", "enum".
        required: Whether the operator must define it.
    """

    name: str
    kind: str
    required: bool = False


SETTING_SPECS: tuple[SettingSpec, ...] = (
    SettingSpec(SettingName.HOST, "string", required=True),
    SettingSpec(SettingName.USER, "string", required=True),
    SettingSpec(SettingName.PASSWORD, "string", required=True),
    SettingSpec(SettingName.PORT, "integer"),
    SettingSpec(SettingName.SECURE, "enum"),
    SettingSpec(SettingName.AUTH_TYPE, "enum"),
    SettingSpec(SettingName.TIMEOUT, "integer"),
    SettingSpec(SettingName.FROM, "string"),
    SettingSpec(SettingName.FROM_NAME, "string"),
    SettingSpec(SettingName.RETURN_PATH, "email"),
    SettingSpec(SettingName.REPLYTO_FROM, "email"),
    SettingSpec(SettingName.REPLYTO_FROM_NAME, "string"),
    SettingSpec(SettingName.DEBUG, "boolean"),
    SettingSpec(SettingName.DISABLE, "boolean"),
)

# Assumed for anything the operator leaves undefined
DEFAULTS: dict[str, Any] = {
    SettingName.PORT: 465,
    SettingName.SECURE: "ssl",
    SettingName.TIMEOUT: 10,
    SettingName.FROM: "",
    SettingName.FROM_NAME: "",
    SettingName.AUTH_TYPE: "LOGIN",
}


class SettingsTable(Mapping[str, Any]):
    """Immutable, resolved settings table.

    Behaves as a read-only mapping. Absent settings are not keys.

    Attributes:
        explicit: Names that were defined by the operator rather than
            supplied by the default policy.
    """

    def __init__(self, values: Mapping[str, Any], explicit: frozenset[str]) -> None:
        self._values = dict(values)
        self.explicit = explicit

    def __getitem__(self, name: str) -> Any:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"SettingsTable({self.masked()!r})"

    def is_defined(self, name: str) -> bool:
        """Check whether the operator defined a setting explicitly."""
        return name in self.explicit

    def is_enabled(self, name: str) -> bool:
        """Check a boolean flag setting; absent means disabled."""
        return bool(self._values.get(name, False))

    def masked(self) -> dict[str, Any]:
        """Return the values with the password hidden, for display."""
        values = dict(self._values)
        if SettingName.PASSWORD in values:
            values[SettingName.PASSWORD] = "********"
        return values


def resolve_settings(source: Mapping[str, Any]) -> SettingsTable:
    """Resolve a raw source into a settings table, applying defaults.

    A value of None counts as absent. Resolving an already-resolved table
    returns it unchanged, so repeated resolution is a no-op.

    Args:
        source: Mapping of setting name to value.

    Returns:
        The resolved, immutable settings table.
    """
    if isinstance(source, SettingsTable):
        return source

    values = {name: value for name, value in source.items() if value is not None}
    explicit = frozenset(values)

    for name, default in DEFAULTS.items():
        values.setdefault(name, default)

    logger.debug(
        "SMTP settings resolved",
        explicit=sorted(explicit),
        defaulted=sorted(set(DEFAULTS) - explicit),
    )

    return SettingsTable(values, explicit)


def _parse_literal(spec: SettingSpec, raw: str) -> Any:
    """Interpret an environment string the way a typed constant is written."""
    value = raw.strip()
    if spec.kind == "integer":
        if _INTEGER_LITERAL.fullmatch(value):
            return int(value)
        return raw
    if spec.kind == "boolean":
        lowered = value.lower()
        if lowered in _TRUE_LITERALS:
            return True
        if lowered in _FALSE_LITERALS:
            return False
        return raw
    return raw


def load_environment(
    environ: Optional[Mapping[str, str]] = None,
    prefix: str = ENV_PREFIX,
) -> dict[str, Any]:
    """Read the recognized SMTP settings from environment variables.

    Integer and boolean literals are converted to their types. Values that
    are not valid literals are kept as strings so validation reports them.

    Args:
        environ: Variables to read. Defaults to ``os.environ``.
        prefix: Variable name prefix, e.g. ``GLOBAL_SMTP_``.

    Returns:
        A raw source mapping suitable for ``resolve_settings``.
    """
    if environ is None:
        environ = os.environ

    source: dict[str, Any] = {}
    for spec in SETTING_SPECS:
        raw = environ.get(f"{prefix}{spec.name}")
        if raw is None:
            continue
        source[spec.name] = _parse_literal(spec, raw)

    return source
