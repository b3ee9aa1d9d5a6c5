"""SMTP wiring bootstrap.

Resolves and validates the SMTP settings table, then registers the
transport configurator and the from overrides on a hook registry.
Validation failure is not fatal: it is reported once and the mailer keeps
using its local transport.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Optional

from multismtp.core.hooks import LOWEST_PRIORITY, HookEvent, HookRegistry
from multismtp.core.logging import get_logger
from multismtp.domain.services.settings_validator import (
    ValidationResult,
    ValidationRuleset,
    build_default_ruleset,
    validate,
)
from multismtp.domain.settings_table import (
    ENV_PREFIX,
    SettingName,
    SettingsTable,
    load_environment,
    resolve_settings,
)
from multismtp.infrastructure.services.email.transport_configurator import (
    TransportConfigurator,
)

logger = get_logger(__name__)

WarningSink = Callable[[str], None]


def _log_warning(message: str) -> None:
    logger.warning(message)


@dataclass
class SMTPWiring:
    """Resolved settings, their validation outcome and the configurator.

    Attributes:
        settings: The resolved settings table.
        result: Outcome of validating ``settings``.
        configurator: Configurator bound to ``settings``.
    """

    settings: SettingsTable
    result: ValidationResult
    configurator: TransportConfigurator

    @property
    def is_valid(self) -> bool:
        return self.result.success

    def register(
        self,
        registry: HookRegistry,
        warn: Optional[WarningSink] = None,
    ) -> list[str]:
        """Register the hooks this wiring provides.

        The transport configurator is registered only when validation
        succeeded. Each from override is registered when its setting was
        defined explicitly, whatever the validation outcome.

        Args:
            registry: Registry to register on.
            warn: Sink for the validation failure message. Defaults to
                  a structlog warning.

        Returns:
            IDs of the registered hooks.
        """
        hook_ids: list[str] = []

        if self.result.success:
            hook_ids.append(
                registry.register(HookEvent.ON_MAILER_INIT, self.configurator.on_mailer_init)
            )
            logger.info(
                "SMTP transport enabled",
                host=self.settings[SettingName.HOST],
                port=self.settings[SettingName.PORT],
                secure=self.settings[SettingName.SECURE],
            )
        else:
            (warn or _log_warning)(self.result.error.message)

        if self.settings.is_defined(SettingName.FROM):
            hook_ids.append(
                registry.register(
                    HookEvent.ON_MAIL_FROM,
                    self.configurator.on_mail_from,
                    priority=LOWEST_PRIORITY,
                )
            )

        if self.settings.is_defined(SettingName.FROM_NAME):
            hook_ids.append(
                registry.register(
                    HookEvent.ON_MAIL_FROM_NAME,
                    self.configurator.on_mail_from_name,
                    priority=LOWEST_PRIORITY,
                )
            )

        return hook_ids


def create_smtp_wiring(
    source: Mapping[str, Any],
    ruleset: Optional[ValidationRuleset] = None,
) -> SMTPWiring:
    """Resolve and validate a settings source.

    Args:
        source: Raw settings mapping, or an already-resolved table.
        ruleset: Constraints to apply. Defaults to the SMTP ruleset.

    Returns:
        SMTPWiring holding the table and the validation result.
    """
    settings = resolve_settings(source)
    result = validate(settings, ruleset or build_default_ruleset())

    if not result.success:
        logger.debug(
            "SMTP settings validation failed",
            kind=result.error.kind.value,
            setting=result.error.setting,
        )

    return SMTPWiring(
        settings=settings,
        result=result,
        configurator=TransportConfigurator(settings),
    )


def is_disabled(source: Mapping[str, Any]) -> bool:
    """Check the DISABLE switch of a raw settings source."""
    return bool(source.get(SettingName.DISABLE, False))


def launch(
    registry: HookRegistry,
    source: Optional[Mapping[str, Any]] = None,
    warn: Optional[WarningSink] = None,
    env_prefix: str = ENV_PREFIX,
) -> Optional[SMTPWiring]:
    """Set up SMTP for a registry unless it has been switched off.

    Args:
        registry: Registry the mailer triggers its hooks on.
        source: Raw settings. Read from the environment when omitted.
        warn: Sink for the validation failure message.
        env_prefix: Environment variable prefix used when reading the
                    environment.

    Returns:
        The wiring, or None when DISABLE is set.
    """
    if source is None:
        source = load_environment(prefix=env_prefix)

    if is_disabled(source):
        logger.info("SMTP wiring disabled")
        return None

    wiring = create_smtp_wiring(source)
    wiring.register(registry, warn=warn)
    return wiring
