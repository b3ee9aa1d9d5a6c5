"""Hook event definitions.

Events the mailer fires while composing and dispatching a message.
"""


class HookEvent:
    """Hook event names."""

    # Fired once per message with the mutable TransportConfig,
    # immediately before dispatch
    ON_MAILER_INIT = "on_mailer_init"

    # Filters: data is the current value, hooks return the replacement
    ON_MAIL_FROM = "on_mail_from"
    ON_MAIL_FROM_NAME = "on_mail_from_name"


# Lower priorities run first, so the last hook to run decides a filtered
# value. Registering here leaves room for every other listener to override.
LOWEST_PRIORITY = -999
DEFAULT_PRIORITY = 0


def get_all_events() -> list[str]:
    """Get all defined hook events."""
    return [
        HookEvent.ON_MAILER_INIT,
        HookEvent.ON_MAIL_FROM,
        HookEvent.ON_MAIL_FROM_NAME,
    ]
