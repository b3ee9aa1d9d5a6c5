"""Hook system core module.

Extension points fired by the mailer. Callbacks are registered
programmatically with an explicit priority.

Example usage:
    from multismtp.core.hooks import HookEvent, HookRegistry

    registry = HookRegistry()

    def force_sender(event, transport, context):
        transport.sender = "bounces@example.com"

    registry.register(HookEvent.ON_MAILER_INIT, force_sender, priority=10)
"""

from multismtp.core.hooks.hook_events import (
    DEFAULT_PRIORITY,
    LOWEST_PRIORITY,
    HookEvent,
    get_all_events,
)
from multismtp.core.hooks.hook_registry import HookRegistry, RegisteredHook

__all__ = [
    # Registry
    "HookRegistry",
    "RegisteredHook",
    # Events
    "HookEvent",
    "DEFAULT_PRIORITY",
    "LOWEST_PRIORITY",
    "get_all_events",
]
