"""Hook registry - Central hook registration and execution engine.

The HookRegistry provides:
- Registration of hooks with priority
- Execution of hooks in priority order
- Filter-style value passing between hooks
- Error handling and logging
"""

import inspect
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Optional

from multismtp.core.hooks.hook_events import DEFAULT_PRIORITY
from multismtp.core.logging import get_logger
from multismtp.domain.entities.mail_context import HookResult, MailContext

logger = get_logger(__name__)


@dataclass
class RegisteredHook:
    """Internal representation of a registered hook.

    Attributes:
        id: Unique identifier for this hook registration.
        event: The event this hook is registered for.
        callback: The function to call, sync or async.
        priority: Execution priority (lower = earlier).
        stop_on_error: Whether errors should abort the chain.
        is_builtin: Whether this is a built-in system hook.
        registration_order: Order in which this hook was registered.
    """

    id: str
    event: str
    callback: Callable
    priority: int = DEFAULT_PRIORITY
    stop_on_error: bool = False
    is_builtin: bool = False
    registration_order: int = 0


class HookRegistry:
    """Central hook registration and execution engine.

    Example:
        registry = HookRegistry()

        hook_id = registry.register(
            event=HookEvent.ON_MAIL_FROM,
            callback=lambda event, value, ctx: "ops@example.com",
            priority=10,
        )

        from_address = await registry.apply_filters(
            HookEvent.ON_MAIL_FROM, "noreply@localhost"
        )

        registry.unregister(hook_id)
    """

    def __init__(self) -> None:
        self._hooks: dict[str, list[RegisteredHook]] = {}
        self._registration_counter: int = 0
        self._hook_map: dict[str, RegisteredHook] = {}  # hook_id -> hook

    def register(
        self,
        event: str,
        callback: Callable,
        priority: int = DEFAULT_PRIORITY,
        stop_on_error: bool = False,
        is_builtin: bool = False,
    ) -> str:
        """Register a hook for an event.

        Args:
            event: Hook event name (e.g., "on_mailer_init").
            callback: Function to execute, sync or async. Called with
                      (event, data, context); a non-None return value
                      replaces data for the rest of the chain.
            priority: Execution priority. Lower priority hooks run first,
                      so higher priority hooks get the final say.
            stop_on_error: If True, errors in this hook abort the chain.
            is_builtin: If True, this hook cannot be unregistered.

        Returns:
            Unique hook_id string for later removal.
        """
        hook_id = f"hook_{uuid.uuid4().hex[:12]}"

        # FIFO ordering within same priority
        self._registration_counter += 1

        hook = RegisteredHook(
            id=hook_id,
            event=event,
            callback=callback,
            priority=priority,
            stop_on_error=stop_on_error,
            is_builtin=is_builtin,
            registration_order=self._registration_counter,
        )

        self._hooks.setdefault(event, []).append(hook)
        self._hook_map[hook_id] = hook

        logger.debug(
            "Hook registered",
            hook_id=hook_id,
            hook_event=event,
            priority=priority,
            is_builtin=is_builtin,
        )

        return hook_id

    def unregister(self, hook_id: str) -> bool:
        """Remove a registered hook.

        Returns:
            True if hook was removed, False if not found or is built-in.
        """
        hook = self._hook_map.get(hook_id)
        if not hook:
            logger.warning("Hook not found for unregister", hook_id=hook_id)
            return False

        if hook.is_builtin:
            logger.warning(
                "Cannot unregister built-in hook",
                hook_id=hook_id,
                hook_event=hook.event,
            )
            return False

        self._hooks[hook.event] = [h for h in self._hooks[hook.event] if h.id != hook_id]
        if not self._hooks[hook.event]:
            del self._hooks[hook.event]

        del self._hook_map[hook_id]

        logger.debug("Hook unregistered", hook_id=hook_id, hook_event=hook.event)

        return True

    async def trigger(
        self,
        event: str,
        data: Optional[Any] = None,
        context: Optional[MailContext] = None,
    ) -> HookResult:
        """Execute all registered hooks for an event.

        Hooks are executed in priority order (lower priority first).
        Hooks with the same priority execute in registration order (FIFO).

        Args:
            event: Hook event name.
            data: Data passed to the first hook.
            context: MailContext for the current send.

        Returns:
            HookResult with success status, any errors, and final data.
        """
        result = HookResult(success=True, data=data)

        hooks = self._hooks.get(event, [])
        if not hooks:
            return result

        sorted_hooks = sorted(hooks, key=lambda h: (h.priority, h.registration_order))

        logger.debug("Triggering hooks", hook_event=event, hook_count=len(sorted_hooks))

        current_data = data
        for hook in sorted_hooks:
            try:
                hook_result = await self._execute_hook(hook, event, current_data, context)
                if hook_result is not None:
                    current_data = hook_result
                    result.data = current_data

            except Exception as e:
                # Log error but continue (unless stop_on_error)
                logger.error(
                    "Hook execution failed",
                    hook_id=hook.id,
                    hook_event=event,
                    error=str(e),
                    stop_on_error=hook.stop_on_error,
                )
                result.errors.append(f"Hook {hook.id} failed: {e}")

                if hook.stop_on_error:
                    result.success = False
                    return result

        return result

    async def apply_filters(
        self,
        event: str,
        value: Any,
        context: Optional[MailContext] = None,
    ) -> Any:
        """Run a filter event and return the final value."""
        result = await self.trigger(event, data=value, context=context)
        return result.data

    async def _execute_hook(
        self,
        hook: RegisteredHook,
        event: str,
        data: Optional[Any],
        context: Optional[MailContext],
    ) -> Any:
        """Execute a single hook callback, awaiting it if async."""
        outcome = hook.callback(event, data, context)
        if inspect.isawaitable(outcome):
            outcome = await outcome
        return outcome

    def get_hooks_for_event(self, event: str) -> list[RegisteredHook]:
        """Get all hooks registered for an event."""
        return self._hooks.get(event, []).copy()

    def get_hook_by_id(self, hook_id: str) -> Optional[RegisteredHook]:
        """Get a registered hook by its ID."""
        return self._hook_map.get(hook_id)

    def has_hooks(self, event: str) -> bool:
        """Check whether any hook is registered for an event."""
        return bool(self._hooks.get(event))

    def clear(self) -> None:
        """Remove all non-builtin hooks."""
        for hook_id in [h.id for h in self._hook_map.values() if not h.is_builtin]:
            self.unregister(hook_id)
