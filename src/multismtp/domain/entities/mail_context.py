"""Mail context and hook result.

Contains the data structures passed through the hook system:
- MailContext: Execution context handed to every hook callback
- HookResult: Result of a hook trigger operation
"""

import uuid
from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class MailContext:
    """Context passed to all hook callbacks.

    Attributes:
        is_admin: True when running in an administrative or interactive
            context (an operator at a console, an admin request).
        is_background: True when the send is part of an asynchronous
            background request.
        request_id: Correlation ID for logging.
    """

    is_admin: bool = False
    is_background: bool = False
    request_id: str = ""

    def __post_init__(self) -> None:
        if not self.request_id:
            self.request_id = f"mc_{uuid.uuid4().hex[:12]}"


@dataclass
class HookResult:
    """Result of a hook trigger operation.

    Attributes:
        success: Whether all hooks executed successfully.
        errors: List of error messages from hooks that failed.
        data: Data after the whole hook chain ran.
    """

    success: bool = True
    errors: list[str] = field(default_factory=list)
    data: Optional[Any] = None
