"""MultiSMTP - SMTP settings validation and mail transport wiring.

Reads SMTP settings from the environment, validates them, and points the
mailer's per-message transport at the configured SMTP server.
"""

__version__ = "2.0.0"

from multismtp.application.bootstrap import SMTPWiring, create_smtp_wiring, launch

__all__ = ["SMTPWiring", "create_smtp_wiring", "launch", "__version__"]
