"""Email transport services."""

from multismtp.infrastructure.services.email.mailer import Mailer
from multismtp.infrastructure.services.email.transport import ReplyTo, TransportConfig
from multismtp.infrastructure.services.email.transport_configurator import (
    TransportConfigurator,
)

__all__ = ["Mailer", "ReplyTo", "TransportConfig", "TransportConfigurator"]
