"""Command-line interface for MultiSMTP.

Lets an operator check the SMTP settings held in the environment and send
a test message through the resulting transport.
"""

import asyncio
import sys

import click

from multismtp import __version__
from multismtp.application.bootstrap import create_smtp_wiring, is_disabled, launch
from multismtp.core.config import Settings, get_settings
from multismtp.core.exceptions import MailDeliveryError
from multismtp.core.hooks import HookRegistry
from multismtp.core.logging import configure_logging, get_logger
from multismtp.domain.entities.mail_context import MailContext
from multismtp.domain.settings_table import load_environment
from multismtp.infrastructure.services.email.mailer import Mailer

EXIT_INVALID = 1
EXIT_DISABLED = 2


@click.group()
@click.version_option(version=__version__, prog_name="MultiSMTP")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    default=None,
    help="Set log level (overrides MULTISMTP_LOG_LEVEL)",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str | None) -> None:
    """MultiSMTP - SMTP settings validation and mail transport wiring."""
    settings = get_settings()
    if log_level:
        settings = settings.model_copy(update={"log_level": log_level})
    configure_logging(settings)
    ctx.obj = settings


@cli.command()
@click.pass_obj
def check(settings: Settings) -> None:
    """Validate the SMTP settings found in the environment."""
    source = load_environment(prefix=settings.env_prefix)

    if is_disabled(source):
        click.echo("SMTP is disabled.")
        sys.exit(EXIT_DISABLED)

    wiring = create_smtp_wiring(source)
    if not wiring.is_valid:
        click.echo(wiring.result.error.message, err=True)
        sys.exit(EXIT_INVALID)

    click.echo("SMTP settings are valid.")


@cli.command()
@click.pass_obj
def show(settings: Settings) -> None:
    """Print the resolved SMTP settings table."""
    source = load_environment(prefix=settings.env_prefix)
    wiring = create_smtp_wiring(source)
    table = wiring.settings

    for name, value in sorted(table.masked().items()):
        marker = "" if table.is_defined(name) else "  (default)"
        click.echo(f"{settings.env_prefix}{name}={value!r}{marker}")


@cli.command(name="send-test")
@click.option("--to", "recipient", required=True, help="Recipient address")
@click.option("--subject", default="MultiSMTP test message", show_default=True)
@click.pass_obj
def send_test(settings: Settings, recipient: str, subject: str) -> None:
    """Send a test message through the configured transport."""
    logger = get_logger(__name__)

    registry = HookRegistry()
    wiring = launch(
        registry,
        source=load_environment(prefix=settings.env_prefix),
        warn=lambda message: click.echo(f"Warning: {message}", err=True),
    )
    if wiring is None:
        click.echo("SMTP is disabled; using the local mail transport.", err=True)

    mailer = Mailer(registry, settings)
    context = MailContext(is_admin=True, is_background=False)

    try:
        asyncio.run(
            mailer.send(
                to=recipient,
                subject=subject,
                text_body="This is a test message sent by MultiSMTP.",
                context=context,
            )
        )
    except MailDeliveryError as e:
        logger.error("Test message failed", transport=e.transport, error=e.message)
        click.echo(f"Delivery failed: {e.message}", err=True)
        sys.exit(EXIT_INVALID)

    click.echo(f"Test message sent to {recipient}.")


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
