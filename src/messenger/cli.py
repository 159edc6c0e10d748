"""Click CLI for one-shot Messenger administration tasks."""

from __future__ import annotations

import asyncio
import json

import click

from src.audit.logger import AuditLogger
from src.config import ConfigError, Settings
from src.messenger.composer import ResponseComposer
from src.messenger.profile import build_messenger_profile, setup_profile
from src.messenger.send_api import SendApiClient
from src.messenger.templates import load_templates
from src.models import AuditEventType
from src.tracking.client import OrderLookupClient


@click.group()
@click.option("--messages", default=None, help="Path to a message templates JSON file.")
@click.option("--audit-log", default=None, help="Audit log file path.")
@click.pass_context
def cli(ctx: click.Context, messages: str | None, audit_log: str | None) -> None:
    """Messenger order-tracking bot administration CLI."""
    ctx.ensure_object(dict)
    try:
        ctx.obj["settings"] = Settings.from_env()
    except ConfigError as e:
        raise click.ClickException(str(e)) from e
    settings: Settings = ctx.obj["settings"]
    ctx.obj["templates"] = load_templates(messages or settings.messages_path)
    audit_path = audit_log or settings.audit_log_path
    ctx.obj["audit_logger"] = AuditLogger.from_env(audit_path) if audit_path else None


@cli.command("setup-profile")
@click.pass_context
def setup_profile_command(ctx: click.Context) -> None:
    """Push greeting, get-started button and persistent menu to the page."""
    settings: Settings = ctx.obj["settings"]
    send_api = SendApiClient(
        page_access_token=settings.page_access_token,
        graph_api_base=settings.graph_api_base,
        send_api_version=settings.send_api_version,
        profile_api_version=settings.profile_api_version,
        timeout=settings.http_timeout,
        audit_logger=ctx.obj["audit_logger"],
    )
    if not asyncio.run(setup_profile(send_api, ctx.obj["templates"])):
        click.echo("Setup failed", err=True)
        ctx.exit(1)
    click.echo("Setup done!")


@cli.command()
@click.pass_context
def profile(ctx: click.Context) -> None:
    """Print the profile document without sending it."""
    click.echo(json.dumps(build_messenger_profile(ctx.obj["templates"]), indent=2, ensure_ascii=False))


@cli.command()
@click.argument("code")
@click.pass_context
def lookup(ctx: click.Context, code: str) -> None:
    """Look up one tracking code and print the reply a user would get."""
    settings: Settings = ctx.obj["settings"]
    composer = ResponseComposer(
        templates=ctx.obj["templates"],
        lookup_client=OrderLookupClient(
            api_url=settings.tracking_api_url,
            sort=settings.tracking_sort,
            timeout=settings.http_timeout,
        ),
        tracking_page_url=settings.tracking_page_url,
        audit_logger=ctx.obj["audit_logger"],
    )
    reply = asyncio.run(composer.compose_tracking_reply(code))
    click.echo(reply.body)


@cli.command()
@click.option(
    "--type", "event_type", default=None,
    type=click.Choice([t.value for t in AuditEventType]),
    help="Only show events of this type.",
)
@click.option("--sender", default=None, help="Only show events for this sender PSID.")
@click.option("--all", "include_rotated", is_flag=True, help="Include rotated backup files.")
@click.pass_context
def audit(
    ctx: click.Context, event_type: str | None, sender: str | None, include_rotated: bool,
) -> None:
    """Print audit events as JSON lines, oldest first."""
    audit_logger: AuditLogger | None = ctx.obj["audit_logger"]
    if audit_logger is None:
        raise click.ClickException("No audit log configured (use --audit-log or AUDIT_LOG_PATH)")
    events = audit_logger.read_events(
        event_type=AuditEventType(event_type) if event_type else None,
        sender_id=sender,
        include_rotated=include_rotated,
    )
    for event in events:
        click.echo(event.model_dump_json(exclude_none=True))
