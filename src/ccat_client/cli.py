"""
ccat command line: chat with a Cat and inspect its REST API.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Coroutine
from typing import Any, TypeVar

import click
import httpx

from ccat_client.client import CatClient, build_api
from ccat_client.config import CatSettings, load_logging_settings, load_settings
from ccat_client.errors import ApiError
from ccat_client.models import RESERVED_KEYS, SocketError, SocketResponse
from ccat_client.utils.logging import setup_logging

logger = logging.getLogger(__name__)

T = TypeVar("T")


def parse_data(pairs: tuple[str, ...]) -> dict[str, Any]:
    """Turn ``KEY=VALUE`` pairs into extra message fields.

    Values are decoded as JSON when possible, so ``count=3`` sends a number.
    """
    data: dict[str, Any] = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got {pair!r}", param_hint="--data")
        if key in RESERVED_KEYS:
            raise click.BadParameter(f"{key!r} is a reserved field", param_hint="--data")
        try:
            data[key] = json.loads(raw)
        except json.JSONDecodeError:
            data[key] = raw
    return data


def run_api_call(settings: CatSettings, call: Coroutine[Any, Any, T]) -> T:
    """Run a REST coroutine, mapping failures to CLI errors."""
    try:
        return asyncio.run(call)
    except ApiError as e:
        raise click.ClickException(f"{e.status} {e}") from e
    except httpx.HTTPError as e:
        raise click.ClickException(f"Cannot reach the Cat at {settings.http_url}: {e}") from e


async def send_and_wait(
    settings: CatSettings,
    message: str,
    data: dict[str, Any],
    wait: float,
) -> SocketResponse:
    """Connect, send one message and return the first chat reply."""
    loop = asyncio.get_running_loop()
    reply: asyncio.Future[SocketResponse] = loop.create_future()

    def on_message(response: SocketResponse) -> None:
        if response.type == "chat" and not reply.done():
            reply.set_result(response)

    def on_error(error: SocketError, exc: BaseException | None) -> None:
        if not reply.done():
            reply.set_exception(click.ClickException(f"{error.name}: {error.description}"))

    client = CatClient(settings.model_copy(update={"instant": False}))
    client.on_message(on_message).on_error(on_error)
    client.on_connected(lambda: client.send(message, data or None))

    async with client:
        try:
            return await asyncio.wait_for(reply, wait)
        except TimeoutError as e:
            raise click.ClickException(f"No reply within {wait} seconds") from e


@click.group()
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False),
    help="YAML or JSON file with client settings",
)
@click.option("--host", default=None, help="Cat host name  [default: localhost]")
@click.option("--port", type=int, default=None, help="Cat port  [default: 1865]")
@click.option("--secure/--insecure", default=None, help="Use wss:// and https://")
@click.option("--user", default=None, help="User id  [default: user]")
@click.option("--auth-key", default=None, help="Key sent as access_token")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"]),
    default=None,
    help="Log level  [default: info]",
)
@click.option(
    "--log-format",
    type=click.Choice(["text", "json"]),
    default=None,
    help="Log format  [default: text]",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_file: str | None,
    host: str | None,
    port: int | None,
    secure: bool | None,
    user: str | None,
    auth_key: str | None,
    log_level: str | None,
    log_format: str | None,
) -> None:
    """Talk to a Cheshire Cat."""
    try:
        settings = load_settings(
            config_file,
            {
                "base_url": host,
                "port": port,
                "secure": secure,
                "user": user,
                "auth_key": auth_key,
            },
        )
        logging_settings = load_logging_settings(config_file)
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    overrides = {k: v for k, v in (("level", log_level), ("format", log_format)) if v}
    setup_logging(logging_settings.model_copy(update=overrides))

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


@cli.command()
@click.argument("message")
@click.option("--data", "-d", multiple=True, help="Extra field as KEY=VALUE (repeatable)")
@click.option("--wait", default=30.0, show_default=True, help="Seconds to wait for the reply")
@click.pass_context
def send(ctx: click.Context, message: str, data: tuple[str, ...], wait: float) -> None:
    """Send MESSAGE over the chat socket and print the reply."""
    settings: CatSettings = ctx.obj["settings"]
    extra = parse_data(data)
    logger.debug(f"Sending to {settings.ws_url}")
    reply = asyncio.run(send_and_wait(settings, message, extra, wait))
    click.echo(reply.content)


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Print the raw JSON answer")
@click.pass_context
def plugins(ctx: click.Context, as_json: bool) -> None:
    """List installed plugins."""
    settings: CatSettings = ctx.obj["settings"]
    result = run_api_call(settings, build_api(settings).plugins.list_available_plugins())

    if as_json:
        click.echo(result.model_dump_json(indent=2))
        return

    if not result.installed:
        click.echo("No plugins installed")
        return
    for plugin in result.installed:
        state = "active" if plugin.active else "inactive"
        version = f" {plugin.version}" if plugin.version else ""
        click.echo(f"{plugin.id or plugin.name}{version} ({state})")


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Print the raw JSON answer")
@click.pass_context
def embedders(ctx: click.Context, as_json: bool) -> None:
    """List embedder settings; the selected one is marked with *."""
    settings: CatSettings = ctx.obj["settings"]
    result = run_api_call(settings, build_api(settings).settings_embedder.get_embedder_settings())

    if as_json:
        click.echo(result.model_dump_json(indent=2, by_alias=True))
        return

    for setting in result.settings:
        marker = "*" if setting.name == result.selected_configuration else " "
        click.echo(f"{marker} {setting.name}")
