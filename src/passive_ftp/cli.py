from pathlib import Path
from typing import Optional

import click

from passive_ftp.constants import (
    CODE_CHANGE_DIRECTORY,
    CODE_COMMAND_OK,
    CODE_CURRENT_PATH,
    CODE_LOGGED_ON,
    CODE_SOCKET_CONNECTED,
    CODE_TRANSFER_COMPLETE,
)
from passive_ftp.models import FtpResponse
from passive_ftp.session import FtpSession
from passive_ftp.utils.config import settings
from passive_ftp.utils.logging import get_logger

logger = get_logger(__name__, "info")


def _check(response: FtpResponse, expected: str) -> FtpResponse:
    if response.code != expected:
        raise click.ClickException(f"[{response.code}] {response.message.strip()}")
    return response


def open_session(ctx: click.Context) -> FtpSession:
    """Connect and log in with the options given to the cli group."""
    options = ctx.obj
    if not options["host"]:
        raise click.ClickException("No host given: use --host or set FTP_HOST")

    session = FtpSession(options["host"], options["port"], options["user"], options["password"])
    ctx.call_on_close(session.close)
    _check(session.connect_to_server(), CODE_SOCKET_CONNECTED)
    _check(session.authenticate_on_server(), CODE_LOGGED_ON)
    return session


@click.group()
@click.option("--host", default=lambda: settings.FTP_HOST, help="FTP server host (FTP_HOST)")
@click.option("--port", default=lambda: settings.FTP_PORT, type=int, show_default="21", help="FTP server port (FTP_PORT)")
@click.option("--user", default=lambda: settings.FTP_USERNAME or "anonymous", help="User name (FTP_USERNAME)")
@click.option("--password", default=lambda: settings.FTP_PASSWORD or "anonymous@", help="Password (FTP_PASSWORD)")
@click.pass_context
def cli(ctx: click.Context, host: Optional[str], port: int, user: str, password: str):
    """Passive mode FTP client: list directories and download files."""
    ctx.obj = {"host": host, "port": port, "user": user, "password": password}


@cli.command()
@click.argument("path", required=False)
@click.pass_context
def ls(ctx: click.Context, path: Optional[str]) -> None:
    """List file names in PATH (default: the login directory)."""
    session = open_session(ctx)
    if path:
        _check(session.change_directory(path), CODE_CHANGE_DIRECTORY)

    listing = _check(session.get_list_directory(), CODE_TRANSFER_COMPLETE)
    for name in listing.message.splitlines():
        if name.strip():
            click.echo(name.strip())


@cli.command()
@click.argument("file", type=str)
@click.argument("target", type=Path)
@click.pass_context
def get(ctx: click.Context, file: str, target: Path) -> None:
    """Download FILE from the server to TARGET (a file or a directory)."""
    if target.is_dir():
        target = target / Path(file).name

    session = open_session(ctx)
    _check(session.set_type("I"), CODE_COMMAND_OK)
    response = session.get_file_bytes(file)
    if response.code != CODE_TRANSFER_COMPLETE:
        raise click.ClickException(f"[{response.code}] {response.message.strip()}")

    target.write_bytes(response.content)
    logger.info(f"Downloaded {file} to {target}")
    click.echo(f"Downloaded {file} to {target} ({len(response.content)} bytes)")


@cli.command()
@click.pass_context
def pwd(ctx: click.Context) -> None:
    """Print the working directory after login."""
    session = open_session(ctx)
    click.echo(_check(session.get_current_path(), CODE_CURRENT_PATH).message.strip())


if __name__ == "__main__":
    cli()
