"""registry-auth operator CLI."""

import asyncio
import json
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

import typer
import uvicorn
from rich.console import Console
from rich.table import Table

from registry_auth import __version__
from registry_auth.core.config import get_settings
from registry_auth.core.errors import RegistryAuthError
from registry_auth.core.permissions.models import RemoteUser
from registry_auth.infrastructure.logging import setup_logging
from registry_auth.plugin import PackageAuthPlugin

T = TypeVar("T")

app = typer.Typer(
    name="registry-auth",
    help="registry-auth - inspect package permissions resolved from an organization",
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
    pretty_exceptions_enable=False,
)

console = Console()


@dataclass
class CLIContext:
    json_output: bool = False


def version_callback(value: bool):
    """Display version and exit."""
    if value:
        console.print(f"registry-auth v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Print results as JSON",
    ),
):
    """
    registry-auth CLI

    Serve the authentication API or inspect what the organization grants.
    Configuration is read from REGISTRY_AUTH_* environment variables.
    """
    ctx.obj = CLIContext(json_output=json_output)


def _run(action: Callable[[PackageAuthPlugin], Awaitable[T]]) -> T:
    """Build a plugin from settings, run ``action`` with it and close it."""
    setup_logging()

    async def runner() -> T:
        plugin = PackageAuthPlugin(get_settings().plugin_config())
        try:
            return await action(plugin)
        finally:
            await plugin.aclose()

    try:
        return asyncio.run(runner())
    except RegistryAuthError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1)


def _print_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2, default=str))


@app.command("serve")
def serve_command(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Bind port"),
    reload: Optional[bool] = typer.Option(None, "--reload/--no-reload", help="Reload on code changes"),
):
    """
    Run the authentication API server.
    """
    settings = get_settings()
    uvicorn.run(
        "registry_auth.main:create_app",
        factory=True,
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=settings.is_development if reload is None else reload,
        log_level=settings.log_level.lower(),
    )


@app.command("packages")
def packages_command(ctx: typer.Context):
    """
    List published packages and the repository behind each one.

    Example:
        registry-auth packages
    """
    cli_ctx: CLIContext = ctx.obj
    catalog = _run(lambda plugin: plugin.catalog.package_names())

    if cli_ctx.json_output:
        _print_json(catalog)
        return

    if not catalog:
        console.print("[dim]No packages found[/dim]")
        return

    table = Table(title="Packages")
    table.add_column("Package", style="cyan")
    table.add_column("Repository", style="green")
    for package_name in sorted(catalog):
        table.add_row(package_name, catalog[package_name])
    console.print(table)


@app.command("teams")
def teams_command(
    ctx: typer.Context,
    username: str = typer.Argument(..., help="Login of the user"),
):
    """
    List the teams a user belongs to, organization team first.

    Example:
        registry-auth teams octocat
    """
    cli_ctx: CLIContext = ctx.obj
    teams = _run(lambda plugin: plugin.identity.get_user_teams(username))

    if cli_ctx.json_output:
        _print_json([team.name for team in teams])
        return

    table = Table(title=f"Teams of {username}")
    table.add_column("Team", style="cyan")
    table.add_column("Members", justify="right")
    for team in teams:
        table.add_row(team.name, str(len(team.members)))
    console.print(table)


@app.command("permissions")
def permissions_command(
    ctx: typer.Context,
    username: str = typer.Argument(..., help="Login of the user"),
    teams: Optional[List[str]] = typer.Option(
        None, "--team", "-t", help="Group the user belongs to (repeatable)"
    ),
):
    """
    Show the package permissions resolved for a user.

    Example:
        registry-auth permissions octocat --team developers
    """
    cli_ctx: CLIContext = ctx.obj
    user = RemoteUser(name=username, groups=teams or [])
    packages = _run(lambda plugin: plugin.user_permissions.package_permissions_for_user(user))
    rows = {
        name: sorted(permission.value for permission in permissions)
        for name, permissions in sorted(packages.items())
    }

    if cli_ctx.json_output:
        _print_json(rows)
        return

    if not rows:
        console.print(f"[yellow]{username} has no package permissions[/yellow]")
        return

    table = Table(title=f"Package permissions of {username}")
    table.add_column("Package", style="cyan")
    table.add_column("Permissions", style="green")
    for name, permissions in rows.items():
        table.add_row(name, ", ".join(permissions))
    console.print(table)


if __name__ == "__main__":
    app()
