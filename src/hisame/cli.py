"""Hisame CLI - Main entry point."""

from __future__ import annotations

import logging
import webbrowser

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .auth import LoginFlow, TokenStorage, describe_failure
from .config import ConfigError, HisameSettings, config_file_path, load_settings
from .logs import init_logging
from .state import AppContext

app = typer.Typer(
    name="hisame",
    help="Hisame - AniList client",
    no_args_is_help=True,
)
console = Console()
logger = logging.getLogger(__name__)

# Sub-command groups
auth_app = typer.Typer(help="Authentication commands")
config_app = typer.Typer(help="Configuration commands")

app.add_typer(auth_app, name="auth")
app.add_typer(config_app, name="config")


@app.callback()
def main(ctx: typer.Context):
    """Set up logging and the application context."""
    cleanup = init_logging()
    ctx.call_on_close(cleanup)

    try:
        settings = load_settings()
    except ConfigError as e:
        logger.warning("Error loading config. Will use default config. %s", e)
        settings = HisameSettings()

    ctx.obj = AppContext(settings, TokenStorage())


def _context(ctx: typer.Context) -> AppContext:
    return ctx.find_root().obj


def _no_browser(url: str) -> bool:
    return False


# ============================================================================
# Auth Commands
# ============================================================================


@auth_app.command("login")
def auth_login(
    ctx: typer.Context,
    browser: bool = typer.Option(True, "--browser/--no-browser", help="Open the login page automatically"),
):
    """Log in to AniList in your browser."""
    app_ctx = _context(ctx)
    flow = LoginFlow(open_browser=webbrowser.open if browser else _no_browser)

    def show_waiting(attempt):
        if browser and not attempt.browser_opened:
            console.print("[yellow]Hisame was unable to open the AniList login page in your browser.[/yellow]")
        console.print(
            Panel(
                "Continue the login in your browser.\n\n"
                "If the browser didn't open, visit:\n"
                f"[link={attempt.login_url}]{attempt.login_url}[/link]",
                title="AniList Login",
            )
        )

    attempt = flow.start(on_waiting=show_waiting)

    if attempt.done:
        result = attempt.result
    else:
        try:
            with console.status("Waiting for authorization... [dim](Ctrl+C to cancel)[/dim]"):
                result = attempt.wait()
        except KeyboardInterrupt:
            attempt.cancel()
            result = attempt.wait()

    if result.cancelled:
        console.print("[dim]Login cancelled.[/dim]")
        return

    if not result.success:
        console.print(Panel(f"[red]{describe_failure(result.error)}[/red]", title="Login error"))
        raise typer.Exit(1)

    app_ctx.auth_token = result.token
    try:
        app_ctx.save_auth_token()
    except OSError as e:
        console.print(f"[red]Logged in, but the token could not be saved: {e}[/red]")
        raise typer.Exit(1)

    console.print("[green]Login complete.[/green]")


@auth_app.command("status")
def auth_status(ctx: typer.Context):
    """Check current authentication status."""
    app_ctx = _context(ctx)
    storage = app_ctx.token_storage

    table = Table(title="Hisame Authentication Status")
    table.add_column("Setting", style="cyan")
    table.add_column("Status", style="green")

    try:
        app_ctx.load_auth_token()
    except OSError as e:
        console.print(f"[red]Could not read token file: {e}[/red]")
        raise typer.Exit(1)

    table.add_row("AniList Token", "Stored" if app_ctx.is_authenticated else "[red]Not logged in[/red]")
    table.add_row("Token File", str(storage.path))

    console.print(table)


@auth_app.command("logout")
def auth_logout(ctx: typer.Context):
    """Remove the stored AniList token."""
    app_ctx = _context(ctx)
    try:
        app_ctx.clear_auth_token()
    except OSError as e:
        console.print(f"[red]Could not delete token file: {e}[/red]")
        raise typer.Exit(1)
    console.print("[green]Logged out.[/green]")


# ============================================================================
# Config Commands
# ============================================================================


@config_app.command("show")
def config_show(ctx: typer.Context):
    """Show the effective configuration."""
    settings = _context(ctx).settings

    table = Table(title="Hisame Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Config File", str(config_file_path()))
    table.add_row("Log Level", settings.log_level)
    table.add_row("Title Language", settings.anime.title_language)
    table.add_row("Display Layout", settings.anime.display_layout)

    console.print(table)


# ============================================================================
# Main
# ============================================================================


@app.command()
def version():
    """Show version information."""
    from . import __version__

    console.print(f"Hisame v{__version__}")


if __name__ == "__main__":
    app()
