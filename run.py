#!/usr/bin/env python3
"""
Application Entry Script.

Main entry point for QuillNotes. All functionality is accessible
through command-line options.

Usage:
    python run.py --help
    python run.py --action server --verbose
    python run.py --action health --debug
    python run.py --action config
    python run.py --action token --subject user-1
"""

import subprocess
import sys
from pathlib import Path

import click

# Ensure project root is in path for absolute imports
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from quillnotes.backend.core.logging import get_logger, setup_logging


def validate_project_root() -> Path:
    """Validate that we're running from the project root."""
    if not (PROJECT_ROOT / ".project_root").exists():
        click.echo(
            click.style("Error: .project_root not found. Run from project root.", fg="red"),
            err=True,
        )
        sys.exit(1)
    return PROJECT_ROOT


@click.command()
@click.option(
    "--action",
    type=click.Choice(["server", "health", "config", "token", "info"]),
    default="info",
    help="Action to perform.",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Enable verbose output (INFO level logging).",
)
@click.option(
    "--debug", "-d",
    is_flag=True,
    help="Enable debug output (DEBUG level logging).",
)
@click.option(
    "--host",
    default=None,
    help="Server host (for server action).",
)
@click.option(
    "--port",
    default=None,
    type=int,
    help="Server port (for server action).",
)
@click.option(
    "--reload",
    is_flag=True,
    help="Enable auto-reload (for server action).",
)
@click.option(
    "--subject",
    default=None,
    help="Owner id to issue a development token for (for token action).",
)
def main(
    action: str,
    verbose: bool,
    debug: bool,
    host: str | None,
    port: int | None,
    reload: bool,
    subject: str | None,
) -> None:
    """
    QuillNotes Application Entry Point.

    Run the application server, check health, view configuration,
    or issue a development access token.

    Examples:

        # Start development server
        python run.py --action server --reload --verbose

        # Check application health
        python run.py --action health --debug

        # View loaded configuration
        python run.py --action config

        # Issue a bearer token for local testing
        python run.py --action token --subject user-1
    """
    validate_project_root()

    if debug:
        log_level = "DEBUG"
    elif verbose:
        log_level = "INFO"
    else:
        log_level = "WARNING"

    setup_logging(level=log_level, format_type="console", enable_file_logging=False)
    logger = get_logger(__name__)

    logger.debug("Starting application", extra={"action": action, "log_level": log_level})

    if action == "server":
        run_server(logger, host, port, reload)
    elif action == "health":
        check_health(logger)
    elif action == "config":
        show_config(logger)
    elif action == "token":
        issue_token(logger, subject)
    elif action == "info":
        show_info(logger)


def run_server(logger, host: str | None, port: int | None, reload: bool) -> None:
    """Start the FastAPI development server."""
    from quillnotes.backend.core.config import get_app_config

    server = get_app_config().application.server
    server_host = host or server.host
    server_port = port or server.port

    logger.info(
        "Starting server",
        extra={"host": server_host, "port": server_port, "reload": reload},
    )

    cmd = [
        sys.executable, "-m", "uvicorn",
        "quillnotes.backend.main:app",
        "--host", server_host,
        "--port", str(server_port),
    ]

    if reload:
        cmd.append("--reload")

    click.echo(f"Starting server at http://{server_host}:{server_port}")
    click.echo("Press Ctrl+C to stop\n")

    try:
        subprocess.run(cmd, check=True)
    except KeyboardInterrupt:
        logger.info("Server stopped")
    except subprocess.CalledProcessError as e:
        logger.error("Server failed to start", extra={"exit_code": e.returncode})
        sys.exit(e.returncode)


def check_health(logger) -> None:
    """Check application health by testing imports and configuration."""
    click.echo("Checking application health...\n")

    checks = []

    # Check 1: YAML configuration
    try:
        from quillnotes.backend.core.config import get_app_config, get_settings
        app_config = get_app_config()
        checks.append(("YAML configuration", True, f"App: {app_config.application.name}"))
        logger.debug("Configuration loaded", extra={"app_name": app_config.application.name})
    except Exception as e:
        checks.append(("YAML configuration", False, str(e)))
        logger.error("Configuration failed", extra={"error": str(e)})

    # Check 2: Secrets
    try:
        get_settings()
        checks.append(("Environment settings", True, None))
    except Exception as e:
        checks.append(("Environment settings", False, str(e)))
        logger.warning("Environment settings not configured", extra={"error": str(e)})

    # Check 3: Secret strength and production safety
    try:
        from quillnotes.backend.core.startup_checks import run_startup_checks
        run_startup_checks()
        checks.append(("Startup security checks", True, None))
    except Exception as e:
        checks.append(("Startup security checks", False, str(e)))
        logger.error("Startup checks failed", extra={"error": str(e)})

    # Check 4: Note encryption round trip
    try:
        from quillnotes.backend.core.crypto import get_note_cipher
        cipher = get_note_cipher()
        probe = "health-check"
        passed = cipher.try_decrypt(cipher.encrypt(probe)).unwrap() == probe
        checks.append(("Note encryption", passed, None if passed else "round trip mismatch"))
    except Exception as e:
        checks.append(("Note encryption", False, str(e)))
        logger.error("Note encryption failed", extra={"error": str(e)})

    # Check 5: FastAPI app
    try:
        from quillnotes.backend.main import app
        checks.append(("FastAPI application", True, f"Title: {app.title}"))
        logger.debug("FastAPI app loaded", extra={"title": app.title})
    except Exception as e:
        checks.append(("FastAPI application", False, str(e)))
        logger.error("FastAPI app failed", extra={"error": str(e)})

    click.echo("Health Check Results:")
    click.echo("-" * 50)

    all_passed = True
    for name, passed, detail in checks:
        status = click.style("✓ PASS", fg="green") if passed else click.style("✗ FAIL", fg="red")
        detail_str = f" ({detail})" if detail else ""
        click.echo(f"  {status}  {name}{detail_str}")
        if not passed:
            all_passed = False

    click.echo("-" * 50)

    if all_passed:
        click.echo(click.style("\nAll checks passed!", fg="green"))
    else:
        click.echo(click.style("\nSome checks failed. See details above.", fg="yellow"))
        click.echo("Note: secrets are read from config/.env (see config/.env.example).")
        sys.exit(1)


def show_config(logger) -> None:
    """Display loaded configuration (secrets are never shown)."""
    click.echo("Application Configuration:\n")

    try:
        from quillnotes.backend.core.config import get_app_config

        app_config = get_app_config()
        sections = [
            ("Application", app_config.application),
            ("Database", app_config.database),
            ("Logging", app_config.logging),
            ("Feature Flags", app_config.features),
            ("AI", app_config.ai),
            ("Concurrency", app_config.concurrency),
        ]

        for title, section in sections:
            click.echo(f"{title} Settings (from YAML):")
            click.echo("-" * 40)
            _echo_mapping(section.model_dump())
            click.echo()

        logger.info("Configuration displayed successfully")

    except Exception as e:
        logger.error("Failed to load configuration", extra={"error": str(e)})
        click.echo(click.style(f"Error loading configuration: {e}", fg="red"))
        sys.exit(1)


def _echo_mapping(values: dict, indent: int = 2) -> None:
    for key, value in values.items():
        if isinstance(value, dict):
            click.echo(f"{' ' * indent}{key}:")
            _echo_mapping(value, indent + 2)
        else:
            click.echo(f"{' ' * indent}{key}: {value}")


def issue_token(logger, subject: str | None) -> None:
    """Print a development access token for the given owner id."""
    if not subject:
        click.echo(click.style("Error: --subject is required for the token action.", fg="red"), err=True)
        sys.exit(2)

    from quillnotes.backend.core.security import create_access_token

    token = create_access_token({"sub": subject})
    logger.info("Development token issued", extra={"subject": subject})
    click.echo(token)


def show_info(logger) -> None:
    """Display application information."""
    click.echo("QuillNotes")
    click.echo("=" * 40)

    try:
        from quillnotes.backend.core.config import get_app_config, get_server_base_url
        app_config = get_app_config()
        base_url = get_server_base_url()
        click.echo(f"Name: {app_config.application.name}")
        click.echo(f"Version: {app_config.application.version}")
        click.echo(f"Description: {app_config.application.description}")
        click.echo(f"Server: {base_url}")
    except Exception:
        click.echo("Name: QuillNotes")
        click.echo("Version: 0.1.0")

    click.echo()
    click.echo("Available Actions:")
    click.echo("  --action server   Start the development server")
    click.echo("  --action health   Check application health")
    click.echo("  --action config   Display configuration")
    click.echo("  --action token    Issue a development access token")
    click.echo("  --action info     Show this information")
    click.echo()
    click.echo("Logging Options:")
    click.echo("  --verbose, -v     Enable INFO level logging")
    click.echo("  --debug, -d       Enable DEBUG level logging")
    click.echo()
    click.echo("Examples:")
    click.echo("  python run.py --action server --reload --verbose")
    click.echo("  python run.py --action health --debug")
    click.echo("  python run.py --action token --subject user-1")

    logger.debug("Info displayed")


if __name__ == "__main__":
    main()
