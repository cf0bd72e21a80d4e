"""Main entry point for the issuerelay application.

Sets up the Typer CLI application, performs dependency injection (Composition Root),
defines CLI commands, and delegates execution to the CommandHandler.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Any, Coroutine, Dict, Optional

import typer

from issuerelay import __version__
# --- Core Layer ---
from issuerelay.core.command_handler import EXIT_FAILURE, CommandHandler
from issuerelay.core.exceptions import ConfigurationError
from issuerelay.core.services.submission_service import SubmissionService
# --- Infrastructure Layer ---
from issuerelay.infrastructure.cli.display import ConsoleDisplay
from issuerelay.infrastructure.config.settings import (
    get_api_key, get_config, get_endpoint, get_rate_limit_config,
    get_request_timeout, get_retry_policy_config, load_configuration, set_config,
)
from issuerelay.infrastructure.monitoring.logger_setup import setup_logging
from issuerelay.infrastructure.resilience.orchestrator import SubmissionOrchestrator
from issuerelay.infrastructure.transport.http_client import HttpTransportClient

logger = logging.getLogger(__name__)


# --- Dependency Injection Container (Manual) ---

def create_dependencies(config_file: Optional[Path] = None) -> Dict[str, Any]:
    """Creates and wires up all dependencies for the application.

    This acts as the Composition Root.

    Raises:
        ConfigurationError: If the loaded configuration is invalid.
    """
    load_configuration(config_file)
    setup_logging(
        log_level=get_config('logging.level'),
        log_format=get_config('logging.format'),
        log_file=get_config('logging.file'),
    )
    logger.info("Initializing application dependencies...")

    dependencies: Dict[str, Any] = {}
    dependencies['ui'] = ConsoleDisplay()
    api_key = get_api_key()
    dependencies['transport'] = HttpTransportClient(
        endpoint=get_endpoint(),
        api_key=api_key,
        timeout=get_request_timeout(),
    )
    if not api_key:
        logger.warning("No API key configured; requests will be sent without authorization.")
        dependencies['ui'].display_warning(
            "No API key configured. Set ISSUERELAY_API_KEY or transport.api_key in the config file."
        )

    dependencies['orchestrator'] = SubmissionOrchestrator(
        transport=dependencies['transport'],
        retry_config=get_retry_policy_config(),
        rate_limit_config=get_rate_limit_config(),
    )
    dependencies['submission_service'] = SubmissionService(
        orchestrator=dependencies['orchestrator'],
        ui=dependencies['ui'],
    )
    dependencies['command_handler'] = CommandHandler(
        submission_service=dependencies['submission_service'],
        ui=dependencies['ui'],
    )
    logger.info("All dependencies initialized successfully.")
    return dependencies


# --- Typer App Definition ---
app = typer.Typer(
    name="issuerelay",
    help="Deliver batches of issue records to a remote endpoint with retries and rate limiting.",
    add_completion=False,
)


def _get_dependencies(ctx: typer.Context) -> Dict[str, Any]:
    """Builds the dependency container once per invocation."""
    state = ctx.ensure_object(dict)
    if 'dependencies' not in state:
        try:
            state['dependencies'] = create_dependencies(state.get('config_file'))
        except ConfigurationError as e:
            logger.error(f"Fatal Error during application initialization: {e}")
            ConsoleDisplay().display_error(f"Invalid configuration: {e}")
            raise typer.Exit(code=EXIT_FAILURE)
    return state['dependencies']


# --- Helper for Running Async Commands ---
def run_async(dependencies: Dict[str, Any], coro: Coroutine[Any, Any, int]) -> int:
    """Runs a command coroutine and closes the transport afterwards."""
    async def runner() -> int:
        try:
            return await coro
        finally:
            close = getattr(dependencies['transport'], 'aclose', None)
            if close is not None:
                await close()
    return asyncio.run(runner())


# --- CLI Commands ---

@app.command()
def submit(
    ctx: typer.Context,
    file: Annotated[Path, typer.Option("--file", "-f",
                                       exists=True, file_okay=True, dir_okay=False,
                                       readable=True, resolve_path=True,
                                       help="JSON batch file to submit.")],
    project_id: Annotated[Optional[str], typer.Option("--project-id", "-p",
                                                      help="Project the issues belong to.")] = None,
    max_retries: Annotated[Optional[int], typer.Option("--max-retries", min=0,
                                                       help="Override the retry budget.")] = None,
    timeout: Annotated[Optional[float], typer.Option("--timeout", min=0.0,
                                                     help="Give up after this many seconds overall.")] = None,
):
    """Validate a batch file and deliver it to the configured endpoint."""
    dependencies = _get_dependencies(ctx)
    handler: CommandHandler = dependencies['command_handler']
    exit_code = run_async(
        dependencies, handler.handle_submit(str(file), project_id, max_retries, timeout)
    )
    raise typer.Exit(code=exit_code)


@app.command(name="check-connection")
def check_connection(ctx: typer.Context):
    """Check whether the configured endpoint is reachable."""
    dependencies = _get_dependencies(ctx)
    handler: CommandHandler = dependencies['command_handler']
    raise typer.Exit(code=run_async(dependencies, handler.handle_check_connection()))


@app.command()
def init(
    config: Annotated[Optional[Path], typer.Option("--config", "-c",
                                                   help="Where to write the configuration file "
                                                        "(default: ~/.issuerelay/config.yaml).")] = None,
    force: Annotated[bool, typer.Option("--force", help="Overwrite an existing file.")] = False,
):
    """Write a configuration file containing every default setting."""
    # Must work even when the current configuration file is invalid.
    handler = CommandHandler(submission_service=None, ui=ConsoleDisplay())
    raise typer.Exit(code=handler.handle_init(config, overwrite=force))


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"issuerelay {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    config_file: Annotated[Optional[Path], typer.Option("--config-file",
                                                        help="YAML configuration file to load.")] = None,
    endpoint: Annotated[Optional[str], typer.Option("--endpoint", help="Override the endpoint URL.")] = None,
    log_level: Annotated[Optional[str], typer.Option("--log-level", help="DEBUG, INFO, WARNING...")] = None,
    version: Annotated[bool, typer.Option("--version", callback=_version_callback, is_eager=True,
                                          help="Show the version and exit.")] = False,
):
    """Global options shared by every command."""
    state = ctx.ensure_object(dict)
    state['config_file'] = config_file
    if endpoint:
        set_config('transport.endpoint', endpoint)
    if log_level:
        set_config('logging.level', log_level)


# --- Main Execution Guard ---

def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    app()


if __name__ == "__main__":
    cli_entry_point()
