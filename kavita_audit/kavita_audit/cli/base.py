"""
Shared CLI utilities and base functionality.
"""
import click
import logging
from typing import Optional
from rich.markup import escape

from ..config import get_config
from ..logging import console, set_log_level, setup_logging
from ..report import ReportWriter

logger = logging.getLogger(__name__)


def init_logging(verbose: bool = False) -> None:
    """Sets up file and console logging from configuration."""
    log_config = get_config().logging
    setup_logging(log_config.log_file)
    set_log_level(log_config.file_level, "file")
    set_log_level("DEBUG" if verbose else log_config.console_level, "console")


def resolve_opds_url(opds_url: Optional[str]) -> str:
    """
    Gets the Kavita OPDS URL from the option, configuration, or a prompt.

    Raises:
        click.UsageError: If no URL was given.
    """
    url = opds_url or get_config().kavita.opds_url
    if not url:
        url = click.prompt("Enter the Kavita ODPS URL", default="", show_default=False)
    url = (url or "").strip()
    if not url:
        logger.error("No OPDS URL provided")
        raise click.UsageError("Error: ODPS URL is required.")
    return url


def prompt_library_id() -> str:
    return click.prompt("Enter the Library ID", default="", show_default=False)


def confirm_another_library() -> bool:
    return click.confirm("\nWould you like to check another library?", default=False)


def report_invalid_input(message: str) -> None:
    console.print(f"[red]{escape(message)}[/red]")


def create_report_writer(report_file: Optional[str]) -> ReportWriter:
    report_config = get_config().report
    return ReportWriter(
        report_file=report_file or report_config.file,
        console=console,
        show_console=report_config.show_console,
    )
