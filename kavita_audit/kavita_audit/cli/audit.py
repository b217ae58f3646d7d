"""
Audit command for Kavita Audit CLI.

Connects to a Kavita server and reports continuity problems for every
series of a library.
"""
import click
import logging
from typing import List, Optional
from rich.table import Table
from rich.markup import escape
from rich import box

from .base import (
    console,
    init_logging,
    resolve_opds_url,
    prompt_library_id,
    confirm_another_library,
    report_invalid_input,
    create_report_writer,
)
from ..config import get_config
from ..kavita_api import KavitaAPI
from ..logging import ConfigError, log_step
from ..runner import LibraryAuditRunner, LibraryAuditSummary

logger = logging.getLogger(__name__)


def print_summary(summaries: List[LibraryAuditSummary]) -> None:
    if not summaries:
        return
    table = Table(title="Audit Summary", box=box.ROUNDED)
    table.add_column("Library", style="cyan")
    table.add_column("Series Checked", justify="right")
    table.add_column("With Issues", justify="right")
    table.add_column("Findings", justify="right")
    table.add_column("Status")
    for s in summaries:
        status = "[green]Complete[/green]" if s.completed else f"[red]Aborted: {escape(s.error)}[/red]"
        issues_style = "yellow" if s.series_with_issues else "green"
        table.add_row(
            s.library_id,
            str(s.series_checked),
            f"[{issues_style}]{s.series_with_issues}[/{issues_style}]",
            str(s.total_findings),
            status,
        )
    console.print(table)


@click.command()
@click.option("--odps-url", "opds_url", help="Kavita OPDS URL (<server>/api/opds/<apiKey>).")
@click.option("--library-id", help="Library to audit. Prompted for when omitted.")
@click.option("--report-file", help="Where to write the report (default: MissingChapters.log).")
@click.option("--once", is_flag=True, help="Audit a single library and exit.")
@click.option("--verbose", is_flag=True, help="Show debug logging on the console.")
def audit(opds_url: Optional[str], library_id: Optional[str], report_file: Optional[str], once: bool, verbose: bool) -> None:
    """Checks a Kavita library for missing chapters, duplicates and misnamed files."""
    init_logging(verbose)
    logger.info(f"Audit command started (library_id={library_id}, report_file={report_file}, once={once})")

    kavita_config = get_config().kavita
    url = resolve_opds_url(opds_url)
    try:
        client = KavitaAPI(
            url,
            timeout=kavita_config.timeout,
            max_retries=kavita_config.max_retries,
            plugin_name=kavita_config.plugin_name,
        )
    except ConfigError as e:
        logger.error(str(e))
        console.print(f"[red]{escape(str(e))}[/red]")
        raise SystemExit(1)

    library_id = library_id or kavita_config.library_id

    with create_report_writer(report_file) as writer:
        runner = LibraryAuditRunner(
            client,
            writer,
            prompt_library_id=prompt_library_id,
            confirm_another=confirm_another_library,
            on_invalid_input=report_invalid_input,
            before_library=None if once else console.clear,
        )
        log_step("Auditing Kavita library continuity")
        runner.run(library_id=library_id, once=once)

    for summary in runner.summaries:
        if not summary.completed:
            console.print(f"[red]Audit of library {escape(summary.library_id)} stopped: {escape(summary.error)}[/red]")
    print_summary(runner.summaries)
