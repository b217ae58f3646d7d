"""
Check command for Kavita Audit CLI.

Audits an offline JSON export instead of a live server.
"""
import click
import logging
from typing import Optional
from rich.table import Table
from rich.markup import escape
from rich import box

from .base import console, init_logging, create_report_writer
from ..analysis import analyze_series
from ..library_export import load_library_export
from ..logging import ValidationError

logger = logging.getLogger(__name__)


@click.command()
@click.argument("export_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--report-file", help="Where to write the report (default: MissingChapters.log).")
@click.option("--verbose", is_flag=True, help="Show debug logging on the console.")
def check(export_file: str, report_file: Optional[str], verbose: bool) -> None:
    """Audits EXPORT_FILE, a JSON list of series with their volumes."""
    init_logging(verbose)
    logger.info(f"Check command started (export_file={export_file}, report_file={report_file})")

    try:
        entries = load_library_export(export_file)
    except ValidationError as e:
        logger.error(str(e))
        console.print(f"[red]{escape(str(e))}[/red]")
        raise SystemExit(1)

    with_issues = 0
    findings = 0
    with create_report_writer(report_file) as writer:
        writer.start_library(export_file)
        for series, volumes in entries:
            report = analyze_series(series, volumes)
            if report is None:
                continue
            with_issues += 1
            findings += report.finding_count
            writer.write_series(report)

    table = Table(title="Check Summary", box=box.ROUNDED)
    table.add_column("Series Checked", justify="right")
    table.add_column("With Issues", justify="right")
    table.add_column("Findings", justify="right")
    table.add_row(str(len(entries)), str(with_issues), str(findings))
    console.print(table)

    if with_issues == 0:
        console.print("[green]✓ No continuity issues found[/green]")
