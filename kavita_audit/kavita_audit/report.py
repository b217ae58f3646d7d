"""
Report rendering and output for Kavita Audit.

The analysis returns structured SeriesReports; this module turns them into
the plain-text report lines and writes them to the report file and console.
"""
import logging
from pathlib import Path
from typing import IO, List, Optional, Union

from rich.console import Console
from rich.panel import Panel
from rich.text import Text
from rich.markup import escape

from .models import SeriesReport, VolumeReport
from .logging import console as default_console
from .constants import (
    REPORT_BANNER,
    LABEL_MISSING,
    LABEL_DUPLICATES,
    LABEL_MISMATCHES,
    LABEL_UNANALYZABLE,
    MISSING_RANGE_SEPARATOR,
    ISSUE_SEPARATOR,
)

logger = logging.getLogger(__name__)


def _issue_line(label: str, issues: List[str], separator: str) -> Optional[str]:
    if not issues:
        return None
    return f"{label}: {separator.join(issues)}"


def render_volume_report(volume: VolumeReport) -> List[str]:
    lines = []
    if volume.overlap:
        lines.append(volume.overlap)
    if volume.has_chapter_issues:
        lines.append(f"Volume: {volume.number}")
        for line in (
            _issue_line(LABEL_MISSING, volume.missing, MISSING_RANGE_SEPARATOR),
            _issue_line(LABEL_DUPLICATES, volume.duplicates, ISSUE_SEPARATOR),
            _issue_line(LABEL_MISMATCHES, volume.mismatches, ISSUE_SEPARATOR),
            _issue_line(LABEL_UNANALYZABLE, volume.unanalyzable, ISSUE_SEPARATOR),
        ):
            if line:
                lines.append(line)
    return lines


def render_series_report(report: SeriesReport) -> List[str]:
    """
    Renders one series report as text lines.

    Example:
        Series: Berserk
        Volume: 2
        Missing Chapters: 3-5, 9-9
    """
    lines = [f"Series: {report.series.name}"]
    for volume in report.volumes:
        lines.extend(render_volume_report(volume))
    return lines


class ReportWriter:
    """
    Writes series reports to the report file and echoes them to the console.

    Each report is flushed as soon as it is written, so series already
    reported survive a failure later in the run.
    """

    def __init__(
        self,
        report_file: Union[str, Path, None] = None,
        console: Optional[Console] = None,
        show_console: bool = True,
        stream: Optional[IO[str]] = None,
    ):
        self.report_file = Path(report_file) if report_file else None
        self.console = console or default_console
        self.show_console = show_console
        self._stream = stream
        self._owns_stream = False
        self.reports_written = 0

    def open(self) -> "ReportWriter":
        if self._stream is None and self.report_file is not None:
            self._stream = open(self.report_file, "w", encoding="utf-8")
            self._owns_stream = True
            logger.info(f"Writing report to {self.report_file}")
        return self

    def close(self) -> None:
        if self._owns_stream and self._stream is not None:
            self._stream.close()
            self._stream = None
            self._owns_stream = False

    def __enter__(self) -> "ReportWriter":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _write(self, text: str) -> None:
        if self._stream is not None:
            self._stream.write(text + "\n")
            self._stream.flush()

    def start_library(self, library_id: str) -> None:
        logger.info(f"Starting report for library {library_id}")
        self._write(REPORT_BANNER)

    def write_series(self, report: SeriesReport) -> None:
        lines = render_series_report(report)
        self._write("\n".join(lines) + "\n")
        self.reports_written += 1

        if self.show_console:
            body = "\n".join(lines[1:])
            self.console.print(
                Panel(
                    Text(body),
                    title=f"[bold]{escape(report.series.name)}[/bold]",
                    title_align="left",
                    subtitle=f"[dim]{report.finding_count} issue(s)[/dim]",
                    border_style="yellow",
                    expand=False,
                )
            )
