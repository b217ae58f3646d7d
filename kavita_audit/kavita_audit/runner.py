"""
Outer run loop for auditing Kavita libraries.

The loop is a small state machine:

    AWAITING_LIBRARY_ID -> AUTHENTICATED -> REPORTING -> DONE
            ^                                   |
            +-------- (check another library) --+

Prompting is injected as callables so the CLI can use click prompts and
tests can script the answers.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from .analysis import analyze_series
from .kavita_api import KavitaAPI
from .logging import APIError
from .report import ReportWriter

logger = logging.getLogger(__name__)


class AuditState(Enum):
    AWAITING_LIBRARY_ID = "awaiting_library_id"
    AUTHENTICATED = "authenticated"
    REPORTING = "reporting"
    DONE = "done"


@dataclass
class LibraryAuditSummary:
    library_id: str
    series_checked: int = 0
    series_with_issues: int = 0
    total_findings: int = 0
    error: Optional[str] = None

    @property
    def completed(self) -> bool:
        return self.error is None


class LibraryAuditRunner:
    def __init__(
        self,
        client: KavitaAPI,
        writer: ReportWriter,
        prompt_library_id: Callable[[], str],
        confirm_another: Callable[[], bool],
        on_invalid_input: Optional[Callable[[str], None]] = None,
        before_library: Optional[Callable[[], None]] = None,
    ):
        self.client = client
        self.writer = writer
        self.prompt_library_id = prompt_library_id
        self.confirm_another = confirm_another
        self.on_invalid_input = on_invalid_input
        self.before_library = before_library
        self.state = AuditState.AWAITING_LIBRARY_ID
        self.summaries: List[LibraryAuditSummary] = []

    def run_library(self, library_id: str) -> LibraryAuditSummary:
        """
        Audits every series of one library.

        A collaborator failure ends this library's run. Reports for series
        analyzed before the failure have already been written.
        """
        summary = LibraryAuditSummary(library_id=library_id)
        try:
            self.client.authenticate()
            self.state = AuditState.AUTHENTICATED

            self.writer.start_library(library_id)
            series_list = self.client.fetch_series_list(library_id)
            self.state = AuditState.REPORTING

            for series in series_list:
                volumes = self.client.fetch_volumes(series.id)
                summary.series_checked += 1
                report = analyze_series(series, volumes)
                if report is None:
                    continue
                summary.series_with_issues += 1
                summary.total_findings += report.finding_count
                self.writer.write_series(report)
        except APIError as e:
            logger.error(f"Audit of library {library_id} aborted: {e}")
            summary.error = str(e)

        logger.info(
            f"Library {library_id}: {summary.series_checked} series checked, "
            f"{summary.series_with_issues} with issues"
        )
        self.summaries.append(summary)
        return summary

    def await_library_id(self) -> str:
        while True:
            library_id = (self.prompt_library_id() or "").strip()
            if library_id:
                return library_id
            message = "Error: Library ID is required."
            logger.warning(message)
            if self.on_invalid_input:
                self.on_invalid_input(message)

    def run(self, library_id: Optional[str] = None, once: bool = False) -> List[LibraryAuditSummary]:
        """
        Loops over libraries until the operator declines another one.

        Args:
            library_id: Library for the first pass; prompted for when omitted
            once: Stop after the first library without asking
        """
        self.state = AuditState.AWAITING_LIBRARY_ID
        while self.state is not AuditState.DONE:
            if self.before_library:
                self.before_library()
            current_id = library_id or self.await_library_id()
            library_id = None
            self.run_library(current_id)

            if not once and self.confirm_another():
                self.state = AuditState.AWAITING_LIBRARY_ID
            else:
                self.state = AuditState.DONE
        return self.summaries
