"""
Tests for report rendering and the report writer.
"""
import io
from decimal import Decimal

from rich.console import Console

from kavita_audit.kavita_audit.models import Chapter, ChapterFile, Series, Volume, VolumeReport, SeriesReport
from kavita_audit.kavita_audit.analysis import analyze_series
from kavita_audit.kavita_audit.report import render_series_report, render_volume_report, ReportWriter


def make_report():
    return SeriesReport(
        series=Series(id=3, name="Dorohedoro"),
        volumes=[
            VolumeReport(number=3, overlap="Volume 3 has overlapping chapter numbers with Volume 1."),
            VolumeReport(
                number=4,
                missing=["3-5", "9-9"],
                duplicates=["Multiple files found for chapter 4: \n - pathA\n - pathB"],
                mismatches=["mismatch one", "mismatch two"],
            ),
        ],
    )


def test_render_series_report():
    assert render_series_report(make_report()) == [
        "Series: Dorohedoro",
        "Volume 3 has overlapping chapter numbers with Volume 1.",
        "Volume: 4",
        "Missing Chapters: 3-5, 9-9",
        "Duplicate Chapters: Multiple files found for chapter 4: \n - pathA\n - pathB",
        "File Name Mismatches: mismatch one\nmismatch two",
    ]


def test_overlap_only_volume_has_no_header():
    lines = render_volume_report(VolumeReport(number=3, overlap="overlap"))
    assert lines == ["overlap"]


def test_overlap_precedes_volume_header():
    volume = VolumeReport(number=2, overlap="overlap", missing=["3-3"])
    assert render_volume_report(volume) == ["overlap", "Volume: 2", "Missing Chapters: 3-3"]


def test_unanalyzable_line():
    volume = VolumeReport(number=1, unanalyzable=["Chapter 2 has no files and could not be analyzed"])
    assert render_volume_report(volume)[-1] == (
        "Unanalyzable Chapters: Chapter 2 has no files and could not be analyzed"
    )


def test_rendering_from_analysis():
    volumes = [
        Volume(number=2, chapters=(
            Chapter(Decimal(7), (ChapterFile("/lib/foo.cbz", 10),)),
        )),
    ]
    report = analyze_series(Series(id=1, name="Solo"), volumes)
    assert render_series_report(report) == [
        "Series: Solo",
        "Volume: 2",
        "File Name Mismatches: File name mismatch for chapter 7: foo.cbz does not match expected format for Volume 2 Chapter 7",
    ]


class TestReportWriter:
    def test_writes_banner_and_series(self):
        stream = io.StringIO()
        writer = ReportWriter(stream=stream, show_console=False)
        writer.start_library("1")
        writer.write_series(make_report())

        text = stream.getvalue()
        assert text.startswith("Missing Chapters: \n\n--------------------------\n\n")
        assert "Series: Dorohedoro\n" in text
        assert "Missing Chapters: 3-5, 9-9\n" in text
        assert writer.reports_written == 1

    def test_writes_to_file(self, tmp_path):
        report_file = tmp_path / "MissingChapters.log"
        with ReportWriter(report_file=report_file, show_console=False) as writer:
            writer.start_library("2")
            writer.write_series(make_report())
            # Flushed per series, readable before close
            assert "Series: Dorohedoro" in report_file.read_text(encoding="utf-8")
        assert writer._stream is None

    def test_console_echo(self):
        buffer = io.StringIO()
        console = Console(file=buffer, width=120, force_terminal=False)
        writer = ReportWriter(console=console, show_console=True)
        writer.write_series(make_report())

        output = buffer.getvalue()
        assert "Dorohedoro" in output
        assert "Missing Chapters: 3-5, 9-9" in output

    def test_no_file_no_stream(self):
        writer = ReportWriter(show_console=False)
        with writer:
            writer.write_series(make_report())
        assert writer.reports_written == 1
