import re
import math
import logging
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence, Set

from .models import Chapter, Series, Volume, VolumeReport, SeriesReport
from .constants import (
    GAP_TOLERANCE,
    VOLUME_RELATIVE_THRESHOLD,
    FIRST_VOLUME_NUMBER,
    PRIMARY_FILENAME_TEMPLATE,
    VOLUME_ONE_FILENAME_TEMPLATE,
)

logger = logging.getLogger(__name__)


def format_chapter_number(number: Decimal) -> str:
    """
    Renders a chapter number in fixed-point invariant form.

    '.' separator, no grouping, no exponent. The scale is kept as parsed,
    so Decimal("10.50") renders as "10.50".
    """
    return format(number, "f")


def sort_chapters(chapters: Iterable[Chapter]) -> List[Chapter]:
    return sorted(chapters, key=lambda c: c.number)


def sort_volumes(volumes: Iterable[Volume]) -> List[Volume]:
    return sorted(volumes, key=lambda v: v.number)


def find_missing_chapters(chapters: Sequence[Chapter]) -> List[str]:
    """
    Returns the missing chapter ranges between consecutive chapters.

    Expects chapters sorted ascending. A gap is flagged only when
    a + 1.1 < b, so 1 -> 1.5 is fine but 1 -> 2.5 is not.
    """
    missing = []
    for current, following in zip(chapters, chapters[1:]):
        if current.number + GAP_TOLERANCE < following.number:
            first = math.floor(current.number + 1)
            # 1 -> 2.5 gives 2..1; the range collapses to the single chapter 2
            last = max(first, math.floor(following.number - 1))
            missing.append(f"{first}-{last}")
    return missing


def find_duplicate_chapters(chapters: Sequence[Chapter]) -> List[str]:
    duplicates = []
    for chapter in chapters:
        if len(chapter.files) > 1:
            paths = "\n".join(f" - {f.file_path}" for f in chapter.files)
            duplicates.append(
                f"Multiple files found for chapter {format_chapter_number(chapter.number)}: \n{paths}"
            )
    return duplicates


def matches_naming_convention(file_name: str, volume_number: int, chapter_number: Decimal) -> bool:
    """
    Checks a file base name against the expected naming pattern.

    'Vol. <v> Ch. <n>' is always accepted; Volume 1 also accepts
    'Chapter <n>'. Leading zeros before the chapter number are allowed.
    """
    chapter = re.escape(format_chapter_number(chapter_number))
    primary = PRIMARY_FILENAME_TEMPLATE.format(volume=volume_number, chapter=chapter)
    if re.search(primary, file_name):
        return True
    if volume_number == FIRST_VOLUME_NUMBER:
        fallback = VOLUME_ONE_FILENAME_TEMPLATE.format(chapter=chapter)
        return re.search(fallback, file_name) is not None
    return False


def find_filename_mismatches(volume: Volume, chapters: Sequence[Chapter]) -> List[str]:
    mismatches = []
    for chapter in chapters:
        # Specials are exempt; chapters without files are reported separately
        if chapter.is_special or not chapter.files:
            continue

        file_name = chapter.files[0].base_name
        if not matches_naming_convention(file_name, volume.number, chapter.number):
            n = format_chapter_number(chapter.number)
            mismatches.append(
                f"File name mismatch for chapter {n}: {file_name} does not match "
                f"expected format for Volume {volume.number} Chapter {n}"
            )
    return mismatches


def find_unanalyzable_chapters(chapters: Sequence[Chapter]) -> List[str]:
    """Non-special chapters with no backing file cannot be checked for naming."""
    return [
        f"Chapter {format_chapter_number(c.number)} has no files and could not be analyzed"
        for c in chapters
        if not c.is_special and not c.files
    ]


def volumes_start_at_one(sorted_volumes: Sequence[Volume]) -> bool:
    """
    Decides whether chapter numbering restarts with each volume.

    Looks at the second volume only: if it holds any chapter numbered
    below 2 the series is volume-relative. Zero or one volume counts as
    volume-relative, which disables the overlap check.
    """
    if len(sorted_volumes) < 2:
        return True
    return any(c.number < VOLUME_RELATIVE_THRESHOLD for c in sorted_volumes[1].chapters)


def first_volume_chapter_numbers(volumes: Iterable[Volume]) -> Set[Decimal]:
    first_volume = next((v for v in volumes if v.number == FIRST_VOLUME_NUMBER), None)
    return first_volume.chapter_numbers if first_volume else set()


def find_volume_overlap(volume: Volume, first_numbers: Set[Decimal], starts_at_one: bool) -> Optional[str]:
    """Returns a message if a later volume reuses a Volume 1 chapter number."""
    if starts_at_one or volume.number <= FIRST_VOLUME_NUMBER:
        return None
    if any(c.number in first_numbers for c in volume.chapters):
        return f"Volume {volume.number} has overlapping chapter numbers with Volume 1."
    return None


def find_volume_overlaps(sorted_volumes: Sequence[Volume], starts_at_one: bool) -> List[str]:
    first_numbers = first_volume_chapter_numbers(sorted_volumes)
    overlaps = []
    for volume in sorted_volumes:
        message = find_volume_overlap(volume, first_numbers, starts_at_one)
        if message:
            overlaps.append(message)
    return overlaps


def analyze_volume(volume: Volume) -> VolumeReport:
    chapters = sort_chapters(volume.chapters)
    report = VolumeReport(
        number=volume.number,
        missing=find_missing_chapters(chapters),
        duplicates=find_duplicate_chapters(chapters),
        mismatches=find_filename_mismatches(volume, chapters),
        unanalyzable=find_unanalyzable_chapters(chapters),
    )
    logger.debug(
        f"Volume {volume.number}: {len(chapters)} chapters, missing={len(report.missing)}, "
        f"duplicates={len(report.duplicates)}, mismatches={len(report.mismatches)}"
    )
    return report


def analyze_series(series: Series, volumes: Iterable[Volume]) -> Optional[SeriesReport]:
    """
    Runs every continuity check over one series.

    Returns None when nothing was found, so a clean series produces no
    output at all.
    """
    sorted_volumes = sort_volumes(volumes)
    starts_at_one = volumes_start_at_one(sorted_volumes)
    first_numbers = first_volume_chapter_numbers(sorted_volumes)
    logger.debug(f"Analyzing {series.name}: {len(sorted_volumes)} volumes, starts_at_one={starts_at_one}")

    report = SeriesReport(series=series)
    for volume in sorted_volumes:
        volume_report = analyze_volume(volume)
        volume_report.overlap = find_volume_overlap(volume, first_numbers, starts_at_one)
        if volume_report.has_issues:
            report.volumes.append(volume_report)

    if not report.volumes:
        return None
    logger.info(f"Found {report.finding_count} issues in {series.name}")
    return report
