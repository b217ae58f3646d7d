"""
Tests for the continuity analysis: gaps, duplicates, naming and volume numbering.
"""
import pytest
from decimal import Decimal

from kavita_audit.kavita_audit.models import Chapter, ChapterFile, Series, Volume, FindingCategory
from kavita_audit.kavita_audit.analysis import (
    format_chapter_number,
    find_missing_chapters,
    find_duplicate_chapters,
    find_filename_mismatches,
    find_unanalyzable_chapters,
    matches_naming_convention,
    volumes_start_at_one,
    find_volume_overlaps,
    analyze_volume,
    analyze_series,
    sort_volumes,
)


def ch(number, *paths, special=False):
    return Chapter(
        number=Decimal(str(number)),
        files=tuple(ChapterFile(file_path=p, pages=20) for p in paths),
        is_special=special,
    )


def named(volume, number):
    """A chapter whose file follows the convention."""
    return ch(number, f"/manga/Series/Series Vol. {volume} Ch. {number}.cbz")


def vol(number, *numbers):
    return Volume(number=number, chapters=tuple(named(number, n) for n in numbers))


SERIES = Series(id=7, name="Berserk")


class TestMissingChapters:
    def test_single_missing_chapter(self):
        assert find_missing_chapters([ch(1), ch(2), ch(4)]) == ["3-3"]

    def test_half_chapter_is_tolerated(self):
        # 1 -> 1.5 is fine, 1.5 -> 3 is a gap of 1.5
        assert find_missing_chapters([ch(1), ch(1.5), ch(3)]) == ["2-2"]

    def test_multiple_ranges(self):
        assert find_missing_chapters([ch(1), ch(2), ch(6), ch(7), ch(10)]) == ["3-5", "8-9"]

    def test_consecutive_chapters_have_no_gap(self):
        assert find_missing_chapters([ch(1), ch(2), ch(3)]) == []

    def test_tolerance_boundary(self):
        # Exactly 1.1 apart is not a gap
        assert find_missing_chapters([ch(1), ch("2.1")]) == []
        assert find_missing_chapters([ch(1), ch("2.11")]) == ["2-2"]

    def test_gap_to_half_chapter_collapses_to_single_value(self):
        # 1 -> 2.5: floor(2) to floor(1.5) would be 2-1
        assert find_missing_chapters([ch(1), ch(2.5)]) == ["2-2"]

    def test_equal_numbers_are_not_a_gap(self):
        assert find_missing_chapters([ch(3), ch(3), ch(4)]) == []

    @pytest.mark.parametrize("chapters", [[], [ch(5)]])
    def test_too_few_chapters(self, chapters):
        assert find_missing_chapters(chapters) == []

    def test_only_adjacent_pairs_are_compared(self):
        # 1, 3 and 5: two separate gaps, never a single 2-4 range
        assert find_missing_chapters([ch(1), ch(3), ch(5)]) == ["2-2", "4-4"]


class TestDuplicateChapters:
    def test_single_file_is_not_duplicate(self):
        assert find_duplicate_chapters([ch(1, "a.cbz"), ch(2, "b.cbz")]) == []

    def test_two_files_listed(self):
        result = find_duplicate_chapters([ch(4, "a.cbz", "b.cbz")])
        assert result == ["Multiple files found for chapter 4: \n - a.cbz\n - b.cbz"]

    def test_every_path_listed_once(self):
        result = find_duplicate_chapters([ch(2, "x.cbz", "y.cbz", "z.cbz")])
        assert len(result) == 1
        for path in ("x.cbz", "y.cbz", "z.cbz"):
            assert result[0].count(path) == 1

    def test_zero_files_is_not_duplicate(self):
        assert find_duplicate_chapters([ch(1)]) == []


class TestFilenameConvention:
    def test_primary_pattern_with_leading_zeros(self):
        assert matches_naming_convention("Vol. 2 Ch. 05.cbz", 2, Decimal(5))

    def test_volume_one_fallback(self):
        assert matches_naming_convention("Chapter 05.cbz", 1, Decimal(5))

    def test_fallback_only_for_volume_one(self):
        assert not matches_naming_convention("Chapter 05.cbz", 2, Decimal(5))

    def test_wrong_volume_in_name(self):
        assert not matches_naming_convention("Vol. 3 Ch. 5.cbz", 2, Decimal(5))

    def test_decimal_point_is_literal(self):
        assert matches_naming_convention("Vol. 1 Ch. 10.5.cbz", 1, Decimal("10.5"))
        assert not matches_naming_convention("Vol. 1 Ch. 10x5.cbz", 1, Decimal("10.5"))

    def test_mismatch_message(self):
        volume = Volume(number=2, chapters=(ch(7, "/lib/Series/foo.cbz"),))
        result = find_filename_mismatches(volume, volume.chapters)
        assert result == [
            "File name mismatch for chapter 7: foo.cbz does not match expected format for Volume 2 Chapter 7"
        ]

    def test_only_base_name_is_checked(self):
        volume = Volume(number=2, chapters=(ch(7, "/Vol. 2 Ch. 7/random.cbz"),))
        assert len(find_filename_mismatches(volume, volume.chapters)) == 1

    def test_special_chapters_are_exempt(self):
        volume = Volume(number=2, chapters=(ch(7, "whatever.cbz", special=True),))
        assert find_filename_mismatches(volume, volume.chapters) == []

    def test_only_first_file_checked(self):
        volume = Volume(number=2, chapters=(ch(5, "Vol. 2 Ch. 5.cbz", "junk.cbz"),))
        assert find_filename_mismatches(volume, volume.chapters) == []

    def test_chapter_without_files_is_unanalyzable(self):
        volume = Volume(number=2, chapters=(ch(5),))
        assert find_filename_mismatches(volume, volume.chapters) == []
        assert find_unanalyzable_chapters(volume.chapters) == [
            "Chapter 5 has no files and could not be analyzed"
        ]

    def test_special_without_files_is_ignored(self):
        assert find_unanalyzable_chapters([ch(5, special=True)]) == []


class TestVolumeNumbering:
    def test_continuous_numbering(self):
        volumes = [vol(1, 1, 2, 3), vol(2, 4, 5), vol(3, 6, 7)]
        assert volumes_start_at_one(volumes) is False

    def test_volume_relative_numbering(self):
        volumes = [vol(1, 1, 2, 3), vol(2, 1, 2), vol(3, 1, 2)]
        assert volumes_start_at_one(volumes) is True

    def test_half_chapter_below_two_counts(self):
        volumes = [vol(1, 1), vol(2, "1.5", 3)]
        assert volumes_start_at_one(volumes) is True

    @pytest.mark.parametrize("volumes", [[], [vol(1, 5, 6)]])
    def test_zero_or_one_volume_defaults_to_relative(self, volumes):
        assert volumes_start_at_one(volumes) is True

    def test_second_smallest_volume_is_used(self):
        # Volume 0 holds loose chapters and sorts first
        volumes = sort_volumes([vol(2, 1), vol(0, 1, 2), vol(1, 5, 6)])
        assert [v.number for v in volumes] == [0, 1, 2]
        assert volumes_start_at_one(volumes) is False


class TestVolumeOverlap:
    def test_no_overlap_for_continuous_series(self):
        volumes = [vol(1, 1, 2, 3), vol(2, 4, 5)]
        assert find_volume_overlaps(volumes, starts_at_one=False) == []

    def test_overlap_in_continuous_series(self):
        volumes = [vol(1, 1, 2, 3), vol(2, 2, 5)]
        assert find_volume_overlaps(volumes, starts_at_one=False) == [
            "Volume 2 has overlapping chapter numbers with Volume 1."
        ]

    def test_skipped_for_volume_relative_series(self):
        volumes = [vol(1, 1, 2, 3), vol(2, 2, 5)]
        assert find_volume_overlaps(volumes, starts_at_one=True) == []

    def test_no_volume_one(self):
        volumes = [vol(2, 4, 5), vol(3, 4, 5)]
        assert find_volume_overlaps(volumes, starts_at_one=False) == []

    def test_volume_zero_is_never_flagged(self):
        volumes = [vol(0, 1), vol(1, 1, 2), vol(2, 3)]
        assert find_volume_overlaps(volumes, starts_at_one=False) == []


class TestAnalyzeVolume:
    def test_clean_volume(self):
        report = analyze_volume(vol(1, 1, 2, 3))
        assert not report.has_issues
        assert report.findings == []

    def test_chapters_are_sorted_first(self):
        volume = Volume(number=1, chapters=(named(1, 4), named(1, 1), named(1, 2)))
        assert analyze_volume(volume).missing == ["3-3"]

    def test_combines_all_checks(self):
        volume = Volume(
            number=2,
            chapters=(
                named(2, 1),
                ch(2, "Vol. 2 Ch. 2.cbz", "Vol. 2 Ch. 2 (1).cbz"),
                ch(5, "bad.cbz"),
                ch(6),
            ),
        )
        report = analyze_volume(volume)
        assert report.missing == ["3-4"]
        assert len(report.duplicates) == 1
        assert len(report.mismatches) == 1
        assert len(report.unanalyzable) == 1
        categories = [f.category for f in report.findings]
        assert categories == [
            FindingCategory.MISSING_RANGE,
            FindingCategory.DUPLICATE_FILES,
            FindingCategory.FILENAME_MISMATCH,
            FindingCategory.UNANALYZABLE_CHAPTER,
        ]


class TestAnalyzeSeries:
    def test_clean_series_returns_none(self):
        assert analyze_series(SERIES, [vol(1, 1, 2), vol(2, 3, 4)]) is None

    def test_empty_series_returns_none(self):
        assert analyze_series(SERIES, []) is None

    def test_only_volumes_with_issues_are_kept(self):
        report = analyze_series(SERIES, [vol(2, 5, 6), vol(1, 1, 3)])
        assert report is not None
        assert [v.number for v in report.volumes] == [1]
        assert report.volumes[0].missing == ["2-2"]

    def test_overlap_attached_to_volume(self):
        report = analyze_series(SERIES, [vol(1, 1, 2, 3), vol(2, 2, 5)])
        assert report is not None
        assert len(report.volumes) == 1
        volume_report = report.volumes[0]
        assert volume_report.number == 2
        assert volume_report.overlap == "Volume 2 has overlapping chapter numbers with Volume 1."
        # 2 -> 5 is also a gap within volume 2
        assert volume_report.missing == ["3-4"]

    def test_volume_relative_series_has_no_overlap(self):
        report = analyze_series(SERIES, [vol(1, 1, 2), vol(2, 1, 2)])
        assert report is None

    def test_idempotent(self):
        volumes = [vol(1, 1, 2, 3), vol(2, 2, 5), Volume(number=3, chapters=(ch(9, "a", "b"),))]
        assert analyze_series(SERIES, volumes) == analyze_series(SERIES, volumes)

    def test_input_is_not_mutated(self):
        volumes = [vol(2, 5, 3), vol(1, 2, 1)]
        before = list(volumes)
        analyze_series(SERIES, volumes)
        assert volumes == before


def test_format_chapter_number_is_fixed_point():
    assert format_chapter_number(Decimal("10.5")) == "10.5"
    assert format_chapter_number(Decimal("1E+1")) == "10"
    assert format_chapter_number(Decimal("7")) == "7"
