import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .constants import PATH_SEPARATOR
from .logging import ValidationError

# Invariant decimal: optional sign, digits, optional fraction. No grouping, no exponent.
INVARIANT_DECIMAL_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)$")


def parse_decimal(value: Any) -> Decimal:
    """
    Parses a JSON chapter number into a Decimal.

    Kavita sends chapter numbers either as JSON numbers or as strings
    ("10.5"). Both are accepted; strings must use the invariant format.

    Raises:
        ValidationError: If the value cannot be read as a decimal.
    """
    if isinstance(value, bool):
        raise ValidationError(f"Unexpected boolean {value!r} when parsing decimal.")
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise ValidationError(f"Unexpected value {value!r} when parsing decimal.")
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        # str() keeps 10.5 as 10.5 instead of its binary expansion
        return Decimal(str(value))
    if isinstance(value, str):
        text = value.strip()
        if not INVARIANT_DECIMAL_RE.match(text):
            raise ValidationError(f'Unable to convert "{value}" to decimal.')
        try:
            return Decimal(text)
        except InvalidOperation as e:
            raise ValidationError(f'Unable to convert "{value}" to decimal.') from e
    raise ValidationError(f"Unexpected value {value!r} when parsing decimal.")


def _parse_bool(value: Any, field_name: str) -> bool:
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ValidationError(f"'{field_name}' must be true or false, got {value!r}")
    return value


def _parse_whole_number(value: Any, field_name: str) -> int:
    number = parse_decimal(value)
    if number != number.to_integral_value():
        raise ValidationError(f"'{field_name}' must be a whole number, got {value!r}")
    return int(number)


def _require(data: Dict[str, Any], key: str, record: str) -> Any:
    if not isinstance(data, dict):
        raise ValidationError(f"{record} record must be an object, got {type(data).__name__}")
    if key not in data or data[key] is None:
        raise ValidationError(f"{record} record is missing '{key}'")
    return data[key]


@dataclass(frozen=True)
class ChapterFile:
    """A single archive backing a chapter."""
    file_path: str
    pages: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChapterFile":
        return cls(
            file_path=str(_require(data, "filePath", "File")),
            pages=int(data.get("pages") or 0),
        )

    @property
    def base_name(self) -> str:
        """The final path segment after '/'."""
        return self.file_path.split(PATH_SEPARATOR)[-1]


@dataclass(frozen=True)
class Chapter:
    """A numbered unit of content. Numbers are decimal to allow half-chapters (10.5)."""
    number: Decimal
    files: Tuple[ChapterFile, ...] = ()
    is_special: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Chapter":
        number = parse_decimal(_require(data, "number", "Chapter"))
        if number < 0:
            raise ValidationError(f"Chapter number must not be negative, got {number}")
        return cls(
            number=number,
            files=tuple(ChapterFile.from_dict(f) for f in data.get("files") or []),
            is_special=_parse_bool(data.get("isSpecial"), "isSpecial"),
        )


@dataclass(frozen=True)
class Volume:
    """A numbered grouping of chapters. Volume 0 holds loose chapters."""
    number: int
    chapters: Tuple[Chapter, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Volume":
        number = _parse_whole_number(_require(data, "number", "Volume"), "number")
        if number < 0:
            raise ValidationError(f"Volume number must not be negative, got {number}")
        return cls(
            number=number,
            chapters=tuple(Chapter.from_dict(c) for c in data.get("chapters") or []),
        )

    @property
    def chapter_numbers(self) -> set:
        return {c.number for c in self.chapters}


@dataclass(frozen=True)
class Series:
    """A single title in the library."""
    id: int
    name: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Series":
        return cls(
            id=_parse_whole_number(_require(data, "id", "Series"), "id"),
            name=str(data.get("name") or ""),
        )


class FindingCategory(Enum):
    MISSING_RANGE = "MissingRange"
    DUPLICATE_FILES = "DuplicateFiles"
    FILENAME_MISMATCH = "FilenameMismatch"
    VOLUME_OVERLAP = "VolumeOverlap"
    UNANALYZABLE_CHAPTER = "UnanalyzableChapter"


@dataclass(frozen=True)
class Finding:
    """One reported anomaly."""
    category: FindingCategory
    volume: int
    message: str


@dataclass
class VolumeReport:
    """Findings for one volume, in report order."""
    number: int
    overlap: Optional[str] = None
    missing: List[str] = field(default_factory=list)
    duplicates: List[str] = field(default_factory=list)
    mismatches: List[str] = field(default_factory=list)
    unanalyzable: List[str] = field(default_factory=list)

    @property
    def has_chapter_issues(self) -> bool:
        return bool(self.missing or self.duplicates or self.mismatches or self.unanalyzable)

    @property
    def has_issues(self) -> bool:
        return self.overlap is not None or self.has_chapter_issues

    @property
    def findings(self) -> List[Finding]:
        found = []
        if self.overlap is not None:
            found.append(Finding(FindingCategory.VOLUME_OVERLAP, self.number, self.overlap))
        found.extend(Finding(FindingCategory.MISSING_RANGE, self.number, m) for m in self.missing)
        found.extend(Finding(FindingCategory.DUPLICATE_FILES, self.number, m) for m in self.duplicates)
        found.extend(Finding(FindingCategory.FILENAME_MISMATCH, self.number, m) for m in self.mismatches)
        found.extend(Finding(FindingCategory.UNANALYZABLE_CHAPTER, self.number, m) for m in self.unanalyzable)
        return found


@dataclass
class SeriesReport:
    """Report for one series. Only volumes with issues are kept."""
    series: Series
    volumes: List[VolumeReport] = field(default_factory=list)

    @property
    def findings(self) -> List[Finding]:
        return [f for v in self.volumes for f in v.findings]

    @property
    def finding_count(self) -> int:
        return len(self.findings)
