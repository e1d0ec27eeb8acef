from __future__ import annotations

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Set


class District(str, Enum):
    """Target districts of Kazan: code -> Russian display name."""

    AVIA = "Авиастроительный"
    VAHI = "Вахитовский"
    KIRO = "Кировский"
    MOSC = "Московский"
    NOVO = "Ново-Савиновский"
    PRIV = "Приволжский"
    SOVI = "Советский"

    @classmethod
    def codes(cls) -> List[str]:
        return [d.name for d in cls]

    @classmethod
    def names(cls) -> Set[str]:
        return {d.value for d in cls}

    @classmethod
    def from_code(cls, code: str) -> Optional["District"]:
        return cls.__members__.get((code or "").strip().upper())


TARGET_DISTRICTS: Set[str] = District.names()


def district_names_from_codes(codes: Iterable[str]) -> Set[str]:
    """Map district codes to display names; unknown codes are dropped."""
    out: Set[str] = set()
    for code in codes:
        d = District.from_code(code)
        if d is not None:
            out.add(d.value)
    return out


class InstitutionType(str, Enum):
    SCHOOL = "Школа"
    KINDERGARTEN = "Детский сад"


@dataclass(frozen=True)
class Category:
    """An education-type section of a district page."""

    label: str  # link text on the district page
    keyword: str  # listing-link keyword on the category page
    type: InstitutionType


CATEGORIES = (
    Category(label="Школы", keyword="Школа", type=InstitutionType.SCHOOL),
    Category(label="Дошкольное образование", keyword="Детский сад", type=InstitutionType.KINDERGARTEN),
)

NO_NUMBER = "Без номера"
UNKNOWN_INSTITUTION = "Неизвестное учреждение"

CSV_HEADER = ["ID", "Type", "Number", "StudentsCount", "District", "URL"]


@dataclass(frozen=True)
class InstitutionRecord:
    id: str
    type: str
    number: str
    students_count: str
    district: str
    url: str

    def to_row(self) -> List[str]:
        return [self.id, self.type, self.number, self.students_count, self.district, self.url]

    @classmethod
    def from_row(cls, row: List[str]) -> "InstitutionRecord":
        if len(row) != len(CSV_HEADER):
            raise ValueError(f"Expected {len(CSV_HEADER)} fields, got {len(row)}")
        return cls(*row)


# --- Errors ---

class CrawlError(Exception):
    """Base class for crawl failures; ``message`` is shown to end users."""

    client_error = True

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class SourceUnreachableError(CrawlError):
    def __init__(self, message: str = "Не удалось загрузить главную страницу") -> None:
        super().__init__(message)


class NoDistrictsDiscoveredError(CrawlError):
    def __init__(self, message: str = "Не удалось найти ссылки на районы") -> None:
        super().__init__(message)


class NoMatchingDistrictsError(CrawlError):
    def __init__(self, message: str = "Указанные районы не найдены в целевых районах") -> None:
        super().__init__(message)


class InternalCrawlError(CrawlError):
    client_error = False

    def __init__(self, message: str = "Внутренняя ошибка сервера") -> None:
        super().__init__(message)


# --- Run bookkeeping ---

@dataclass
class BranchOutcome:
    level: str  # district | category | listing | detail
    target: str
    status: str  # skipped | failed
    reason: str


@dataclass
class CrawlSummary:
    districts_processed: int = 0
    discovered: int = 0
    appended: int = 0
    skipped_existing: int = 0
    failed: int = 0
    outcomes: List[BranchOutcome] = field(default_factory=list)

    def record_failure(self, level: str, target: str, reason: str) -> None:
        self.failed += 1
        self.outcomes.append(BranchOutcome(level=level, target=target, status="failed", reason=reason))

    def record_skip(self, level: str, target: str, reason: str) -> None:
        self.outcomes.append(BranchOutcome(level=level, target=target, status="skipped", reason=reason))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class CrawlResult:
    records: List[InstitutionRecord]
    summary: Optional[CrawlSummary] = None
