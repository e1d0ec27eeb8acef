from __future__ import annotations

import logging
import threading
from typing import Dict, Iterable, List, Optional, Set

from .base import (
    CATEGORIES,
    TARGET_DISTRICTS,
    Category,
    CrawlError,
    CrawlResult,
    CrawlSummary,
    InstitutionRecord,
    InternalCrawlError,
    NoDistrictsDiscoveredError,
    NoMatchingDistrictsError,
    SourceUnreachableError,
)
from .extract import extract_institution_id, extract_number, extract_student_count
from .fetcher import Document, DocumentFetcher
from .navigator import (
    extract_category_link,
    extract_detail,
    extract_district_links,
    extract_listing_links,
)
from .store import RecordStore


logger = logging.getLogger(__name__)


class CrawlOrchestrator:
    """Walks districts -> categories -> listings -> detail pages.

    New institutions are appended to the store; known ids are skipped. Only one
    run executes at a time per orchestrator.
    """

    def __init__(
        self,
        store: RecordStore,
        fetcher: DocumentFetcher,
        *,
        base_url: str,
        target_districts: Optional[Set[str]] = None,
        categories: Iterable[Category] = CATEGORIES,
    ) -> None:
        self.store = store
        self.fetcher = fetcher
        self.base_url = base_url
        self.target_districts = set(target_districts or TARGET_DISTRICTS)
        self.categories = tuple(categories)
        self._run_lock = threading.Lock()

    # --- Public API ---
    def run(self, refresh: bool, district_filter: Optional[Iterable[str]] = None) -> List[InstitutionRecord]:
        return self.execute(refresh, district_filter).records

    def execute(self, refresh: bool, district_filter: Optional[Iterable[str]] = None) -> CrawlResult:
        wanted = {d.strip() for d in district_filter} if district_filter else None
        with self._run_lock:
            self.store.ensure_initialized()
            summary = self._refresh(wanted) if refresh else None
            records = self.store.read_all()
        if wanted:
            records = [r for r in records if r.district in wanted]
        return CrawlResult(records=records, summary=summary)

    # --- Internals ---
    def _refresh(self, wanted: Optional[Set[str]]) -> CrawlSummary:
        main_doc = self.fetcher.fetch(self.base_url)
        if main_doc is None:
            raise SourceUnreachableError()
        district_links = extract_district_links(main_doc, self.target_districts)
        if not district_links:
            raise NoDistrictsDiscoveredError()

        effective = self.target_districts & wanted if wanted else set(self.target_districts)
        if not effective:
            raise NoMatchingDistrictsError()
        links: Dict[str, str] = {d: u for d, u in district_links.items() if d in effective}
        if not links:
            raise NoMatchingDistrictsError("Не найдены ссылки на указанные районы")

        summary = CrawlSummary()
        try:
            for district, url in links.items():
                self._process_district(district, url, summary)
        except CrawlError:
            raise
        except Exception as exc:
            logger.exception("Refresh failed: %s", exc)
            raise InternalCrawlError() from exc
        logger.info(
            "Refresh finished: districts=%d discovered=%d appended=%d known=%d failed=%d",
            summary.districts_processed,
            summary.discovered,
            summary.appended,
            summary.skipped_existing,
            summary.failed,
        )
        return summary

    def _process_district(self, district: str, url: str, summary: CrawlSummary) -> None:
        logger.info("Processing district %s", district)
        doc = self.fetcher.fetch(url)
        if doc is None:
            logger.warning("Could not load page of district %s", district)
            summary.record_failure("district", url, "fetch failed")
            return
        summary.districts_processed += 1
        for category in self.categories:
            self._process_category(district, doc, category, summary)

    def _process_category(self, district: str, district_doc: Document, category: Category, summary: CrawlSummary) -> None:
        category_url = extract_category_link(district_doc, category.label)
        if category_url is None:
            logger.warning("No '%s' link found for district %s", category.label, district)
            summary.record_skip("category", f"{district}/{category.label}", "link not found")
            return
        category_doc = self.fetcher.fetch(category_url)
        if category_doc is None:
            logger.warning("Could not load '%s' page for district %s", category.label, district)
            summary.record_failure("category", category_url, "fetch failed")
            return
        for listing_url in extract_listing_links(category_doc, category.keyword):
            summary.discovered += 1
            institution_id = extract_institution_id(listing_url)
            if self.store.exists(institution_id):
                summary.skipped_existing += 1
                continue
            record = self._fetch_record(listing_url, category, district)
            if record is None:
                summary.record_failure("detail", listing_url, "fetch failed")
                continue
            self.store.append(record)
            summary.appended += 1
            logger.info("Added %s %s (id=%s, district=%s)", record.type, record.number, record.id, district)

    def _fetch_record(self, url: str, category: Category, district: str) -> Optional[InstitutionRecord]:
        doc = self.fetcher.fetch(url)
        if doc is None:
            return None
        detail = extract_detail(doc)
        return InstitutionRecord(
            id=extract_institution_id(url),
            type=category.type.value,
            number=extract_number(detail.short_name_text),
            students_count=str(extract_student_count(detail.enrollment_text)),
            district=district,
            url=url,
        )
