"""Catalog access for the API and the bot.

Wires the crawl subsystem from settings and renders records as text or XLSX.
"""

from __future__ import annotations

import io
import threading
from typing import List, Optional

from openpyxl import Workbook

from app.config import get_settings
from app.services.crawl.base import CSV_HEADER, InstitutionRecord
from app.services.crawl.fetcher import DocumentFetcher
from app.services.crawl.orchestrator import CrawlOrchestrator
from app.services.crawl.store import RecordStore


XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
EMPTY_CATALOG_TEXT = "Нет данных об образовательных учреждениях.\n"


def build_orchestrator() -> CrawlOrchestrator:
    settings = get_settings()
    store = RecordStore(settings.csv_path)
    fetcher = DocumentFetcher(timeout=settings.crawl_timeout, headers={"User-Agent": settings.user_agent})
    return CrawlOrchestrator(store, fetcher, base_url=settings.base_url)


_orchestrator_cache: Optional[CrawlOrchestrator] = None
_orchestrator_lock = threading.Lock()


def get_orchestrator() -> CrawlOrchestrator:
    """Process-wide orchestrator; all callers share its run lock and store."""
    global _orchestrator_cache
    if _orchestrator_cache is None:
        with _orchestrator_lock:
            if _orchestrator_cache is None:
                _orchestrator_cache = build_orchestrator()
    return _orchestrator_cache


def format_institutions_text(institutions: List[InstitutionRecord]) -> str:
    if not institutions:
        return EMPTY_CATALOG_TEXT
    parts: List[str] = []
    for inst in institutions:
        parts.append(
            "Учреждение:\n"
            f"• ID: {inst.id}\n"
            f"• Тип: {inst.type}\n"
            f"• Номер: {inst.number}\n"
            f"• Количество учащихся: {inst.students_count}\n"
            f"• Район: {inst.district}\n"
            f"• Ссылка: {inst.url}\n"
            "-------------------------\n"
        )
    return "".join(parts)


def generate_excel(institutions: List[InstitutionRecord]) -> bytes:
    """Encode records as an XLSX workbook with the fixed 6-column header."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Institutions"
    ws.append(CSV_HEADER)
    for inst in institutions:
        ws.append(inst.to_row())
    buf = io.BytesIO()
    wb.save(buf)
    wb.close()
    return buf.getvalue()
