from pathlib import Path

import pytest

from app.services.crawl.fetcher import Document
from app.services.crawl.orchestrator import CrawlOrchestrator
from app.services.crawl.store import RecordStore


BASE_URL = "https://edu.tatar.ru/index.htm"
FIXTURES = Path(__file__).parent / "fixtures"


def _detail(short_name: str, enrollment: str) -> str:
    return f"<div><div>Короткое название: {short_name}</div><div>{enrollment}</div></div>"


SITE = {
    BASE_URL: (FIXTURES / "edu_index.html").read_text(encoding="utf-8"),
    "https://edu.tatar.ru/kazan/avia.htm": (FIXTURES / "edu_district_avia.html").read_text(encoding="utf-8"),
    "https://edu.tatar.ru/kazan/avia/schools.htm": (
        '<a href="/org/school1.htm">Школа №1</a>'
        '<a href="/org/school2.htm">2</a>'
        '<a href="/about.htm">О проекте</a>'
    ),
    "https://edu.tatar.ru/kazan/avia/dou.htm": (
        '<a href="/org/dou5.htm">Детский сад №5</a>'
        '<a href="/org/dou5.htm">Детский сад №5 (филиал)</a>'
    ),
    # no kindergarten section on this district page
    "https://edu.tatar.ru/kazan/vahi.htm": '<a href="/kazan/vahi/schools.htm"><span>Школы</span></a>',
    "https://edu.tatar.ru/kazan/vahi/schools.htm": (
        '<a href="/org/school3.htm">Гимназия 3</a>'
        '<a href="/org/missing.htm">Школа №404</a>'
    ),
    "https://edu.tatar.ru/org/school1.htm": (FIXTURES / "edu_school_detail.html").read_text(encoding="utf-8"),
    "https://edu.tatar.ru/org/school2.htm": _detail("Школа-интернат", "У нас учатся: 300"),
    "https://edu.tatar.ru/org/school3.htm": _detail("Гимназия № 3", "У нас учатся: 450"),
    "https://edu.tatar.ru/org/dou5.htm": _detail("Детский сад №5", "У нас учатся: 25"),
}


class FakeFetcher:
    """Serves pages from a dict; unknown URLs behave like failed fetches."""

    def __init__(self, pages, fail_on=None):
        self.pages = dict(pages)
        self.fail_on = fail_on or {}
        self.calls = []

    def fetch(self, url):
        self.calls.append(url)
        if url in self.fail_on:
            raise self.fail_on[url]
        html = self.pages.get(url)
        if html is None:
            return None
        return Document(html, url)


@pytest.fixture
def fake_fetcher():
    return FakeFetcher(SITE)


@pytest.fixture
def store(tmp_path):
    return RecordStore(str(tmp_path / "institutions.csv"))


@pytest.fixture
def orchestrator(store, fake_fetcher):
    return CrawlOrchestrator(store, fake_fetcher, base_url=BASE_URL)
