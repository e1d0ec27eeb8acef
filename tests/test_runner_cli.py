from pathlib import Path

import pytest

import app.config as config
from app.services.crawl.base import InstitutionRecord
from app.services.crawl.runner import main
from app.services.crawl.store import RecordStore


@pytest.fixture
def catalog(tmp_path, monkeypatch):
    path = tmp_path / "institutions.csv"
    store = RecordStore(str(path))
    store.append(
        InstitutionRecord("school1", "Школа", "1", "120", "Авиастроительный", "https://edu.tatar.ru/org/school1.htm")
    )
    store.append(InstitutionRecord("dou7", "Детский сад", "7", "40", "Советский", "https://edu.tatar.ru/org/dou7.htm"))
    monkeypatch.setenv("CATALOG_CSV_PATH", str(path))
    monkeypatch.setattr(config, "_settings_cache", None)
    yield path
    config._settings_cache = None


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("CRAWL_TIMEOUT", "not-a-number")
    monkeypatch.setenv("TELEGRAM_WORKERS", "0")
    monkeypatch.setenv("BOT_AUTOSTART", "no")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    settings = config.load_settings()
    assert settings.crawl_timeout == 15.0
    assert settings.telegram_workers == 1
    assert settings.bot_autostart is False
    assert settings.log_level == "DEBUG"


def test_crawl_without_refresh_prints_filtered_catalog(catalog, capsys):
    assert main(["crawl", "--no-refresh", "--districts", "SOVI"]) == 0
    out = capsys.readouterr().out
    assert "• ID: dou7" in out
    assert "school1" not in out


def test_crawl_writes_xlsx(catalog, tmp_path, capsys):
    target = tmp_path / "out.xlsx"
    assert main(["crawl", "--no-refresh", "--format", "xlsx", "--out", str(target)]) == 0
    assert Path(capsys.readouterr().out.strip()) == target
    assert target.read_bytes()[:2] == b"PK"


def test_bot_requires_token(monkeypatch):
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "")
    monkeypatch.setattr(config, "_settings_cache", None)
    assert main(["bot"]) == 2


def test_crawl_prints_run_summary(catalog, monkeypatch, capsys):
    from app.services import institution_service
    from app.services.crawl.orchestrator import CrawlOrchestrator

    from conftest import BASE_URL, SITE, FakeFetcher

    orch = CrawlOrchestrator(RecordStore(str(catalog)), FakeFetcher(SITE), base_url=BASE_URL)
    monkeypatch.setattr(institution_service, "build_orchestrator", lambda: orch)
    assert main(["crawl", "--districts", "AVIA"]) == 0
    first_line = capsys.readouterr().out.splitlines()[0]
    assert first_line == "districts_processed=1 discovered=3 appended=2 skipped_existing=1 failed=0"
