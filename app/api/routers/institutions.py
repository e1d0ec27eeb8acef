from typing import List, Optional

from fastapi import APIRouter, HTTPException, Response
from fastapi.responses import PlainTextResponse

from app.services.crawl.base import CrawlError, district_names_from_codes
from app.services.institution_service import (
    XLSX_MEDIA_TYPE,
    format_institutions_text,
    generate_excel,
    get_orchestrator,
)

router = APIRouter(tags=["institutions"])


def _parse_district_codes(districts: Optional[str]) -> Optional[List[str]]:
    """'AVIA,VAHI' -> district display names; None when no valid code is given."""
    if not districts:
        return None
    names = district_names_from_codes(c for c in districts.split(",") if c.strip())
    return sorted(names) or None


@router.get("/institutions")
def api_get_institutions(
    refresh: bool = True,
    districts: Optional[str] = None,
    format: str = "text",
):
    """Catalog query, optionally refreshing it by crawling the source site first.

    - refresh: crawl edu.tatar.ru and append new institutions before answering
    - districts: comma separated codes (AVIA, VAHI, KIRO, MOSC, NOVO, PRIV, SOVI)
    - format: text (default) or spreadsheet (XLSX attachment)
    """
    fmt = (format or "text").lower()
    if fmt not in ("text", "spreadsheet"):
        raise HTTPException(status_code=400, detail="format must be 'text' or 'spreadsheet'")
    try:
        result = get_orchestrator().execute(refresh, _parse_district_codes(districts))
    except CrawlError as exc:
        raise HTTPException(status_code=400 if exc.client_error else 500, detail=exc.message)
    except Exception as exc:
        raise HTTPException(status_code=500, detail=f"Failed to read institutions: {exc}")

    headers = {}
    if result.summary is not None:
        headers = {
            "X-Crawl-Appended": str(result.summary.appended),
            "X-Crawl-Known": str(result.summary.skipped_existing),
            "X-Crawl-Failed": str(result.summary.failed),
        }
    if fmt == "spreadsheet":
        headers["Content-Disposition"] = "attachment; filename=institutions.xlsx"
        return Response(content=generate_excel(result.records), media_type=XLSX_MEDIA_TYPE, headers=headers)
    return PlainTextResponse(format_institutions_text(result.records), headers=headers)
