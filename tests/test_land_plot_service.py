import io
import zipfile

from fastapi.testclient import TestClient
from openpyxl import Workbook

from app.main import app
from app.services.institution_service import XLSX_MEDIA_TYPE
from app.services.land_plot_service import EMPTY_LAND_PLOTS_TEXT, format_land_plots_text, upload_land_plots


def _workbook_bytes() -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.append(["fid", "ВРИ", "Площадь", "Кадастровый номер", "ПЗЗ_ПЗЗ", "Комментарий"])
    ws.append([1, "Жилая застройка", 1500, "16:50:000000:1", "Ж1", "лишняя колонка"])
    ws.append(["FP-2", "  ", "не число", None, None, None])
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def test_upload_land_plots_maps_columns_by_header():
    plots = upload_land_plots(_workbook_bytes(), XLSX_MEDIA_TYPE)
    assert len(plots) == 2
    first, second = plots
    assert first.plotId == "1"
    assert first.purpose == "Жилая застройка"
    assert first.area == 1500.0
    assert first.cadastralNumber == "16:50:000000:1"
    assert first.pzz == "Ж1"
    # no such column in the sheet
    assert first.project is None
    assert second.plotId == "FP-2"
    assert second.purpose is None
    assert second.area is None


def test_upload_rejects_other_content_types():
    assert upload_land_plots(_workbook_bytes(), "text/csv") == []
    assert upload_land_plots(b"", XLSX_MEDIA_TYPE) == []


def test_upload_unparseable_workbook_yields_empty_list():
    assert upload_land_plots(b"definitely not a zip", XLSX_MEDIA_TYPE) == []


def test_format_land_plots_text():
    plots = upload_land_plots(_workbook_bytes(), XLSX_MEDIA_TYPE)
    text = format_land_plots_text(plots)
    assert text.startswith("Загруженные земельные участки:")
    assert "• Кадастровый номер: 16:50:000000:1" in text
    assert "• Проект: —" in text
    assert format_land_plots_text([]) == EMPTY_LAND_PLOTS_TEXT


def test_upload_endpoint_json_and_text():
    client = TestClient(app)
    files = {"file": ("plots.xlsx", _workbook_bytes(), XLSX_MEDIA_TYPE)}
    resp = client.post("/land-plots/upload", files=files)
    assert resp.status_code == 200
    data = resp.json()
    assert data[0]["cadastralNumber"] == "16:50:000000:1"
    assert data[0]["project"] is None

    resp = client.post("/land-plots/upload", params={"text": "true"}, files=files)
    assert resp.status_code == 200
    assert "Загруженные земельные участки:" in resp.text

    resp = client.post("/land-plots/upload", files={"file": ("plots.txt", b"x", "text/plain")})
    assert resp.json() == []


def _with_broken_sheet(data: bytes) -> bytes:
    src = zipfile.ZipFile(io.BytesIO(data))
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as dst:
        for item in src.infolist():
            content = src.read(item.filename)
            if item.filename == "xl/worksheets/sheet1.xml":
                content = b"<worksheet><sheetData><row"
            dst.writestr(item, content)
    return buf.getvalue()


def test_upload_with_broken_sheet_xml_yields_empty_list():
    assert upload_land_plots(_with_broken_sheet(_workbook_bytes()), XLSX_MEDIA_TYPE) == []


def test_upload_endpoint_with_broken_sheet_returns_empty_list():
    client = TestClient(app)
    files = {"file": ("plots.xlsx", _with_broken_sheet(_workbook_bytes()), XLSX_MEDIA_TYPE)}
    resp = client.post("/land-plots/upload", files=files)
    assert resp.status_code == 200
    assert resp.json() == []
