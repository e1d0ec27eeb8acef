from __future__ import annotations

import io
import logging
from typing import Any, Dict, List, Optional

from openpyxl import load_workbook

from app.models.land_plot import LAND_PLOT_COLUMNS, LandPlot
from app.services.institution_service import XLSX_MEDIA_TYPE


logger = logging.getLogger(__name__)

EMPTY_LAND_PLOTS_TEXT = "Не удалось загрузить или распознать данные земельных участков."


def _cell_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        s = value.strip()
        return s or None
    return str(value).strip()


def _to_float(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value.replace(",", "."))
    except ValueError:
        return None


def is_excel_file(content_type: Optional[str]) -> bool:
    return (content_type or "").split(";")[0].strip().lower() == XLSX_MEDIA_TYPE


def upload_land_plots(data: bytes, content_type: Optional[str]) -> List[LandPlot]:
    """Decode land plots from an XLSX upload.

    Returns an empty list for empty input, a non-XLSX content type or an
    unreadable workbook.
    """
    if not data:
        logger.warning("Uploaded land plot file is empty")
        return []
    if not is_excel_file(content_type):
        logger.warning("Uploaded land plot file is not XLSX (content type %r)", content_type)
        return []
    try:
        plots = read_land_plots(data)
    except Exception:
        logger.exception("Failed to read land plot workbook")
        return []
    logger.info("Decoded %d land plots", len(plots))
    return plots


def read_land_plots(data: bytes) -> List[LandPlot]:
    wb = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    try:
        ws = wb.worksheets[0] if wb.worksheets else None
        if ws is None:
            return []
        rows = ws.iter_rows(values_only=True)
        header = next(rows, None)
        if not header:
            return []
        columns: Dict[str, int] = {}
        for idx, cell in enumerate(header):
            name = _cell_text(cell)
            if name is not None and name not in columns:
                columns[name] = idx

        plots: List[LandPlot] = []
        for row in rows:
            if row is None or all(v is None for v in row):
                continue
            values: Dict[str, Any] = {}
            for field_name, column in LAND_PLOT_COLUMNS.items():
                idx = columns.get(column)
                raw = row[idx] if idx is not None and idx < len(row) else None
                values[field_name] = _cell_text(raw)
            values["area"] = _to_float(values["area"])
            plots.append(LandPlot(**values))
        return plots
    finally:
        wb.close()


def format_land_plots_text(plots: List[LandPlot]) -> str:
    if not plots:
        return EMPTY_LAND_PLOTS_TEXT
    lines = ["Загруженные земельные участки:"]
    for lp in plots:
        lines.append("---------------")
        lines.append(f"• ID участка: {lp.plotId or '—'}")
        lines.append(f"• Назначение: {lp.purpose or '—'}")
        lines.append(f"• Площадь (м²): {lp.area if lp.area is not None else '—'}")
        lines.append(f"• Кадастровый номер: {lp.cadastralNumber or '—'}")
        lines.append(f"• Проект: {lp.project or '—'}")
    return "\n".join(lines) + "\n"
