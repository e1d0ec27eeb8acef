from typing import Dict, Optional

from pydantic import BaseModel, Field


class LandPlot(BaseModel):
    """Land plot row decoded from an uploaded spreadsheet. All fields optional."""

    plotId: Optional[str] = Field(None, description="Plot identifier (fid)")
    purpose: Optional[str] = Field(None, description="Permitted use (ВРИ)")
    area: Optional[float] = Field(None, description="Area, m²")
    cadastralNumber: Optional[str] = None
    project: Optional[str] = None
    crossAnalysisField2: Optional[str] = None
    genplanId: Optional[str] = None
    genplanZone: Optional[str] = None
    genplanZoneNumber: Optional[str] = None
    genplanPlanId: Optional[str] = None
    oknId: Optional[str] = None
    okn: Optional[str] = None
    zoningId: Optional[str] = None
    zoning: Optional[str] = None
    zoningHeightRestriction: Optional[str] = None
    icgfoId: Optional[str] = None
    icgfo: Optional[str] = None
    pptId: Optional[str] = None
    ppt: Optional[str] = None
    oknTerritoryId: Optional[str] = None
    oknTerritory: Optional[str] = None
    crossAnalysisField1: Optional[str] = None
    recreationalComplexId: Optional[str] = None
    recreationalComplex: Optional[str] = None
    pzzSubzoneId: Optional[str] = None
    pzzSubzone: Optional[str] = None
    pzzSubzoneShort: Optional[str] = None
    pzzId: Optional[str] = None
    pzz: Optional[str] = None


# Field name -> spreadsheet column header
LAND_PLOT_COLUMNS: Dict[str, str] = {
    "plotId": "fid",
    "purpose": "ВРИ",
    "area": "Площадь",
    "cadastralNumber": "Кадастровый номер",
    "project": "Проект",
    "crossAnalysisField2": "Участки на кросс анализ_field_2",
    "genplanId": "Genplan_fid",
    "genplanZone": "Genplan_Генплан",
    "genplanZoneNumber": "Genplan_Номер зоны Генплана",
    "genplanPlanId": "Genplan_ID Генплана",
    "oknId": "ОКН_fid",
    "okn": "ОКН_ОКН",
    "zoningId": "ЗРЗ_fid",
    "zoning": "ЗРЗ_ЗРЗ",
    "zoningHeightRestriction": "ЗРЗ_Ограничение высоты",
    "icgfoId": "ИЦГФО_fid",
    "icgfo": "ИЦГФО_ИЦГФО",
    "pptId": "ППТ и ППиМТ_fid",
    "ppt": "ППТ и ППиМТ_ППТ",
    "oknTerritoryId": "Территория ОКН_fid",
    "oknTerritory": "Территория ОКН_Территория ОКН",
    "crossAnalysisField1": "Участки на кросс анализ_field_1",
    "recreationalComplexId": "Природно-рекреационный комплекс_fid",
    "recreationalComplex": "Природно-рекреационный комплекс_Природно-рекреационный комплекс",
    "pzzSubzoneId": "Подзоны ПЗЗ_fid",
    "pzzSubzone": "Подзоны ПЗЗ_Подзона ПЗЗ",
    "pzzSubzoneShort": "Подзоны ПЗЗ_Сокращение подзоны ПЗЗ",
    "pzzId": "ПЗЗ_fid",
    "pzz": "ПЗЗ_ПЗЗ",
}
