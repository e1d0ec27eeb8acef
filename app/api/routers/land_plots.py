import logging

from fastapi import APIRouter, File, UploadFile
from fastapi.responses import PlainTextResponse

from app.services.land_plot_service import format_land_plots_text, upload_land_plots

router = APIRouter(tags=["land-plots"])
logger = logging.getLogger(__name__)


@router.post("/land-plots/upload")
def api_upload_land_plots(file: UploadFile = File(...), text: bool = False):
    """Decode land plots from an XLSX upload.

    Returns a JSON list (all fields optional) or, with text=true, a plain-text
    summary. Unrecognized uploads yield an empty list.
    """
    logger.info("Land plot upload received: %s", file.filename)
    plots = upload_land_plots(file.file.read(), file.content_type)
    if text:
        return PlainTextResponse(format_land_plots_text(plots))
    return [p.model_dump() for p in plots]
