import logging

from fastapi import APIRouter, File, HTTPException, Response, UploadFile

from app.services.pdf_image_service import extract_images

router = APIRouter(tags=["pdf"])
logger = logging.getLogger(__name__)


@router.post("/pdf/extract-images")
def api_extract_pdf_images(file: UploadFile = File(...)):
    """Return a ZIP of every raster image embedded in the uploaded PDF."""
    logger.info("PDF image extraction requested: %s", file.filename)
    data = file.file.read()
    if not data:
        raise HTTPException(status_code=400, detail="Файл не должен быть пустым")
    if (file.content_type or "").split(";")[0].strip() != "application/pdf":
        raise HTTPException(status_code=400, detail="Файл должен быть PDF-документом")
    try:
        zip_bytes = extract_images(data)
    except Exception as exc:
        logger.exception("PDF image extraction failed")
        raise HTTPException(status_code=500, detail=f"Failed to extract images: {exc}")
    return Response(
        content=zip_bytes,
        media_type="application/zip",
        headers={"Content-Disposition": "attachment; filename=extracted_images.zip"},
    )
