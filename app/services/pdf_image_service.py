"""Raster image extraction from PDF documents.

Every embedded image of every page is re-encoded as PNG and packed into a ZIP
archive; entries are named ``extracted_page{N}_img{M}.png`` (1-based).
"""

from __future__ import annotations

import io
import logging
import zipfile

from pypdf import PdfReader


logger = logging.getLogger(__name__)

PNG_MODES = {"1", "L", "LA", "P", "RGB", "RGBA", "I", "I;16"}


def extract_images(pdf_bytes: bytes) -> bytes:
    """Return a ZIP archive with the PDF's images, or b"" when there are none.

    Raises pypdf errors for unreadable documents.
    """
    reader = PdfReader(io.BytesIO(pdf_bytes))
    buf = io.BytesIO()
    written = 0
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for page_index, page in enumerate(reader.pages, start=1):
            image_count = 0
            for image_file in page.images:
                image_count += 1
                name = f"extracted_page{page_index}_img{image_count}.png"
                try:
                    img = image_file.image
                    if img is None:
                        logger.warning("Image %s could not be decoded", name)
                        continue
                    if img.mode not in PNG_MODES:
                        img = img.convert("RGB")
                    out = io.BytesIO()
                    img.save(out, format="PNG")
                except (OSError, ValueError) as exc:
                    logger.warning("Could not convert image %s: %s", name, exc)
                    continue
                zf.writestr(name, out.getvalue())
                written += 1
                logger.info("Image added to archive: %s", name)
            if image_count == 0:
                logger.info("No images found on page %d", page_index)
    if written == 0:
        return b""
    return buf.getvalue()
