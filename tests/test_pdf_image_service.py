import io
import zipfile

from fastapi.testclient import TestClient
from PIL import Image
from pypdf import PdfWriter

from app.main import app
from app.services.pdf_image_service import extract_images


def _pdf_with_images() -> bytes:
    first = Image.new("RGB", (16, 16), (200, 30, 30))
    second = Image.new("RGB", (8, 12), (30, 30, 200))
    buf = io.BytesIO()
    first.save(buf, format="PDF", save_all=True, append_images=[second])
    return buf.getvalue()


def _blank_pdf() -> bytes:
    writer = PdfWriter()
    writer.add_blank_page(width=72, height=72)
    buf = io.BytesIO()
    writer.write(buf)
    return buf.getvalue()


def test_extract_images_names_entries_per_page():
    archive = extract_images(_pdf_with_images())
    with zipfile.ZipFile(io.BytesIO(archive)) as zf:
        names = sorted(zf.namelist())
        assert names == ["extracted_page1_img1.png", "extracted_page2_img1.png"]
        img = Image.open(io.BytesIO(zf.read("extracted_page2_img1.png")))
        assert img.format == "PNG"
        assert img.size == (8, 12)


def test_extract_images_without_images_is_empty():
    assert extract_images(_blank_pdf()) == b""


def test_extract_endpoint():
    client = TestClient(app)
    resp = client.post(
        "/pdf/extract-images",
        files={"file": ("doc.pdf", _pdf_with_images(), "application/pdf")},
    )
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/zip"
    with zipfile.ZipFile(io.BytesIO(resp.content)) as zf:
        assert len(zf.namelist()) == 2


def test_extract_endpoint_rejects_empty_and_non_pdf():
    client = TestClient(app)
    resp = client.post("/pdf/extract-images", files={"file": ("doc.pdf", b"", "application/pdf")})
    assert resp.status_code == 400
    resp = client.post("/pdf/extract-images", files={"file": ("doc.txt", b"hello", "text/plain")})
    assert resp.status_code == 400
