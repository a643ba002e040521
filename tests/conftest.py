"""
Shared fixtures for the conversion gateway tests.
"""
import io
import os
import tempfile
import pytest
from fastapi.testclient import TestClient
from PIL import Image

# Set test environment before importing app
_WORKDIR = tempfile.mkdtemp(prefix="convert-app-tests-")
os.environ["UPLOAD_DIR"] = os.path.join(_WORKDIR, "uploads")
os.environ["CONVERTED_DIR"] = os.path.join(_WORKDIR, "converted")
os.environ["ENVIRONMENT"] = "development"
os.environ["DEBUG"] = "false"

from convert_app.main import app
from convert_app.core.storage import StorageAreas, get_storage
from convert_app.routers import conversion
from convert_app.services.retention import DeferredRemover, get_remover

# Grace period used instead of the production 10 seconds
DOWNLOAD_DELAY = 0.2


@pytest.fixture(name="storage")
def storage_fixture(tmp_path):
    """Fresh intake and output areas for each test."""
    return StorageAreas(tmp_path / "uploads", tmp_path / "converted").ensure()


@pytest.fixture(name="remover")
def remover_fixture(storage: StorageAreas):
    return DeferredRemover(storage, DOWNLOAD_DELAY)


@pytest.fixture(name="client")
def client_fixture(storage: StorageAreas, remover: DeferredRemover):
    """Create a test client bound to the per-test storage areas."""
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_remover] = lambda: remover

    # Disable rate limiting for tests
    conversion.limiter.enabled = False

    with TestClient(app) as client:
        yield client
        remover.cancel_all()

    # Re-enable rate limiting and clean up
    conversion.limiter.enabled = True
    app.dependency_overrides.clear()


def _image_bytes(size=(200, 100), mode="RGB", fmt="PNG") -> bytes:
    color = (200, 30, 30, 128) if mode == "RGBA" else (200, 30, 30)
    buf = io.BytesIO()
    Image.new(mode, size, color).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture(name="sample_png")
def sample_png_fixture():
    """A 200x100 opaque PNG."""
    return _image_bytes()


@pytest.fixture(name="sample_rgba_png")
def sample_rgba_png_fixture():
    """A 200x100 half-transparent PNG."""
    return _image_bytes(mode="RGBA")


@pytest.fixture(name="sample_pdf")
def sample_pdf_fixture():
    """A one-page PDF with a Helvetica text layer reading 'Hello PDF world'."""
    content = b"BT /F1 24 Tf 72 700 Td (Hello PDF world) Tj ET"
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
        b"/Contents 4 0 R /Resources << /Font << /F1 5 0 R >> >> >>",
        b"<< /Length %d >>\nstream\n" % len(content) + content + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % number + body + b"\nendobj\n"

    xref_offset = len(out)
    out += b"xref\n0 %d\n" % (len(objects) + 1)
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += b"%010d 00000 n \n" % offset
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\n" % (len(objects) + 1)
    out += b"startxref\n%d\n%%%%EOF\n" % xref_offset
    return bytes(out)


@pytest.fixture(name="sample_docx")
def sample_docx_fixture():
    """A Word document with two paragraphs."""
    from docx import Document

    document = Document()
    document.add_paragraph("First paragraph")
    document.add_paragraph("Second paragraph")
    buf = io.BytesIO()
    document.save(buf)
    return buf.getvalue()


def weasyprint_available() -> bool:
    try:
        import weasyprint  # noqa: F401
    except (ImportError, OSError):
        return False
    return True


def skip_pdf_rendering() -> bool:
    """Skip renderer tests without WeasyPrint, unless CONVERT_APP_REQUIRE_PDF is set (CI)."""
    if os.environ.get("CONVERT_APP_REQUIRE_PDF"):
        return False
    return not weasyprint_available()


requires_weasyprint = pytest.mark.skipif(
    skip_pdf_rendering(),
    reason="WeasyPrint or its native libraries are not installed; set CONVERT_APP_REQUIRE_PDF=1 to fail instead",
)
