from pathlib import Path
from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from ..core.config import settings
from ..models.category import AudioFormat, DocumentFormat, ImageFormat, VideoFormat
from ..schemas.conversion import FormatsResponse

BASE_DIR = Path(__file__).resolve().parent.parent

router = APIRouter()
templates = Jinja2Templates(directory=BASE_DIR / "templates")


def supported_formats() -> FormatsResponse:
    return FormatsResponse(
        image=ImageFormat.values(),
        video=VideoFormat.values(),
        audio=AudioFormat.values(),
        document=[fmt for fmt in DocumentFormat.values() if fmt != DocumentFormat.DOCX.value],
    )


@router.get("/", response_class=HTMLResponse)
async def home(request: Request):
    return templates.TemplateResponse(
        request,
        "index.html",
        {"formats": supported_formats(), "max_upload_mb": settings.MAX_UPLOAD_MB},
    )


@router.get("/health")
async def health():
    """Basic health check endpoint."""
    return {"status": "ok"}


@router.get("/api/formats", response_model=FormatsResponse, summary="List supported target formats")
async def list_formats():
    return supported_formats()
