import logging
import os
from pathlib import Path
from fastapi import FastAPI, Request
from fastapi.staticfiles import StaticFiles
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from .core.config import settings
from .core.errors import register_exception_handlers
from .core.storage import StorageAreas
from .models.category import TARGET_FORMATS
from .routers import conversion, frontend
from .services.retention import DeferredRemover, RetentionSweeper

logger = logging.getLogger("convert_app")

BASE_DIR = Path(__file__).resolve().parent


SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    # Inline script carries the format table rendered into the page
    "Content-Security-Policy": (
        "default-src 'self'; "
        "script-src 'self' 'unsafe-inline'; "
        "style-src 'self'; "
        "img-src 'self' data: blob:; "
        "connect-src 'self'"
    ),
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers.update(SECURITY_HEADERS)
        if settings.ENVIRONMENT == "production":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response


# API docs are only served outside production
_docs_enabled = settings.DEBUG or settings.ENVIRONMENT != "production"

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="""
## File Conversion Gateway API

Upload a file, convert it with an external tool chosen by its category, then download the result.

### Supported conversions
- **Images** (Pillow): JPG, PNG, WebP, GIF, BMP, TIFF, AVIF with optional fit-inside resize
- **Video** (ffmpeg): MP4, WebM, AVI, MOV, MKV, animated GIF
- **Audio** (ffmpeg): MP3, WAV, OGG, M4A, FLAC, AAC
- **Documents**: PDF/DOCX/TXT to TXT, TXT/DOCX to PDF

### File lifecycle
- Uploads are deleted once converted
- Converted files are deleted shortly after download
- Anything older than two hours is swept away in the background

Every failure is returned as `{"success": false, "error": "..."}`.
""",
    version="1.0.0",
    license_info={
        "name": "MIT",
    },
    docs_url="/docs" if _docs_enabled else None,
    redoc_url="/redoc" if _docs_enabled else None,
    openapi_url="/openapi.json" if _docs_enabled else None,
)

app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type"],
)

# slowapi looks the limiter up on app.state
app.state.limiter = conversion.limiter
register_exception_handlers(app)


@app.on_event("startup")
async def on_startup():
    storage = StorageAreas.from_settings(settings).ensure()
    app.state.storage = storage
    app.state.remover = DeferredRemover(storage, settings.DOWNLOAD_DELETE_DELAY_SECONDS)
    app.state.sweeper = RetentionSweeper(
        storage,
        interval_seconds=settings.CLEANUP_INTERVAL_SECONDS,
        max_age_seconds=settings.MAX_FILE_AGE_SECONDS,
    )
    app.state.sweeper.start()

    logger.info(f"Intake area: {storage.intake_dir}")
    logger.info(f"Output area: {storage.output_dir}")
    for category, formats in TARGET_FORMATS.items():
        logger.info(f"Supported {category.value} formats: {', '.join(formats.values()).upper()}")


@app.on_event("shutdown")
async def on_shutdown():
    await app.state.sweeper.stop()
    app.state.remover.cancel_all()


app.include_router(conversion.router, tags=["conversion"])
app.include_router(frontend.router, tags=["frontend"])
app.mount("/static", StaticFiles(directory=BASE_DIR / "static"), name="static")


def run() -> None:
    """Run the gateway with uvicorn.

    Listens on HOST:PORT (default 0.0.0.0:3000).
    """
    import uvicorn

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "3000"))
    uvicorn.run("convert_app.main:app", host=host, port=port, reload=settings.DEBUG)


if __name__ == "__main__":
    run()
