import asyncio
import logging
import os
from pathlib import Path
from typing import BinaryIO, Optional
from fastapi import APIRouter, Depends, File, Request, UploadFile
from fastapi.responses import FileResponse
from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.background import BackgroundTask
from ..core.config import settings
from ..core.errors import ConversionError, GatewayError, NotFoundError, PayloadTooLargeError, ValidationError
from ..core.logging import log_conversion_error
from ..core.storage import StorageAreas, get_storage
from ..models.artifact import UploadedFile
from ..models.category import classify
from ..schemas.conversion import ConvertRequest, ConvertResponse, ErrorResponse, UploadResponse
from ..services.converter import ConversionDispatcher
from ..services.retention import DeferredRemover, get_remover

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024

# Rate limiter
limiter = Limiter(key_func=get_remote_address)

router = APIRouter()


def store_upload(source: BinaryIO, target: Path, max_bytes: int) -> int:
    '''Copies an upload to disk in chunks, stopping once it grows past max_bytes'''
    size = 0
    with open(target, "wb") as out:
        while True:
            chunk = source.read(CHUNK_SIZE)
            if not chunk:
                break
            size += len(chunk)
            if size > max_bytes:
                break
            out.write(chunk)
    return size


@router.post(
    "/api/upload",
    response_model=UploadResponse,
    summary="Upload a file",
    description="Upload a single file for conversion. The file is stored in the intake area under a generated id and classified as image, video, audio or document.",
    responses={
        200: {"description": "File stored, returns its id and detected category"},
        400: {"model": ErrorResponse, "description": "No file uploaded"},
        413: {"model": ErrorResponse, "description": "File exceeds the upload limit"},
        429: {"model": ErrorResponse, "description": "Too many requests"},
        500: {"model": ErrorResponse, "description": "File could not be written"},
    },
)
@limiter.limit(settings.RATE_LIMIT)
async def upload_file(
    request: Request,
    file: Optional[UploadFile] = File(None, description="The file to convert"),
    storage: StorageAreas = Depends(get_storage),
):
    """
    Upload a file for conversion.

    - **file**: multipart form field holding the file

    The returned **fileId** keeps the original extension and is what the
    convert endpoint expects.
    """
    if file is None or not file.filename:
        raise ValidationError("No file uploaded")

    file_id = storage.new_upload_id(file.filename)
    target = storage.intake_dir / file_id
    max_bytes = settings.max_upload_bytes

    await file.seek(0)
    try:
        size = await asyncio.to_thread(store_upload, file.file, target, max_bytes)
    except OSError as e:
        storage.remove_quietly(target)
        logger.error(f"Error writing upload {file_id}: {e}")
        raise GatewayError("Failed to store upload") from e

    if size > max_bytes:
        storage.remove_quietly(target)
        raise PayloadTooLargeError(f"File exceeds the {settings.MAX_UPLOAD_MB} MB upload limit")

    mime_type = file.content_type or "application/octet-stream"
    category = classify(mime_type, file.filename)
    uploaded = UploadedFile(
        id=file_id,
        original_name=os.path.basename(file.filename),
        size=size,
        mime_type=mime_type,
        category=category,
    )
    logger.info(f"Stored upload {uploaded.id} ({uploaded.size} bytes, {uploaded.category.value})")

    return UploadResponse(
        file_id=uploaded.id,
        file_name=uploaded.original_name,
        file_size=uploaded.size,
        file_type=uploaded.category,
        mime_type=uploaded.mime_type,
    )


@router.post(
    "/api/convert",
    response_model=ConvertResponse,
    summary="Convert an uploaded file",
    description="Convert a previously uploaded file to the requested format. The original upload is deleted after a successful conversion.",
    responses={
        200: {"description": "Conversion successful, returns a download URL"},
        400: {"model": ErrorResponse, "description": "Missing fileId or format, or invalid parameters"},
        404: {"model": ErrorResponse, "description": "Uploaded file not found"},
        429: {"model": ErrorResponse, "description": "Too many requests"},
        500: {"model": ErrorResponse, "description": "Conversion failed"},
    },
)
@limiter.limit(settings.RATE_LIMIT)
async def convert_file(
    request: Request,
    conversion: ConvertRequest,
    storage: StorageAreas = Depends(get_storage),
):
    """
    Convert an uploaded file.

    - **fileId**: id returned by the upload endpoint
    - **format**: target format
    - **fileType**: image, video, audio or document
    - **quality**, **width**, **height**: image options
    - **videoBitrate**, **audioBitrate**: transcoding options
    """
    try:
        artifact = await ConversionDispatcher.run_conversion(storage, conversion)
    except (ValidationError, NotFoundError):
        raise
    except ConversionError as e:
        log_conversion_error(conversion.file_id, conversion.file_type, conversion.format, e)
        raise ConversionError(f"Conversion failed: {e.message}") from e

    return ConvertResponse(download_url=artifact.download_url, file_name=artifact.file_name)


@router.get(
    "/api/download/{filename}",
    summary="Download a converted file",
    description="Stream a converted file as an attachment. The file is deleted shortly after a successful download.",
    responses={
        200: {"description": "Converted file", "content": {"application/octet-stream": {}}},
        400: {"model": ErrorResponse, "description": "Invalid file name"},
        404: {"model": ErrorResponse, "description": "File not found"},
    },
)
async def download_file(
    filename: str,
    storage: StorageAreas = Depends(get_storage),
    remover: DeferredRemover = Depends(get_remover),
):
    """
    Download a converted file.

    - **filename**: the fileName returned by the convert endpoint
    """
    path = storage.output_path(filename)
    try:
        # Stat now so a file swept after the lookup is a 404, not a broken stream
        stat_result = os.stat(path)
    except FileNotFoundError as e:
        raise NotFoundError("File not found") from e
    return FileResponse(
        path,
        filename=filename,
        stat_result=stat_result,
        background=BackgroundTask(remover.schedule, path),
    )
