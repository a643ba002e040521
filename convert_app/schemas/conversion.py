from typing import List, Optional
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from ..models.category import Category

BITRATE_PATTERN = r"^\d+(\.\d+)?[kKmM]?$"


class CamelModel(BaseModel):
    """Base schema using camelCase names on the wire."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class UploadResponse(CamelModel):
    """Metadata of a file stored in the intake area."""

    success: bool = Field(True, description="Always true for a successful upload")
    file_id: str = Field(..., description="Generated id of the stored upload", examples=["1718000000000-123456789.png"])
    file_name: str = Field(..., description="Original file name as sent by the client", examples=["holiday.png"])
    file_size: int = Field(..., description="Size of the stored file in bytes", examples=[204800])
    file_type: Category = Field(..., description="Detected file category", examples=["image"])
    mime_type: str = Field(..., description="MIME type reported by the client", examples=["image/png"])


class ConvertRequest(CamelModel):
    """Parameters of a single conversion."""

    file_id: Optional[str] = Field(None, description="Id returned by the upload endpoint")
    format: Optional[str] = Field(None, description="Target format, e.g. webp, mp4, mp3, txt", examples=["webp"])
    file_type: Optional[str] = Field(None, description="Category declared by the client", examples=["image"])
    quality: Optional[int] = Field(None, ge=1, le=100, description="Image quality (default 90)")
    width: Optional[int] = Field(None, gt=0, description="Bounding box width for image resize")
    height: Optional[int] = Field(None, gt=0, description="Bounding box height for image resize")
    video_bitrate: Optional[str] = Field(
        None, pattern=BITRATE_PATTERN, description="Video bitrate (default 1000k)", examples=["1000k"]
    )
    audio_bitrate: Optional[str] = Field(
        None, pattern=BITRATE_PATTERN, description="Audio bitrate (default 192k)", examples=["192k"]
    )


class ConvertResponse(CamelModel):
    """Reference to a converted artifact awaiting download."""

    success: bool = Field(True, description="Always true for a successful conversion")
    download_url: str = Field(..., description="Relative URL to fetch the artifact", examples=["/api/download/converted-1718000000000-1a2b3c4d.webp"])
    file_name: str = Field(..., description="Name of the converted artifact")


class ErrorResponse(BaseModel):
    """Uniform failure envelope."""

    success: bool = Field(False, description="Always false")
    error: str = Field(..., description="Human-readable error message")


class FormatsResponse(BaseModel):
    """Target formats accepted per category."""

    image: List[str]
    video: List[str]
    audio: List[str]
    document: List[str]
