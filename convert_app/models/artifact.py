from dataclasses import dataclass
from pathlib import Path
from .category import Category

DOWNLOAD_ROUTE_PREFIX = "/api/download/"


@dataclass(frozen=True)
class UploadedFile:
    id: str
    original_name: str
    size: int
    mime_type: str
    category: Category


@dataclass(frozen=True)
class ConvertedArtifact:
    file_name: str
    path: Path

    @property
    def download_url(self) -> str:
        return f"{DOWNLOAD_ROUTE_PREFIX}{self.file_name}"
