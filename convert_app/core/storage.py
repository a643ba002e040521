import os
import secrets
import time
from pathlib import Path
from fastapi import Request
from .config import Settings
from .errors import NotFoundError, ValidationError
from .logging import log_cleanup_failure, log_security_event


def _timestamp_ms() -> int:
    return int(time.time() * 1000)


def safe_extension(filename: str) -> str:
    """Return the lower-risk extension of ``filename`` (``.`` plus alphanumerics) or ``""``."""
    suffix = Path(os.path.basename(filename or "")).suffix
    cleaned = "".join(c for c in suffix[1:] if c.isalnum())
    return f".{cleaned}" if cleaned else ""


def is_bare_name(name: str) -> bool:
    """True when ``name`` is a single path segment that cannot leave its directory."""
    if not name or name in {".", ".."} or "\x00" in name:
        return False
    return os.path.basename(name) == name and "/" not in name and "\\" not in name


class StorageAreas:
    """The intake (uploads) and output (converted) directories."""

    def __init__(self, intake_dir: Path, output_dir: Path):
        self.intake_dir = Path(intake_dir)
        self.output_dir = Path(output_dir)

    @classmethod
    def from_settings(cls, settings: Settings) -> "StorageAreas":
        return cls(settings.UPLOAD_DIR, settings.CONVERTED_DIR)

    @property
    def directories(self):
        return (self.intake_dir, self.output_dir)

    def ensure(self) -> "StorageAreas":
        for directory in self.directories:
            directory.mkdir(parents=True, exist_ok=True)
        return self

    def new_upload_id(self, original_name: str) -> str:
        return f"{_timestamp_ms()}-{secrets.randbelow(10**9)}{safe_extension(original_name)}"

    def new_output_name(self, fmt: str) -> str:
        return f"converted-{_timestamp_ms()}-{secrets.token_hex(4)}.{fmt}"

    def intake_path(self, file_id: str) -> Path:
        path = self.intake_dir / file_id if is_bare_name(file_id) else None
        if path is None or not path.is_file():
            raise NotFoundError("File not found")
        return path

    def output_path(self, filename: str) -> Path:
        if not is_bare_name(filename):
            log_security_event("PATH_TRAVERSAL", f"rejected download name {filename!r}")
            raise ValidationError("Invalid file name")
        path = self.output_dir / filename
        if not path.is_file():
            raise NotFoundError("File not found")
        return path

    def remove_quietly(self, path: Path) -> bool:
        '''Removes a file, logging instead of raising on failure'''
        try:
            os.remove(path)
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            log_cleanup_failure(path, e)
            return False


def get_storage(request: Request) -> StorageAreas:
    return request.app.state.storage
