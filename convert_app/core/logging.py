import logging
import sys
from pathlib import Path
from .config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Root logger, configured once on first import
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format=LOG_FORMAT,
    handlers=[logging.StreamHandler(sys.stdout)],
)

# Component loggers
conversion_logger = logging.getLogger("conversion")
storage_logger = logging.getLogger("storage")
security_logger = logging.getLogger("security")

_SEVERITY_LEVELS = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warning": logging.WARNING,
}


def log_security_event(event_type: str, details: str, severity: str = "warning"):
    """Log a suspicious request, e.g. a download name trying to leave its directory."""
    security_logger.log(_SEVERITY_LEVELS.get(severity, logging.INFO), f"SECURITY:{event_type} | {details}")


def log_conversion_error(file_id: str, category: str, target_format: str, error: Exception):
    """Log the full failure; clients only see the short message."""
    conversion_logger.error(
        f"CONVERSION:FAILED | file_id={file_id} | category={category} | format={target_format} | error={error}",
        exc_info=error,
    )


def log_cleanup_failure(path: Path, error: Exception):
    storage_logger.warning(f"CLEANUP:FAILED | path={path} | error={error}")
