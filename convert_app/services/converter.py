import logging
from pathlib import Path

from ..converters import AudioConverter, DocumentConverter, ImageConverter, VideoConverter
from ..core.errors import ConversionError, NotFoundError, UnsupportedTypeError, ValidationError
from ..core.storage import StorageAreas
from ..models.artifact import ConvertedArtifact
from ..models.category import Category
from ..schemas.conversion import ConvertRequest

logger = logging.getLogger(__name__)


class ConversionDispatcher:
    def __init__(self, storage: StorageAreas):
        self.storage = storage
        self.image = ImageConverter(storage)
        self.video = VideoConverter(storage)
        self.audio = AudioConverter(storage)
        self.document = DocumentConverter(storage)

    async def dispatch(self, category: Category, source: Path, request: ConvertRequest) -> ConvertedArtifact:
        '''Routes a conversion to the converter for the declared category'''
        if category == Category.IMAGE:
            return await self.image.convert(source, request.format, request.quality, request.width, request.height)
        if category == Category.VIDEO:
            return await self.video.convert(source, request.format, request.video_bitrate)
        if category == Category.AUDIO:
            return await self.audio.convert(source, request.format, request.audio_bitrate)
        if category == Category.DOCUMENT:
            return await self.document.convert(source, request.format, request.file_id)
        raise UnsupportedTypeError(f"unsupported file type: {request.file_type or 'none'}")

    async def convert(self, request: ConvertRequest) -> ConvertedArtifact:
        '''Converts an uploaded file and removes the original on success'''
        if not request.file_id or not request.format:
            raise ValidationError("Incomplete conversion details: fileId and format are required")

        source = self.storage.intake_path(request.file_id)

        # The client-declared category decides; the upload-time classification is not consulted.
        category = Category.parse(request.file_type)

        try:
            artifact = await self.dispatch(category, source, request)
        except Exception as e:
            # Swept or deleted while converting
            if isinstance(e, FileNotFoundError) or not source.exists():
                logger.warning(f"Upload {request.file_id} vanished during conversion: {e}")
                raise NotFoundError("File not found") from e
            if isinstance(e, ConversionError):
                raise
            logger.error(f"{category} converter raised unexpectedly: {e}")
            raise ConversionError(str(e)) from e

        self.storage.remove_quietly(source)
        return artifact

    @classmethod
    async def run_conversion(cls, storage: StorageAreas, request: ConvertRequest) -> ConvertedArtifact:
        '''Used to execute the class'''
        return await cls(storage).convert(request)
