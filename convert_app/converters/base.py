import logging
from ..core.storage import StorageAreas
from ..models.artifact import ConvertedArtifact

logger = logging.getLogger(__name__)


class Converter:
    """
    Base class for the category converters.

    A converter wraps one external capability. It names its own output file in
    the output area and returns the finished artifact; the source file is left
    for the caller to remove.
    """

    def __init__(self, storage: StorageAreas):
        self.storage = storage

    def new_artifact(self, fmt: str) -> ConvertedArtifact:
        '''Reserves a fresh output name in the output area'''
        file_name = self.storage.new_output_name(fmt)
        return ConvertedArtifact(file_name=file_name, path=self.storage.output_dir / file_name)
