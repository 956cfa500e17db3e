"""WebP transcoding and mass conversion."""
from .pipeline import MigrationPipeline, conversion_candidates
from .transcoder import ImageTranscoder, transcode, transcoded_name

__all__ = [
    "MigrationPipeline",
    "conversion_candidates",
    "ImageTranscoder",
    "transcode",
    "transcoded_name",
]
