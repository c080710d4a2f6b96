"""Mini README: Core package initializer for the tree survey toolkit.

The package turns field captures of planted trees into self-describing
photos and portable survey exports. Subpackages:

    * entries - survey records, the append-only collection and analytics.
    * metadata - EXIF embedding into JPEG photos and reading it back.
    * export - CSV, KMZ and photo archive exporters.
    * interface - FastAPI boundary used by the capture client.
"""

from .logging_utils import get_logger

__all__ = ["get_logger"]
