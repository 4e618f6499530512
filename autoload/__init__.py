"""
autoload: load nested JSON records into auto-evolving analytical tables.
"""

from autoload.batch.pipeline import LoadPipeline
from autoload.core.models import LoaderConfig, LoadResult

__version__ = "0.1.0"

__all__ = [
    "LoadPipeline",
    "LoaderConfig",
    "LoadResult",
]
