"""
Record loading: readers and the load pipeline.
"""

from .pipeline import LoadPipeline

__all__ = [
    "LoadPipeline",
]
