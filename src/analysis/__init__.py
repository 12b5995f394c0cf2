"""Read-side analyses over the index."""

from .top_downloaded import AnalysisService

__all__ = ["AnalysisService"]
