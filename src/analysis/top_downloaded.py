"""Top-downloaded projection over the indexed download counts."""

from __future__ import annotations

import logging
from typing import List

from constants import Constants
from domain import AddOnInfoSummaryAndStats
from index import AddOnIndex

logger = logging.getLogger(__name__)


class AnalysisService:
    def __init__(self, index: AddOnIndex):
        self.index = index

    def get_top_downloaded(self, limit: int = Constants.TOP_DOWNLOADED_SIZE) -> List[AddOnInfoSummaryAndStats]:
        """Return the ``limit`` add-ons with the most downloads in the last 30 days.

        Add-ons without a known count are left out; ties keep index order.
        """
        counted = [info for info in self.index.get_all() if info.download_count_in_last_30_days is not None]
        counted.sort(key=lambda info: info.download_count_in_last_30_days, reverse=True)
        logger.debug("Top downloaded computed from %s counted add-ons", len(counted))
        return [AddOnInfoSummaryAndStats.from_info(info) for info in counted[:limit]]
