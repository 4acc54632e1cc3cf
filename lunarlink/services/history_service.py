import io
import logging
from datetime import date
from typing import Dict, List, Optional

import pandas as pd

from lunarlink.schemas.code import HistoryEntry, SpeedTier
from lunarlink.services.code_repository import CodeRepository

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = ["Code", "Batch Name", "Speed", "Used On"]


class HistoryService:
    """Search, filter and export of the usage history (admin only)."""

    def __init__(self, repository: CodeRepository):
        self.repository = repository

    def list_history(self, search: Optional[str] = None, speed: Optional[SpeedTier] = None) -> List[HistoryEntry]:
        """
        History entries, newest first.

        Args:
            search (str, optional): Case-insensitive substring matched against code, batch name and speed
            speed (SpeedTier, optional): Only entries of this tier
        """
        entries = self.repository.list_history()
        term = (search or "").strip().lower()
        if term:
            entries = [
                entry for entry in entries
                if term in entry.code_value.lower()
                or term in entry.batch_name.lower()
                or term in entry.speed_tier.value.lower()
            ]
        if speed is not None:
            entries = [entry for entry in entries if entry.speed_tier == speed]
        return entries

    def tier_counts(self, entries: Optional[List[HistoryEntry]] = None) -> Dict[str, int]:
        if entries is None:
            entries = self.repository.list_history()
        counts = {tier.value: 0 for tier in SpeedTier}
        for entry in entries:
            counts[entry.speed_tier.value] += 1
        counts["total"] = len(entries)
        return counts

    def export_csv(self, entries: Optional[List[HistoryEntry]] = None) -> str:
        if entries is None:
            entries = self.repository.list_history()
        df = pd.DataFrame(
            [
                [entry.code_value, entry.batch_name, entry.speed_tier.value,
                 entry.used_at.isoformat(sep=" ", timespec="seconds") if entry.used_at else ""]
                for entry in entries
            ],
            columns=EXPORT_COLUMNS,
        )
        buffer = io.StringIO()
        df.to_csv(buffer, index=False)
        logger.info(f"Exported {len(entries)} history entries")
        return buffer.getvalue()

    @staticmethod
    def export_filename(today: Optional[date] = None) -> str:
        today = today or date.today()
        return f"wifi-codes-history-{today.isoformat()}.csv"
