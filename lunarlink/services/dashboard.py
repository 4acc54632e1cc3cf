"""
Dashboard Service

Derives the admin dashboard and the user page availability figures from
repository reads. Nothing here is stored; every call recomputes.
"""

import logging
from typing import Dict, List, Optional

from lunarlink.core.config import settings
from lunarlink.schemas.code import Counters, SpeedTier
from lunarlink.services.code_repository import CodeRepository

logger = logging.getLogger(__name__)

RECENT_BATCH_LIMIT = 5


def usage_rate(counters: Counters) -> float:
    """accept / (accept + reject), 0 when nobody has clicked yet."""
    total = counters.accept_count + counters.reject_count
    if total == 0:
        return 0.0
    return counters.accept_count / total


def low_stock_alerts(counts: Dict[SpeedTier, int], critical: int = 2, warning: int = 5) -> List[Dict]:
    """
    Leveled alerts for tiers running out of codes.

    A tier is ``critical`` when its count is at or below ``critical``,
    otherwise ``warning`` when at or below ``warning``. Tiers above both lines
    produce no alert.
    """
    alerts = []
    for tier in SpeedTier:
        if tier not in counts:
            continue
        count = counts[tier]
        if count <= critical:
            level = "critical"
        elif count <= warning:
            level = "warning"
        else:
            continue
        alerts.append({"speed": tier.value, "label": tier.label, "count": count, "level": level})
    return alerts


class DashboardService:
    def __init__(self, repository: CodeRepository, critical: Optional[int] = None, warning: Optional[int] = None):
        self.repository = repository
        self.critical = settings.critical_threshold if critical is None else critical
        self.warning = settings.low_code_threshold if warning is None else warning

    def unused_count_by_tier(self) -> Dict[SpeedTier, int]:
        return {tier: self.repository.count_unused(tier) for tier in SpeedTier}

    def low_stock_alerts(self, counts: Optional[Dict[SpeedTier, int]] = None) -> List[Dict]:
        if counts is None:
            counts = self.unused_count_by_tier()
        return low_stock_alerts(counts, critical=self.critical, warning=self.warning)

    def availability(self) -> List[Dict]:
        """Per-tier figures shown next to the "get code" buttons."""
        counts = self.unused_count_by_tier()
        return [
            {
                "speed": tier.value,
                "label": tier.label,
                "count": count,
                "low": count <= self.warning,
                "available": count > 0,
            }
            for tier, count in counts.items()
        ]

    def summary(self) -> Dict:
        """
        Everything the admin dashboard shows.

        Returns:
            dict: Dashboard data:
                - total_available: unused codes over all tiers
                - codes_used, total_uploaded: from the counters
                - batches: number of batch records
                - success_rate: accept share as a rounded percentage
                - counts: unused codes per tier
                - alerts: low stock alerts
                - recent_batches: last uploads, newest first
        """
        counters = self.repository.get_counters()
        counts = self.unused_count_by_tier()
        batches = self.repository.list_batches()

        summary = {
            "total_available": sum(counts.values()),
            "codes_used": counters.codes_used,
            "total_uploaded": counters.total_uploaded,
            "batches": len(batches),
            "usage_rate": usage_rate(counters),
            "success_rate": round(usage_rate(counters) * 100),
            "counts": {tier.value: count for tier, count in counts.items()},
            "alerts": self.low_stock_alerts(counts),
            "recent_batches": batches[:RECENT_BATCH_LIMIT],
            "counters": counters,
        }
        logger.info(f"Dashboard computed: {summary['total_available']} available, {len(summary['alerts'])} alerts")
        return summary
