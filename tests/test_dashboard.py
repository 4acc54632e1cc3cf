from lunarlink.schemas.code import Counters, SpeedTier
from lunarlink.services.dashboard import DashboardService, low_stock_alerts, usage_rate


def test_low_stock_alert_levels():
    counts = {SpeedTier.MBPS_16: 1, SpeedTier.MBPS_20: 4, SpeedTier.MBPS_50: 9}

    alerts = low_stock_alerts(counts, critical=2, warning=5)

    assert [(a["speed"], a["level"]) for a in alerts] == [("16mbps", "critical"), ("20mbps", "warning")]
    assert alerts[0]["label"] == "16 Mbps"
    assert alerts[0]["count"] == 1


def test_low_stock_alert_boundaries():
    counts = {SpeedTier.MBPS_16: 2, SpeedTier.MBPS_20: 5, SpeedTier.MBPS_50: 6}

    alerts = low_stock_alerts(counts, critical=2, warning=5)

    assert [a["level"] for a in alerts] == ["critical", "warning"]


def test_usage_rate():
    assert usage_rate(Counters()) == 0.0
    assert usage_rate(Counters(accept_count=3, reject_count=1)) == 0.75


def test_summary(repository, seed):
    seed(["A", "B", "C"], tier=SpeedTier.MBPS_16, name="slow")
    seed([f"F{i}" for i in range(8)], tier=SpeedTier.MBPS_50, name="fast")
    repository.archive_code("A", SpeedTier.MBPS_16)
    repository.increment_counter("reject_count")

    summary = DashboardService(repository, critical=2, warning=5).summary()

    assert summary["total_available"] == 10
    assert summary["codes_used"] == 1
    assert summary["total_uploaded"] == 11
    assert summary["batches"] == 2
    assert summary["success_rate"] == 50
    assert summary["counts"] == {"16mbps": 2, "20mbps": 0, "50mbps": 8}
    assert [(a["speed"], a["level"]) for a in summary["alerts"]] == [("16mbps", "critical"), ("20mbps", "critical")]
    assert {b.name for b in summary["recent_batches"]} == {"slow", "fast"}


def test_availability(repository, seed):
    seed(["A"], tier=SpeedTier.MBPS_20)

    tiers = {t["speed"]: t for t in DashboardService(repository, critical=2, warning=5).availability()}

    assert tiers["20mbps"]["count"] == 1
    assert tiers["20mbps"]["available"] is True
    assert tiers["20mbps"]["low"] is True
    assert tiers["50mbps"]["available"] is False
