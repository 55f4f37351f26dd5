from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

from shimport.domain.stats import EntityStats, ImportStats, StatsAggregator


def test_entity_stats_merge_and_describe() -> None:
    stats = EntityStats(added=1, found=2)
    stats.merge(EntityStats(added=3, same=1, skipped=4))

    assert stats == EntityStats(added=4, found=2, same=1, skipped=4)
    assert stats.describe() == "added=4, found=2, same=1, deleted=0, skipped=4"


def test_report_lines_cover_every_entity() -> None:
    lines = ImportStats().report_lines()

    assert [line.split(":")[0] for line in lines] == [
        "uidentities",
        "profiles",
        "identities",
        "enrollments",
    ]


def test_aggregator_is_exact_under_concurrency() -> None:
    aggregator = StatsAggregator()

    def work(_: int) -> None:
        local = ImportStats()
        local.profiles.added = 1
        local.enrollments.skipped = 2
        aggregator.merge(local)

    with ThreadPoolExecutor(max_workers=8) as executor:
        list(executor.map(work, range(500)))

    snapshot = aggregator.snapshot()
    assert snapshot.profiles.added == 500
    assert snapshot.enrollments.skipped == 1000


def test_snapshot_is_detached() -> None:
    aggregator = StatsAggregator()
    snapshot = aggregator.snapshot()
    snapshot.identities.added = 10

    assert aggregator.snapshot().identities.added == 0
