"""Counters collected per worker and merged into one run-wide aggregate."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field, fields


@dataclass(slots=True)
class EntityStats:
    added: int = 0
    found: int = 0
    same: int = 0
    deleted: int = 0
    skipped: int = 0

    def merge(self, other: EntityStats) -> None:
        self.added += other.added
        self.found += other.found
        self.same += other.same
        self.deleted += other.deleted
        self.skipped += other.skipped

    def describe(self) -> str:
        return ", ".join(f"{item.name}={getattr(self, item.name)}" for item in fields(self))


@dataclass(slots=True)
class ImportStats:
    """Outcome counts for one unique identity or for a whole run."""

    uidentities: EntityStats = field(default_factory=EntityStats)
    profiles: EntityStats = field(default_factory=EntityStats)
    identities: EntityStats = field(default_factory=EntityStats)
    enrollments: EntityStats = field(default_factory=EntityStats)

    def merge(self, other: ImportStats) -> None:
        self.uidentities.merge(other.uidentities)
        self.profiles.merge(other.profiles)
        self.identities.merge(other.identities)
        self.enrollments.merge(other.enrollments)

    def copy(self) -> ImportStats:
        snapshot = ImportStats()
        snapshot.merge(self)
        return snapshot

    def report_lines(self) -> list[str]:
        return [f"{item.name}: {getattr(self, item.name).describe()}" for item in fields(self)]


class StatsAggregator:
    """Thread-safe accumulator for per-worker ``ImportStats``."""

    def __init__(self) -> None:
        self._stats = ImportStats()
        self._lock = threading.Lock()

    def merge(self, local: ImportStats) -> None:
        with self._lock:
            self._stats.merge(local)

    def snapshot(self) -> ImportStats:
        with self._lock:
            return self._stats.copy()
