"""Application orchestration entry points."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from shimport.adapters.export import load_export_files
from shimport.adapters.mapping_rules import load_mapping_rules
from shimport.adapters.missing_organizations import write_missing_organizations
from shimport.adapters.sqlalchemy.engine import build_store, shutdown, startup
from shimport.config import RunConfig, get_database_config
from shimport.domain.organizations import (
    OrganizationRegistry,
    OrganizationResolver,
    ResolutionSummary,
)
from shimport.domain.ports import InsertOutcome
from shimport.domain.reconcile import ReconcileOptions, ReconciliationWorker
from shimport.domain.scheduler import run_bounded
from shimport.domain.stats import ImportStats, StatsAggregator

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence
    from pathlib import Path

    from shimport.domain.model import IdentityBatch
    from shimport.domain.organizations import MappingRule
    from shimport.domain.ports import IdentityStore, OrganizationStore

log = logging.getLogger(__name__)


@dataclass(slots=True)
class ImportResult:
    """Outcome of one import run."""

    files: int
    uidentities: int
    organizations: ResolutionSummary | None = None
    countries_added: int = 0
    stats: ImportStats = field(default_factory=ImportStats)
    dry_run: bool = False


def import_identity_files(
    paths: Iterable[Path],
    *,
    run_config: RunConfig,
    store: IdentityStore | None = None,
    database_uri: str | None = None,
) -> ImportResult:
    """Load export files and reconcile them against the identity store.

    When no ``store`` is passed the SQLAlchemy adapter is started from
    ``database_uri`` (or the ``SH_*`` environment) and shut down afterwards.
    """

    started = time.monotonic()
    batch = load_export_files(paths)
    log.info("%d orgs present in import files", len(batch.organization_names()))

    owns_engine = store is None
    if store is None:
        uri = database_uri or get_database_config().uri
        startup(
            database_uri=uri,
            pool_size=run_config.threads,
            force=True,
            create_schema=not run_config.dry_run,
        )
        store = build_store()
    try:
        result = reconcile_batch(batch, store=store, run_config=run_config)
    finally:
        if owns_engine:
            shutdown()

    log.info("Time: %.3fs", time.monotonic() - started)
    return result


def reconcile_batch(
    batch: IdentityBatch,
    *,
    store: IdentityStore,
    run_config: RunConfig,
) -> ImportResult:
    """Run the registry phase, then fan out one worker per unique identity."""

    result = ImportResult(files=len(batch.files), uidentities=len(batch))
    registry = OrganizationRegistry(store.load_organizations())
    if run_config.dry_run:
        log.info("Returning due to dry-run mode")
        result.dry_run = True
        return result

    result.organizations = resolve_organizations(batch, store, registry, run_config)
    result.countries_added = add_countries(batch, store)

    aggregator = StatsAggregator()
    worker = ReconciliationWorker(
        store,
        registry,
        aggregator,
        ReconcileOptions(
            debug=run_config.debug,
            replace=run_config.replace,
            compare=run_config.compare,
            orgs_read_only=run_config.orgs_read_only,
            project_slug=run_config.project_slug,
        ),
    )
    log.info(
        "Reconciling %d unique identities: threads=%d, replace=%s, compare=%s, "
        "orgs_read_only=%s, project_slug=%s",
        len(batch),
        run_config.threads,
        run_config.replace,
        run_config.compare,
        run_config.orgs_read_only,
        run_config.project_slug,
    )
    run_bounded(batch, worker, threads=run_config.threads, name="uidentity")

    result.stats = aggregator.snapshot()
    log.info("Stats:")
    for line in result.stats.report_lines():
        log.info("  %s", line)
    return result


def resolve_organizations(
    batch: IdentityBatch,
    store: OrganizationStore,
    registry: OrganizationRegistry,
    run_config: RunConfig,
) -> ResolutionSummary:
    resolver = OrganizationResolver(
        store,
        registry,
        read_only=run_config.orgs_read_only,
        rules_loader=_rules_loader(run_config.orgs_map_file),
        debug=run_config.debug,
    )
    summary = resolver.resolve_all(batch.organization_names(), threads=run_config.threads)
    if summary.missing:
        if run_config.missing_orgs_csv is not None:
            write_missing_organizations(summary.missing, run_config.missing_orgs_csv)
        else:
            log.warning(
                "%d organizations could not be resolved and MISSING_ORGS_CSV is not set",
                len(summary.missing),
            )
    log.info(
        "Number of organizations: %d, added new: %d, missing: %d",
        summary.known,
        summary.added,
        len(summary.missing),
    )
    return summary


def add_countries(batch: IdentityBatch, store: OrganizationStore) -> int:
    countries = batch.countries()
    added = 0
    for country in countries.values():
        if store.insert_country(country) is InsertOutcome.INSERTED:
            added += 1
    log.info("Number of countries: %d, added new: %d", len(countries), added)
    return added


def _rules_loader(path: Path | None) -> Callable[[], Sequence[MappingRule]]:
    def load() -> Sequence[MappingRule]:
        if path is None:
            return ()
        return load_mapping_rules(path)

    return load
