"""Per-unique-identity reconciliation.

A worker handles one ``UniqueIdentity`` in four strictly ordered phases:
existence row, profile, identities, enrollments. Each phase fetches what is
stored, optionally compares, and applies the decision table from
``policy.decide``. Replacing is always delete-then-insert of whole rows.
Counters are kept locally and merged into the shared aggregate once, at the
end of the run.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .differ import enrollments_differ, identities_differ, profiles_differ
from .errors import UnknownOrganizationIdError, UnresolvedOrganizationError
from .model import Enrollment, Identity, Profile
from .normalize import strip_optional, truncate_optional
from .policy import decide
from .stats import ImportStats

if TYPE_CHECKING:
    from .model import UniqueIdentity
    from .organizations import OrganizationRegistry
    from .ports import IdentityStore
    from .stats import EntityStats, StatsAggregator

log = logging.getLogger(__name__)

COUNTRY_CODE_BYTES = 2


@dataclass(frozen=True, slots=True)
class ReconcileOptions:
    debug: bool = False
    replace: bool = False
    compare: bool = False
    orgs_read_only: bool = False
    project_slug: str | None = None


def storage_profile(uuid: str, profile: Profile) -> Profile:
    """Profile as it is written: normalized text, two-letter country code."""

    return Profile(
        uuid=uuid,
        name=strip_optional(profile.name),
        email=strip_optional(profile.email),
        gender=profile.gender,
        gender_acc=profile.gender_acc,
        is_bot=profile.is_bot,
        country_code=truncate_optional(profile.effective_country_code(), COUNTRY_CODE_BYTES),
    )


def storage_identity(identity: Identity) -> Identity:
    return dataclasses.replace(
        identity,
        name=strip_optional(identity.name),
        email=strip_optional(identity.email),
        username=strip_optional(identity.username),
    )


class ReconciliationWorker:
    """Callable applied to every unique identity of a batch."""

    def __init__(
        self,
        store: IdentityStore,
        registry: OrganizationRegistry,
        aggregator: StatsAggregator,
        options: ReconcileOptions,
    ) -> None:
        self.store = store
        self.registry = registry
        self.aggregator = aggregator
        self.options = options

    def __call__(self, uidentity: UniqueIdentity) -> ImportStats:
        stats = ImportStats()
        self.reconcile_uidentity(uidentity, stats.uidentities)
        self.reconcile_profile(uidentity, stats.profiles)
        for identity in uidentity.identities:
            self.reconcile_identity(identity, stats.identities)
        self.reconcile_enrollments(uidentity, stats.enrollments)
        self.aggregator.merge(stats)
        return stats

    def reconcile_uidentity(self, uidentity: UniqueIdentity, counters: EntityStats) -> None:
        if self.store.uidentity_exists(uidentity.uuid):
            counters.found += 1
            return
        self.store.insert_uidentity(uidentity.uuid)
        counters.added += 1

    def reconcile_profile(self, uidentity: UniqueIdentity, counters: EntityStats) -> None:
        existing = self.store.get_profile(uidentity.uuid)
        fetched = existing is not None
        same = False
        if existing is not None:
            counters.found += 1
            if self.options.compare:
                same = not profiles_differ(uidentity.profile, existing)
                self._record_comparison("Profiles", same, counters, uidentity.profile, existing)

        action = decide(
            fetched=fetched,
            compare=self.options.compare,
            same=same,
            replace=self.options.replace,
        )
        if action.deletes:
            self.store.delete_profile(uidentity.uuid)
            counters.deleted += 1
        if action.inserts:
            self.store.insert_profile(storage_profile(uidentity.uuid, uidentity.profile))
            counters.added += 1

    def reconcile_identity(self, identity: Identity, counters: EntityStats) -> None:
        probe = storage_identity(identity)
        existing = self.store.find_identity(probe)
        fetched = existing is not None
        same = False
        if existing is not None:
            counters.found += 1
            if self.options.compare:
                same = not identities_differ(identity, existing)
                self._record_comparison("Identities", same, counters, identity, existing)

        action = decide(
            fetched=fetched,
            compare=self.options.compare,
            same=same,
            replace=self.options.replace,
        )
        if action.deletes:
            self.store.delete_identities(probe)
            counters.deleted += 1
        if action.inserts:
            self.store.insert_identity(probe)
            counters.added += 1

    def reconcile_enrollments(self, uidentity: UniqueIdentity, counters: EntityStats) -> None:
        slug = self.options.project_slug
        incoming = [
            dataclasses.replace(enrollment, org_id=None, project_slug=slug)
            for enrollment in uidentity.enrollments
        ]
        existing: list[Enrollment] = []
        if self.options.compare:
            existing = self._stored_enrollments(uidentity.uuid)
            fetched = bool(existing)
        else:
            fetched = self.store.has_enrollments(uidentity.uuid, slug)

        resolved = False
        same = False
        if fetched:
            counters.found += 1
            if self.options.compare:
                self._resolve_organizations(uidentity, incoming)
                resolved = True
                same = not enrollments_differ(incoming, existing)
                self._record_comparison("Enrollments", same, counters, incoming, existing)

        action = decide(
            fetched=fetched,
            compare=self.options.compare,
            same=same,
            replace=self.options.replace,
        )
        if action.deletes:
            self.store.delete_enrollments(uidentity.uuid, slug)
            counters.deleted += 1
        if not action.inserts:
            return
        if not resolved:
            self._resolve_organizations(uidentity, incoming)
        for enrollment in incoming:
            if enrollment.org_id is None:
                counters.skipped += 1
                continue
            self.store.insert_enrollment(enrollment)
            counters.added += 1

    def _stored_enrollments(self, uuid: str) -> list[Enrollment]:
        stored = self.store.find_enrollments(uuid, self.options.project_slug)
        for enrollment in stored:
            if enrollment.org_id is None:
                continue
            name = self.registry.name_for(enrollment.org_id)
            if name is None:
                raise UnknownOrganizationIdError(enrollment.org_id)
            enrollment.organization = name
        return stored

    def _resolve_organizations(
        self, uidentity: UniqueIdentity, enrollments: list[Enrollment]
    ) -> None:
        """Attach org ids and stored organization names to incoming enrollments.

        An unknown name is fatal unless organizations are read-only, in which
        case the enrollment keeps ``org_id=None`` and is skipped on insert.
        """

        for enrollment in enrollments:
            org_id = self.registry.get_id(enrollment.organization)
            if org_id is None:
                if not self.options.orgs_read_only:
                    raise UnresolvedOrganizationError(enrollment.organization, uuid=uidentity.uuid)
                log.info(
                    "Enrollments: unknown organization '%s' for %s",
                    enrollment.organization,
                    uidentity.uuid,
                )
                continue
            enrollment.org_id = org_id
            enrollment.organization = self.registry.name_for(org_id) or enrollment.organization

    def _record_comparison(
        self,
        kind: str,
        same: bool,
        counters: EntityStats,
        incoming: object,
        existing: object,
    ) -> None:
        if same:
            counters.same += 1
        elif self.options.debug:
            log.debug("%s differ: %s != %s", kind, incoming, existing)
