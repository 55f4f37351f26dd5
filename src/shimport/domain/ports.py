"""Persistence port used by the reconciliation engine."""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .model import Country, Enrollment, Identity, Profile


class InsertOutcome(StrEnum):
    """Result of an insert that tolerates a uniqueness conflict."""

    INSERTED = "inserted"
    CONFLICT = "conflict"


@runtime_checkable
class OrganizationStore(Protocol):
    """Registry tables written during the single-writer phase."""

    def load_organizations(self) -> dict[str, int]: ...

    def insert_organization(self, name: str) -> InsertOutcome: ...

    def find_organization_id(self, name: str) -> int | None: ...

    def insert_country(self, country: Country) -> InsertOutcome: ...


@runtime_checkable
class IdentityStore(OrganizationStore, Protocol):
    """Every read and write a reconciliation worker performs.

    Implementations must be safe to call from several threads at once; each
    call is expected to be atomic on its own, nothing spans calls.
    """

    def uidentity_exists(self, uuid: str) -> bool: ...

    def insert_uidentity(self, uuid: str) -> None: ...

    def get_profile(self, uuid: str) -> Profile | None: ...

    def delete_profile(self, uuid: str) -> int: ...

    def insert_profile(self, profile: Profile) -> None: ...

    def find_identity(self, identity: Identity) -> Identity | None:
        """Return the row matching by id, or by (name, email, username, source).

        When several rows match, the one whose id equals ``identity.id`` wins,
        then the lowest id.
        """
        ...

    def delete_identities(self, identity: Identity) -> int: ...

    def insert_identity(self, identity: Identity) -> None: ...

    def has_enrollments(self, uuid: str, project_slug: str | None) -> bool: ...

    def find_enrollments(self, uuid: str, project_slug: str | None) -> list[Enrollment]:
        """Stored enrollments in the given project scope; ``organization`` is left empty."""
        ...

    def delete_enrollments(self, uuid: str, project_slug: str | None) -> int: ...

    def insert_enrollment(self, enrollment: Enrollment) -> None: ...
