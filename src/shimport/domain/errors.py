"""Fatal reconciliation errors.

Expected conditions (an organization that already exists, an enrollment
skipped in read-only organization mode) are reported through return values
and counters. Everything raised from here aborts the run.
"""

from __future__ import annotations


class ReconciliationError(RuntimeError):
    """Base class for unrecoverable reconciliation failures."""


class UnresolvedOrganizationError(ReconciliationError):
    """Raised when an enrollment references an organization with no known id."""

    def __init__(self, organization: str, *, uuid: str | None = None) -> None:
        detail = f" (uuid {uuid})" if uuid else ""
        super().__init__(f"organization '{organization}' not found{detail}")
        self.organization = organization
        self.uuid = uuid


class OrganizationInsertError(ReconciliationError):
    """Raised when an organization can neither be inserted nor found afterwards."""

    def __init__(self, organization: str) -> None:
        super().__init__(f"failed to add '{organization}' organization")
        self.organization = organization


class UnknownOrganizationIdError(ReconciliationError):
    """Raised when a stored enrollment points at an id missing from the registry."""

    def __init__(self, org_id: int) -> None:
        super().__init__(f"organization id {org_id} not found")
        self.org_id = org_id


class MappingRuleError(ReconciliationError):
    """Raised when an organization mapping rule cannot be compiled."""
