"""Domain model for unique identities and their satellites.

The shapes follow the identity export: one ``UniqueIdentity`` per UUID owning a
profile, a list of source-system identities and a list of organization
enrollments. Organizations and countries are plain registries referenced by
name/id and code respectively.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

MIN_PERIOD_DATE: Final[datetime] = datetime(1900, 1, 1)
MAX_PERIOD_DATE: Final[datetime] = datetime(2100, 1, 1)


@dataclass(frozen=True, slots=True)
class Country:
    code: str
    alpha3: str
    name: str


@dataclass(slots=True, kw_only=True)
class Profile:
    """Descriptive attributes of a unique identity (one per UUID)."""

    uuid: str
    name: str | None = None
    email: str | None = None
    gender: str | None = None
    gender_acc: int | None = None
    is_bot: bool | None = None
    country_code: str | None = None
    country: Country | None = None

    def effective_country_code(self) -> str | None:
        if self.country is not None:
            return self.country.code
        return self.country_code


@dataclass(slots=True, kw_only=True)
class Identity:
    """An alias of a unique identity in one source system."""

    id: str
    source: str
    uuid: str
    name: str | None = None
    email: str | None = None
    username: str | None = None


@dataclass(slots=True, kw_only=True)
class Enrollment:
    """Affiliation of a unique identity with an organization over ``[start, end)``."""

    uuid: str
    organization: str
    start: datetime | None = None
    end: datetime | None = None
    org_id: int | None = None
    project_slug: str | None = None

    def period_start(self) -> datetime:
        return self.start if self.start is not None else MIN_PERIOD_DATE

    def period_end(self) -> datetime:
        return self.end if self.end is not None else MAX_PERIOD_DATE


@dataclass(slots=True, kw_only=True)
class UniqueIdentity:
    uuid: str
    profile: Profile
    identities: list[Identity] = field(default_factory=list["Identity"])
    enrollments: list[Enrollment] = field(default_factory=list["Enrollment"])


@dataclass(slots=True)
class IdentityBatch:
    """All unique identities loaded from one or more export files."""

    uidentities: list[UniqueIdentity] = field(default_factory=list["UniqueIdentity"])
    files: list[Path] = field(default_factory=list["Path"])

    def __iter__(self) -> Iterator[UniqueIdentity]:
        return iter(self.uidentities)

    def __len__(self) -> int:
        return len(self.uidentities)

    def extend(self, uidentities: list[UniqueIdentity], *, source: Path | None = None) -> None:
        self.uidentities.extend(uidentities)
        if source is not None:
            self.files.append(source)

    def organization_names(self) -> set[str]:
        """Every organization name referenced by any enrollment in the batch."""

        return {
            enrollment.organization
            for uidentity in self.uidentities
            for enrollment in uidentity.enrollments
        }

    def countries(self) -> dict[str, Country]:
        """Distinct profile countries keyed by code; the first occurrence wins."""

        countries: dict[str, Country] = {}
        for uidentity in self.uidentities:
            country = uidentity.profile.country
            if country is not None and country.code not in countries:
                countries[country.code] = country
        return countries
