from __future__ import annotations

from datetime import datetime

from shimport.domain.model import (
    Country,
    Enrollment,
    Identity,
    IdentityBatch,
    Profile,
    UniqueIdentity,
)


def make_enrollment(
    organization: str,
    start: str | None = "2020-01-01",
    end: str | None = "2021-01-01",
    *,
    uuid: str = "u1",
) -> Enrollment:
    return Enrollment(
        uuid=uuid,
        organization=organization,
        start=datetime.fromisoformat(start) if start else None,
        end=datetime.fromisoformat(end) if end else None,
    )


def make_identity(
    identity_id: str,
    *,
    uuid: str = "u1",
    source: str = "github",
    name: str | None = "Jane Doe",
    email: str | None = "jane@example.com",
    username: str | None = "jdoe",
) -> Identity:
    return Identity(
        id=identity_id,
        source=source,
        uuid=uuid,
        name=name,
        email=email,
        username=username,
    )


def make_uidentity(
    uuid: str = "u1",
    *,
    name: str | None = "Jane Doe",
    email: str | None = "jane@example.com",
    country: Country | None = None,
    identities: list[Identity] | None = None,
    enrollments: list[Enrollment] | None = None,
) -> UniqueIdentity:
    return UniqueIdentity(
        uuid=uuid,
        profile=Profile(
            uuid=uuid,
            name=name,
            email=email,
            gender="female",
            gender_acc=100,
            is_bot=False,
            country=country,
        ),
        identities=(
            identities if identities is not None else [make_identity(f"{uuid}-gh", uuid=uuid)]
        ),
        enrollments=enrollments if enrollments is not None else [],
    )


def make_batch(*uidentities: UniqueIdentity) -> IdentityBatch:
    batch = IdentityBatch()
    batch.extend(list(uidentities))
    return batch
