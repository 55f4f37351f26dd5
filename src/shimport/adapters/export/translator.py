"""Translate validated export payloads into domain objects."""

from __future__ import annotations

from typing import TYPE_CHECKING

from shimport.domain.model import Country, Enrollment, Identity, Profile, UniqueIdentity

if TYPE_CHECKING:
    from .schema import (
        EnrollmentPayload,
        ExportDocument,
        IdentityPayload,
        ProfilePayload,
        UniqueIdentityPayload,
    )


def translate_document(document: ExportDocument) -> list[UniqueIdentity]:
    return [
        translate_uidentity(key, payload) for key, payload in document.uidentities.items()
    ]


def translate_uidentity(key: str, payload: UniqueIdentityPayload) -> UniqueIdentity:
    """Build a ``UniqueIdentity``; nested records default to the owner's UUID."""

    uuid = payload.uuid or key
    return UniqueIdentity(
        uuid=uuid,
        profile=_profile(uuid, payload.profile),
        identities=[_identity(uuid, item) for item in payload.identities],
        enrollments=[_enrollment(uuid, item) for item in payload.enrollments],
    )


def _profile(uuid: str, payload: ProfilePayload) -> Profile:
    country = None
    if payload.country is not None:
        country = Country(
            code=payload.country.code,
            alpha3=payload.country.alpha3,
            name=payload.country.name,
        )
    return Profile(
        uuid=payload.uuid or uuid,
        name=payload.name,
        email=payload.email,
        gender=payload.gender,
        gender_acc=payload.gender_acc,
        is_bot=payload.is_bot,
        country=country,
    )


def _identity(uuid: str, payload: IdentityPayload) -> Identity:
    return Identity(
        id=payload.id,
        source=payload.source,
        uuid=payload.uuid or uuid,
        name=payload.name,
        email=payload.email,
        username=payload.username,
    )


def _enrollment(uuid: str, payload: EnrollmentPayload) -> Enrollment:
    return Enrollment(
        uuid=payload.uuid or uuid,
        organization=payload.organization,
        start=payload.start,
        end=payload.end,
    )
