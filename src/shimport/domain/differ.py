"""Structural equality between incoming and persisted entities.

All functions here are pure. Free-text fields are compared after
``strip_unicode`` so that rows written by earlier runs (which store the
normalized form) compare equal to the raw export values.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .normalize import strip_unicode, truncate_bytes

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from .model import Enrollment, Identity, Profile

type EnrollmentKey = tuple[str, str, int | None, str, str, str | None]

_DATE_FORMAT = "%Y-%m-%d"


def _optional_differ[T](
    left: T | None,
    right: T | None,
    normalize: Callable[[T], object] | None = None,
) -> bool:
    if left is None or right is None:
        return (left is None) != (right is None)
    if normalize is None:
        return left != right
    return normalize(left) != normalize(right)


def _country_code(value: str) -> str:
    return truncate_bytes(value, 2)


def profiles_differ(incoming: Profile, existing: Profile) -> bool:
    return (
        _optional_differ(incoming.name, existing.name, strip_unicode)
        or _optional_differ(incoming.email, existing.email, strip_unicode)
        or _optional_differ(incoming.gender, existing.gender, strip_unicode)
        or _optional_differ(incoming.gender_acc, existing.gender_acc)
        or _optional_differ(incoming.is_bot, existing.is_bot)
        or _optional_differ(
            incoming.effective_country_code(),
            existing.effective_country_code(),
            _country_code,
        )
    )


def identities_differ(incoming: Identity, existing: Identity) -> bool:
    if (incoming.uuid, incoming.id, incoming.source) != (
        existing.uuid,
        existing.id,
        existing.source,
    ):
        return True
    return (
        _optional_differ(incoming.name, existing.name, strip_unicode)
        or _optional_differ(incoming.email, existing.email, strip_unicode)
        or _optional_differ(incoming.username, existing.username, strip_unicode)
    )


def enrollment_key(enrollment: Enrollment) -> EnrollmentKey:
    """Canonical comparison key; dates are compared at day granularity."""

    return (
        enrollment.uuid,
        enrollment.organization,
        enrollment.org_id,
        enrollment.period_start().strftime(_DATE_FORMAT),
        enrollment.period_end().strftime(_DATE_FORMAT),
        enrollment.project_slug,
    )


def enrollments_differ(incoming: Iterable[Enrollment], existing: Iterable[Enrollment]) -> bool:
    """Set comparison: order and duplicates are irrelevant."""

    incoming_keys = {enrollment_key(enrollment) for enrollment in incoming}
    existing_keys = {enrollment_key(enrollment) for enrollment in existing}
    return bool(incoming_keys ^ existing_keys)
