"""Pydantic models describing the identity export document."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Final, cast

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

EXPORT_DATETIME_FORMAT: Final[str] = "%Y-%m-%dT%H:%M:%S"


class ExportBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class CountryPayload(ExportBaseModel):
    code: str
    alpha3: str = ""
    name: str = ""


class ProfilePayload(ExportBaseModel):
    uuid: str | None = None
    name: str | None = None
    email: str | None = None
    gender: str | None = None
    gender_acc: int | None = None
    is_bot: bool | None = None
    country: CountryPayload | None = None


class IdentityPayload(ExportBaseModel):
    id: str
    source: str
    uuid: str | None = None
    name: str | None = None
    email: str | None = None
    username: str | None = None


class EnrollmentPayload(ExportBaseModel):
    organization: str
    uuid: str | None = None
    start: datetime | None = None
    end: datetime | None = None

    @field_validator("start", "end", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: object) -> object:
        if value is None or isinstance(value, datetime):
            return value
        if isinstance(value, str):
            return datetime.strptime(value, EXPORT_DATETIME_FORMAT)
        raise ValueError(f"expected a timestamp string, got {type(value).__name__}")


class UniqueIdentityPayload(ExportBaseModel):
    uuid: str | None = None
    profile: ProfilePayload = Field(default_factory=ProfilePayload)
    identities: list[IdentityPayload] = Field(default_factory=list["IdentityPayload"])
    enrollments: list[EnrollmentPayload] = Field(default_factory=list["EnrollmentPayload"])

    @field_validator("identities", "enrollments", mode="before")
    @classmethod
    def _null_to_empty(cls, value: object) -> object:
        return [] if value is None else value

    @field_validator("profile", mode="before")
    @classmethod
    def _null_to_blank_profile(cls, value: object) -> object:
        return {} if value is None else value


class ExportDocument(ExportBaseModel):
    """Top-level export: ``{"uidentities": {uuid: record}}`` or the bare mapping."""

    uidentities: dict[str, UniqueIdentityPayload]

    @model_validator(mode="before")
    @classmethod
    def _accept_bare_mapping(cls, value: object) -> object:
        if isinstance(value, Mapping) and "uidentities" not in value:
            return {"uidentities": cast(Mapping[str, object], value)}
        return value
