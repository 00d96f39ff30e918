"""Pydantic models describing one parsed line of an IDA export dump."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from addrlibgen.common import blank_to_none, parse_hex
from addrlibgen.domain.model import EntityCategory, Version

_U64_MAX = 0xFFFF_FFFF_FFFF_FFFF


def _check_version(value: object) -> object:
    if isinstance(value, str):
        Version.parse(value)
    return value


class ExportBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class BaseAddressRecordModel(ExportBaseModel):
    version: str
    base_address: int = Field(ge=0, le=_U64_MAX)

    _validate_version = field_validator("version", mode="before")(_check_version)
    _parse_base_address = field_validator("base_address", mode="before")(parse_hex)

    @property
    def parsed_version(self) -> Version:
        return Version.parse(self.version)


class EntityRecordModel(ExportBaseModel):
    category: EntityCategory
    address: int = Field(ge=0, le=_U64_MAX)
    size: int = Field(default=0, ge=0)
    name_hint: str | None = None

    _parse_address = field_validator("address", mode="before")(parse_hex)
    _parse_size = field_validator("size", mode="before")(parse_hex)
    _normalize_name_hint = field_validator("name_hint", mode="before")(blank_to_none)
