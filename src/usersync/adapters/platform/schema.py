"""Pydantic models describing inbound platform user payloads."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, ClassVar, cast

from pydantic import BaseModel, ConfigDict, Field, JsonValue, field_validator, model_validator

log = logging.getLogger(__name__)


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class PlatformBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True, coerce_numbers_to_str=True)
    _logged_extra_keys: ClassVar[set[str]] = set()

    def model_post_init(self, _context: object, /) -> None:
        extras = self.__pydantic_extra__
        if not extras:
            return
        new_keys = set(extras).difference(self._logged_extra_keys)
        if not new_keys:
            return
        self._logged_extra_keys.update(new_keys)
        log.warning(
            "Platform %s: unmodeled keys: %s",
            type(self).__name__,
            ", ".join(sorted(new_keys)),
        )


class PlatformUserPayload(PlatformBaseModel):
    """One entry of a platform sync batch.

    ``externalId`` and ``email`` are left optional here; a record missing them is
    still carried into the batch so its failure can be reported.
    """

    external_id: str | None = Field(default=None, alias="externalId")
    email: str | None = None
    name: str | None = None
    username: str | None = None
    platform_metadata: JsonValue = Field(default=None, alias="metadata")

    _normalize_external_id = field_validator("external_id", mode="before")(_blank_to_none)
    _normalize_name = field_validator("name", "username", mode="before")(_blank_to_none)


class PlatformUserBatch(PlatformBaseModel):
    """Batch envelope. Entries stay raw so each one is validated on its own."""

    users: list[Any] = Field(default_factory=list[Any])

    @model_validator(mode="before")
    @classmethod
    def _accept_bare_list(cls, value: object) -> object:
        if isinstance(value, list):
            return {"users": value}
        if isinstance(value, Mapping):
            return cast(Mapping[str, object], value)
        return value
