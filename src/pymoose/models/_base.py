"""Base model and enum for ticket-service API payloads.

Every response model inherits from :class:`MooseBaseModel` which
provides:

* ``alias_generator=to_camel`` so camelCase API keys map
  automatically to snake_case fields.
* A ``model_validator(mode="before")`` that renames Mongo-style ``_id``
  to ``id`` and strips empty values (``None``, ``""``) so the field
  default is used.

Status enums inherit from :class:`MooseEnum` which adds an ``UNKNOWN``
member and a ``_missing_`` hook that matches case-insensitively and
otherwise returns ``UNKNOWN``.
"""

from __future__ import annotations

import enum
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, model_validator
from pydantic.alias_generators import to_camel

# Keys the server uses interchangeably for the same field.
COMMON_KEY_ALIASES: dict[str, str] = {
    "_id": "id",
}


def coerce_ref_id(value: Any) -> Any:
    """Collapse a populated sub-document (``{"_id": ..., ...}``) to its id string."""
    if isinstance(value, dict):
        return value.get("_id") or value.get("id")
    return value


EntityRef = Annotated[str | None, BeforeValidator(coerce_ref_id)]
"""Annotated id type that accepts either a raw id or a populated sub-document."""


class MooseEnum(enum.StrEnum):
    """Base for server status enums.

    Every subclass **must** define ``UNKNOWN = "unknown"``.
    Values the server sends that have no mapped member resolve to a
    case-insensitive match or to ``UNKNOWN`` instead of raising.
    """

    @classmethod
    def _missing_(cls, value: object) -> MooseEnum:
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        # pylint: disable=no-member
        unknown: MooseEnum = cls.UNKNOWN  # type: ignore[attr-defined]
        return unknown


class MooseBaseModel(BaseModel):
    """Base for ticket-service API models.

    Handles:
    * camelCase → snake_case via ``alias_generator=to_camel``
    * ``_id`` → ``id`` (plus any per-class ``_KEY_ALIASES``)
    * empty values dropped so field defaults apply
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    @staticmethod
    def _clean_dict(values: dict[str, Any], aliases: dict[str, str] | None = None) -> dict[str, Any]:
        """Apply key aliases and drop empty values from *values*."""
        working = dict(values)
        for old_key, new_key in {**COMMON_KEY_ALIASES, **(aliases or {})}.items():
            if old_key in working and new_key not in working:
                working[new_key] = working.pop(old_key)

        cleaned: dict[str, Any] = {}
        for key, value in working.items():
            if value is None:
                continue
            if isinstance(value, str) and not value.strip():
                continue
            cleaned[key] = value
        return cleaned

    @model_validator(mode="before")
    @classmethod
    def _clean_api_values(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        aliases: dict[str, str] = getattr(cls, "_KEY_ALIASES", {})
        return MooseBaseModel._clean_dict(values, aliases)
