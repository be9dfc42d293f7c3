"""Infraction-type catalog models."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, ClassVar

from pydantic import BeforeValidator, field_validator

from pymoose.models._base import MooseBaseModel, MooseEnum


class InfractionCategory(MooseEnum):
    STATIONARY = "stationary"
    MOVING = "moving"
    UNKNOWN = "unknown"


_LANGUAGES = ("en", "fr", "ar", "es")


class LocalizedText(MooseBaseModel):
    """Label translated into the languages the catalog ships."""

    en: str = ""
    fr: str = ""
    ar: str = ""
    es: str = ""

    @property
    def all_labels(self) -> tuple[str, ...]:
        return (self.en, self.fr, self.ar, self.es)

    def get(self, language: str) -> str:
        """Return the label for *language*, falling back to English."""
        code = language.lower()
        text = getattr(self, code) if code in _LANGUAGES else ""
        return text or self.en


def _coerce_localized(value: Any) -> Any:
    # Older catalog entries carry a plain English string.
    if isinstance(value, str):
        return {"en": value}
    return value


Localized = Annotated[LocalizedText, BeforeValidator(_coerce_localized)]


class Municipality(MooseBaseModel):
    _KEY_ALIASES: ClassVar[dict[str, str]] = {"state_province": "province", "stateProvince": "province"}

    id: str | None = None
    city: str = ""
    municipality: str = ""
    province: str = ""


class InfractionType(MooseBaseModel):
    """Catalog entry describing one kind of violation."""

    _KEY_ALIASES: ClassVar[dict[str, str]] = {"municipalityId": "municipality"}

    id: str
    code: str = ""
    type: Localized = LocalizedText()
    violation: Localized = LocalizedText()
    icon: str = ""
    category: InfractionCategory = InfractionCategory.UNKNOWN
    base_fine: float = 0.0
    points: int = 0
    is_active: bool = True
    municipality: Municipality | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("id", "code", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("municipality", mode="before")
    @classmethod
    def _wrap_bare_municipality_id(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"id": value}
        return value
