import math
import re
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from app.core.enums import FormCategory, RankType
from app.core.models.form import (
    BELT_COLOR_MAX_LENGTH,
    NAME_MAX_LENGTH,
    RANK_NUMBER_MAX,
    REFERENCE_URL_MAX_LENGTH,
)
from app.core.normalization import infer_category, normalize_belt_color, normalize_category

_URL_RE = re.compile(r"^https?://", re.IGNORECASE)


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_whole_number(v: Any) -> int:
    """Exact integer from an int, an integral float or a numeric string such as "7" or "2.0"."""
    if isinstance(v, int):
        return v
    if isinstance(v, float):
        if not math.isfinite(v):
            raise ValueError("Rank number must be a valid number")
        if not v.is_integer():
            raise ValueError("Rank number must be a whole number")
        return int(v)
    text = str(v).strip()
    try:
        return int(text)
    except ValueError:
        pass
    # Decimal keeps every digit, unlike float
    try:
        number = Decimal(text)
    except (InvalidOperation, ValueError):
        raise ValueError("Rank number must be a valid number")
    if not number.is_finite():
        raise ValueError("Rank number must be a valid number")
    if number > RANK_NUMBER_MAX:
        raise ValueError(f"Rank must be at most {RANK_NUMBER_MAX}")
    if number != number.to_integral_value():
        raise ValueError("Rank number must be a whole number")
    return int(number)


def _check_length(value: str, limit: int, label: str) -> str:
    if len(value) > limit:
        raise ValueError(f"{label} must be at most {limit} characters")
    return value


class FormFields(BaseModel):
    """
    Validated and normalized form input.

    Validators run in "before" mode so raw request values (strings from an HTML form,
    "on" checkboxes) are accepted and each failure carries a readable message.
    """

    name: str
    rank_type: RankType
    rank_number: int
    belt_color: Optional[str] = None
    category: Optional[FormCategory] = None
    description: str = ""
    reference_url: Optional[str] = None
    learned: bool = False

    @field_validator("name", mode="before")
    @classmethod
    def _check_name(cls, v: Any) -> str:
        if _blank(v):
            raise ValueError("Name is required")
        name = str(v).strip()
        if len(name) < 2:
            raise ValueError("Name must be at least 2 characters")
        return _check_length(name, NAME_MAX_LENGTH, "Name")

    @field_validator("rank_type", mode="before")
    @classmethod
    def _check_rank_type(cls, v: Any) -> RankType:
        if isinstance(v, RankType):
            return v
        if _blank(v):
            raise ValueError("Rank type is required")
        try:
            return RankType(str(v).strip().capitalize())
        except ValueError:
            raise ValueError("Rank type must be Kyu or Dan")

    @field_validator("rank_number", mode="before")
    @classmethod
    def _check_rank_number(cls, v: Any) -> int:
        if _blank(v):
            raise ValueError("Rank number is required")
        if isinstance(v, bool):
            raise ValueError("Rank number must be a valid number")
        number = _parse_whole_number(v)
        if number < 1:
            raise ValueError("Rank must be at least 1")
        if number > RANK_NUMBER_MAX:
            raise ValueError(f"Rank must be at most {RANK_NUMBER_MAX}")
        return number

    @field_validator("belt_color", mode="before")
    @classmethod
    def _normalize_belt_color(cls, v: Any) -> Optional[str]:
        color = normalize_belt_color(v)
        return color if color is None else _check_length(color, BELT_COLOR_MAX_LENGTH, "Belt color")

    @field_validator("category", mode="before")
    @classmethod
    def _normalize_category(cls, v: Any) -> Optional[FormCategory]:
        # Blank is filled in from the name once the whole model is validated
        if _blank(v):
            return None
        return normalize_category(v)

    @field_validator("description", mode="before")
    @classmethod
    def _normalize_description(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("reference_url", mode="before")
    @classmethod
    def _check_reference_url(cls, v: Any) -> Optional[str]:
        if _blank(v):
            return None
        url = str(v).strip()
        if not _URL_RE.match(url):
            raise ValueError("Reference URL must start with http:// or https://")
        return _check_length(url, REFERENCE_URL_MAX_LENGTH, "Reference URL")

    @field_validator("learned", mode="before")
    @classmethod
    def _normalize_learned(cls, v: Any) -> Any:
        return False if _blank(v) else v

    @model_validator(mode="after")
    def _fill_category(self) -> "FormFields":
        if self.category is None:
            self.category = infer_category(self.name)
        return self


class FormResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    owner_id: UUID
    name: str
    rank_type: RankType
    rank_number: int
    belt_color: Optional[str] = None
    category: FormCategory
    description: str
    reference_url: Optional[str] = None
    learned: bool
    deleted_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class FormNeighbors(BaseModel):
    previous_id: Optional[UUID] = None
    next_id: Optional[UUID] = None


class FormDetailResponse(BaseModel):
    form: FormResponse
    previous_id: Optional[UUID] = None
    next_id: Optional[UUID] = None
