"""Declarative deal schema and the validator built on it.

``DealData`` is the single description of what a deal looks like. The
ingestion pipeline validates raw payloads against it through
:func:`validate_deal`, and :func:`deal_json_schema` exports the same rules as
JSON Schema for clients that want to check payloads before sending them.
"""
from __future__ import annotations

from typing import Any, Literal, Mapping, Optional

from dateutil import parser
from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

from .models import Deal, Invalid, Valid, ValidationFailure, ValidationResult

# Ambiguous slash dates such as 03/04/2024 read month first.
DATE_DAYFIRST = False

DATE_FIELDS = ("created_date", "updated_date", "expected_close_date")


class DealData(BaseModel):
    """Wire shape of a deal accepted by the API."""

    model_config = ConfigDict(strict=True, allow_inf_nan=False, extra="ignore")

    deal_id: str
    company_name: str
    contact_name: str
    transportation_mode: Literal["trucking", "rail", "ocean", "air"]
    stage: Literal["prospect", "qualified", "proposal", "negotiation", "closed_won", "closed_lost"]
    value: float = Field(gt=0, description="Deal value in USD")
    probability: float = Field(ge=0, le=100, description="Close probability, 0-100")
    created_date: str
    updated_date: str
    expected_close_date: str
    sales_rep: str
    origin_city: str
    destination_city: str
    cargo_type: Optional[str] = None

    @field_validator(*DATE_FIELDS)
    @classmethod
    def _check_date(cls, value: str, info: ValidationInfo) -> str:
        if not is_parseable_date(value):
            raise PydanticCustomError(
                "invalid_date",
                "Invalid date format for {field}",
                {"field": info.field_name},
            )
        # Dates are stored exactly as submitted.
        return value


def is_parseable_date(value: str) -> bool:
    """Return ``True`` when ``value`` resolves to a real calendar date."""

    try:
        parser.parse(value, dayfirst=DATE_DAYFIRST)
    except (ValueError, OverflowError):
        return False
    return True


def _to_failure(error: Mapping[str, Any]) -> ValidationFailure:
    return ValidationFailure(path=tuple(error["loc"]), message=error["msg"], code=error["type"])


def validate_deal(payload: Any) -> ValidationResult:
    """Check ``payload`` against :class:`DealData`.

    Every violated constraint is reported, in field order. Malformed input is
    an expected outcome and is returned as :class:`Invalid`, never raised.
    """

    try:
        data = DealData.model_validate(payload)
    except ValidationError as exc:
        return Invalid([_to_failure(error) for error in exc.errors()])
    return Valid(Deal(**data.model_dump()))


def extract_deal_id(payload: Any) -> Any:
    """Best-effort identifier for attributing a result to a raw payload."""

    if isinstance(payload, Mapping):
        return payload.get("deal_id")
    return None


def deal_json_schema() -> dict[str, Any]:
    return DealData.model_json_schema()


__all__ = [
    "DATE_FIELDS",
    "DealData",
    "deal_json_schema",
    "extract_deal_id",
    "is_parseable_date",
    "validate_deal",
]
