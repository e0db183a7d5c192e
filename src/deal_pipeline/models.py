"""Domain models representing deals and pipeline outcomes."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Optional, Union


TRANSPORTATION_MODES = ("trucking", "rail", "ocean", "air")
STAGES = ("prospect", "qualified", "proposal", "negotiation", "closed_won", "closed_lost")

DUPLICATE_MESSAGE = "Duplicate deal_id"
INTERNAL_ERROR_MESSAGE = "Internal server error"


@dataclass(slots=True)
class Deal:
    """A validated deal as accepted by the ingestion pipeline."""

    deal_id: str
    company_name: str
    contact_name: str
    transportation_mode: str  # one of TRANSPORTATION_MODES
    stage: str  # one of STAGES
    value: float
    probability: float
    created_date: str
    updated_date: str
    expected_close_date: str
    sales_rep: str
    origin_city: str
    destination_city: str
    cargo_type: Optional[str] = None

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class ValidationFailure:
    """A single field-level constraint violation."""

    path: tuple[Union[str, int], ...]
    message: str
    code: str = "invalid"

    def as_dict(self) -> dict[str, Any]:
        return {"code": self.code, "path": list(self.path), "message": self.message}


@dataclass(slots=True)
class Valid:
    deal: Deal


@dataclass(slots=True)
class Invalid:
    failures: list[ValidationFailure]


ValidationResult = Union[Valid, Invalid]


class RejectionReason(str, Enum):
    DUPLICATE = "duplicate"
    INVALID = "invalid"
    INTERNAL_ERROR = "internal error"


@dataclass(slots=True)
class Accepted:
    deal_id: str


@dataclass(slots=True)
class Rejected:
    """A deal that was not persisted, with the reason it was skipped."""

    deal_id: Any
    reason: RejectionReason
    failures: list[ValidationFailure] = field(default_factory=list)

    @property
    def error(self) -> Union[str, list[dict[str, Any]]]:
        """Return the caller-facing error payload for this rejection."""

        if self.reason is RejectionReason.DUPLICATE:
            return DUPLICATE_MESSAGE
        if self.reason is RejectionReason.INVALID:
            return [failure.as_dict() for failure in self.failures]
        return INTERNAL_ERROR_MESSAGE


IngestResult = Union[Accepted, Rejected]


@dataclass(slots=True)
class BatchReport:
    """Partial-success summary of a batch import."""

    success: int = 0
    errors: list[dict[str, Any]] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        return {"success": self.success, "errors": list(self.errors)}


@dataclass(slots=True)
class SalesRepSummary:
    name: str = ""
    count: int = 0
    value: float = 0


@dataclass(slots=True)
class PerformanceMetrics:
    """Headline figures shown on the dashboard metrics panel."""

    total_pipeline_value: float
    win_rate: float
    avg_deal_size: float
    weighted_pipeline_value: float
    total_deals: int
    deals_by_mode: dict[str, int]
    top_sales_rep: SalesRepSummary

    def as_dict(self) -> dict[str, Any]:
        return {
            "totalPipelineValue": self.total_pipeline_value,
            "winRate": self.win_rate,
            "avgDealSize": self.avg_deal_size,
            "weightedPipelineValue": self.weighted_pipeline_value,
            "totalDeals": self.total_deals,
            "dealsByMode": dict(self.deals_by_mode),
            "topSalesRep": asdict(self.top_sales_rep),
        }


__all__ = [
    "Accepted",
    "BatchReport",
    "DUPLICATE_MESSAGE",
    "Deal",
    "INTERNAL_ERROR_MESSAGE",
    "IngestResult",
    "Invalid",
    "PerformanceMetrics",
    "Rejected",
    "RejectionReason",
    "STAGES",
    "SalesRepSummary",
    "TRANSPORTATION_MODES",
    "Valid",
    "ValidationFailure",
    "ValidationResult",
]
