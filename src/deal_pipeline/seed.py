"""Sample deals used to populate a fresh database."""
from __future__ import annotations

import logging
from typing import Any

from .db import DealStore

LOGGER = logging.getLogger(__name__)


def _deal(
    deal_id: str,
    company_name: str,
    contact_name: str,
    transportation_mode: str,
    stage: str,
    value: float,
    probability: float,
    dates: tuple[str, str, str],
    sales_rep: str,
    route: tuple[str, str],
    cargo_type: str,
) -> dict[str, Any]:
    created, updated, expected_close = dates
    origin, destination = route
    return {
        "deal_id": deal_id,
        "company_name": company_name,
        "contact_name": contact_name,
        "transportation_mode": transportation_mode,
        "stage": stage,
        "value": value,
        "probability": probability,
        "created_date": created,
        "updated_date": updated,
        "expected_close_date": expected_close,
        "sales_rep": sales_rep,
        "origin_city": origin,
        "destination_city": destination,
        "cargo_type": cargo_type,
    }


SAMPLE_DEALS: tuple[dict[str, Any], ...] = (
    _deal(
        "RV-001", "Pacific Logistics Inc", "Sarah Chen", "ocean", "proposal", 45000, 70,
        ("2024-10-15T09:00:00Z", "2024-11-28T14:30:00Z", "2024-12-15T00:00:00Z"),
        "Mike Rodriguez", ("Los Angeles, CA", "Shanghai, China"), "Electronics",
    ),
    _deal(
        "RV-002", "Mountain Transport Co", "David Park", "trucking", "negotiation", 12000, 85,
        ("2024-11-01T11:15:00Z", "2024-12-03T16:45:00Z", "2024-12-10T00:00:00Z"),
        "Jennifer Walsh", ("Denver, CO", "Phoenix, AZ"), "Machinery",
    ),
    _deal(
        "RV-003", "Global Freight Solutions", "Maria Rodriguez", "air", "prospect", 75000, 30,
        ("2024-11-20T08:30:00Z", "2024-11-25T10:15:00Z", "2025-01-20T00:00:00Z"),
        "Tom Wilson", ("Miami, FL", "London, UK"), "Pharmaceuticals",
    ),
    _deal(
        "RV-004", "Midwest Rail Corp", "James Thompson", "rail", "qualified", 28000, 60,
        ("2024-11-10T14:20:00Z", "2024-11-30T09:45:00Z", "2024-12-25T00:00:00Z"),
        "Lisa Anderson", ("Chicago, IL", "Houston, TX"), "Automotive Parts",
    ),
    _deal(
        "RV-005", "Coastal Shipping LLC", "Robert Kim", "ocean", "closed_won", 95000, 100,
        ("2024-10-05T12:00:00Z", "2024-11-15T16:30:00Z", "2024-11-30T00:00:00Z"),
        "Mike Rodriguez", ("Seattle, WA", "Tokyo, Japan"), "Consumer Goods",
    ),
    _deal(
        "RV-006", "Express Trucking Inc", "Amanda Foster", "trucking", "closed_lost", 18000, 0,
        ("2024-09-15T10:30:00Z", "2024-11-20T14:00:00Z", "2024-11-01T00:00:00Z"),
        "Jennifer Walsh", ("Atlanta, GA", "New York, NY"), "Food Products",
    ),
    _deal(
        "RV-007", "International Air Cargo", "Carlos Mendez", "air", "proposal", 52000, 65,
        ("2024-11-05T09:15:00Z", "2024-12-01T11:20:00Z", "2024-12-20T00:00:00Z"),
        "Tom Wilson", ("Dallas, TX", "Frankfurt, Germany"), "Technology Equipment",
    ),
    _deal(
        "RV-008", "Northern Rail Services", "Emily Johnson", "rail", "prospect", 33000, 25,
        ("2024-11-25T13:45:00Z", "2024-12-02T15:30:00Z", "2025-01-15T00:00:00Z"),
        "Lisa Anderson", ("Minneapolis, MN", "Portland, OR"), "Raw Materials",
    ),
    _deal(
        "RV-009", "Atlantic Shipping Co", "Michael Brown", "ocean", "qualified", 67000, 55,
        ("2024-10-20T11:00:00Z", "2024-11-28T13:15:00Z", "2024-12-30T00:00:00Z"),
        "Mike Rodriguez", ("Boston, MA", "Rotterdam, Netherlands"), "Industrial Equipment",
    ),
    _deal(
        "RV-010", "Southwest Logistics", "Jessica Martinez", "trucking", "negotiation", 22000, 80,
        ("2024-11-12T16:20:00Z", "2024-12-04T10:45:00Z", "2024-12-18T00:00:00Z"),
        "Jennifer Walsh", ("Phoenix, AZ", "Las Vegas, NV"), "Construction Materials",
    ),
)


def seed_deals(store: DealStore) -> int:
    """Replace every stored deal with :data:`SAMPLE_DEALS`."""

    store.clear()
    for data in SAMPLE_DEALS:
        store.save(store.create(data))
    LOGGER.info("Seeded %d sample deals", len(SAMPLE_DEALS))
    return len(SAMPLE_DEALS)


__all__ = ["SAMPLE_DEALS", "seed_deals"]
