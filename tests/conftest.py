"""Shared fixtures: an in-memory deal store and an API client bound to it."""

from __future__ import annotations

from typing import Any, Callable, Iterator

import pytest
from fastapi.testclient import TestClient

from deal_pipeline.app import create_app
from deal_pipeline.db import DealStore, SalesRepAuditHook


@pytest.fixture
def valid_deal() -> dict[str, Any]:
    """A payload that passes every validation rule."""
    return {
        "deal_id": "DEAL-001",
        "company_name": "Test Company",
        "contact_name": "John Doe",
        "transportation_mode": "trucking",
        "stage": "prospect",
        "value": 50000,
        "probability": 75,
        "created_date": "2024-01-01T00:00:00Z",
        "updated_date": "2024-01-01T00:00:00Z",
        "expected_close_date": "2024-03-01T00:00:00Z",
        "sales_rep": "Jane Smith",
        "origin_city": "New York",
        "destination_city": "Los Angeles",
        "cargo_type": "Electronics",
    }


@pytest.fixture
def make_deal(valid_deal: dict[str, Any]) -> Callable[..., dict[str, Any]]:
    """Build a deal payload, overriding selected fields."""

    def _make(**overrides: Any) -> dict[str, Any]:
        return {**valid_deal, **overrides}

    return _make


@pytest.fixture
def store() -> Iterator[DealStore]:
    deal_store = DealStore.from_url("sqlite://", hooks=[SalesRepAuditHook()])
    deal_store.ensure_schema()
    yield deal_store
    deal_store.dispose()


@pytest.fixture
def client(store: DealStore) -> Iterator[TestClient]:
    with TestClient(create_app(store=store)) as test_client:
        yield test_client
