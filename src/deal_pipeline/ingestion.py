"""Validate, de-duplicate and persist incoming deals."""
from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Protocol

from .db import DealStore
from .models import Accepted, BatchReport, IngestResult, Invalid, Rejected, RejectionReason
from .schema import extract_deal_id, validate_deal

LOGGER = logging.getLogger(__name__)


class DealRepository(Protocol):
    """The storage operations the pipeline relies on."""

    def create(self, data: Mapping[str, Any]) -> dict[str, Any]:
        ...

    def save(self, record: Mapping[str, Any]) -> dict[str, Any]:
        ...

    def find(self) -> list[dict[str, Any]]:
        ...

    def find_by_key(self, deal_id: str) -> dict[str, Any] | None:
        ...


def deal_exists(store: DealRepository, deal_id: str) -> bool:
    """Return ``True`` when a deal with ``deal_id`` is already stored."""

    return store.find_by_key(deal_id) is not None


def ingest_one(store: DealRepository, payload: Any) -> IngestResult:
    """Run one raw payload through validation, the duplicate check and the write.

    Each step only runs when the previous one succeeded. Validation failures and
    duplicates are returned as :class:`Rejected`; unexpected storage errors are
    logged and reported as an internal error without exposing their details.
    """

    outcome = validate_deal(payload)
    if isinstance(outcome, Invalid):
        deal_id = extract_deal_id(payload)
        LOGGER.info("Rejected deal %s: %d validation failure(s)", deal_id, len(outcome.failures))
        return Rejected(deal_id, RejectionReason.INVALID, outcome.failures)

    deal = outcome.deal
    try:
        if deal_exists(store, deal.deal_id):
            LOGGER.info("Rejected deal %s: duplicate deal_id", deal.deal_id)
            return Rejected(deal.deal_id, RejectionReason.DUPLICATE)
        record = store.create(deal.as_dict())
        store.save(record)
    except Exception:
        LOGGER.exception("Failed to store deal %s", deal.deal_id)
        return Rejected(deal.deal_id, RejectionReason.INTERNAL_ERROR)

    LOGGER.debug("Accepted deal %s", deal.deal_id)
    return Accepted(deal.deal_id)


def ingest_many(store: DealRepository, payloads: Iterable[Any]) -> BatchReport:
    """Ingest every payload independently and report the partial outcome.

    Payloads are processed in order, so a later payload sees the deals stored
    by earlier ones. Nothing is rolled back when an element fails.
    """

    report = BatchReport()
    for payload in payloads:
        result = ingest_one(store, payload)
        if isinstance(result, Accepted):
            report.success += 1
        else:
            report.errors.append({"deal_id": result.deal_id, "error": result.error})
    LOGGER.info("Batch ingestion finished: %d stored, %d rejected", report.success, len(report.errors))
    return report


def reassign_sales_rep(store: DealStore, deal_id: str, sales_rep: str) -> dict[str, Any] | None:
    """Move a stored deal to another sales rep.

    The store's post-write hooks see the change, which is how reassignments
    end up in the audit log. Returns ``None`` for an unknown ``deal_id``.
    """

    record = store.update(deal_id, {"sales_rep": sales_rep})
    if record is None:
        LOGGER.info("Cannot reassign unknown deal %s", deal_id)
    return record


__all__ = ["DealRepository", "deal_exists", "ingest_many", "ingest_one", "reassign_sales_rep"]
