"""FastAPI application exposing the deal API and the pipeline dashboard."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from dateutil import parser as date_parser
from fastapi import Depends, FastAPI, Request, status
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.templating import Jinja2Templates

from .analytics import (
    DEFAULT_SORT_DIRECTION,
    DEFAULT_SORT_FIELD,
    compute_performance_metrics,
    filter_and_sort_deals,
    flatten_stage_analytics,
    funnel_rows,
    get_stage_analytics,
)
from .config import Settings
from .db import DealStore, SalesRepAuditHook
from .ingestion import ingest_many, ingest_one, reassign_sales_rep
from .logging_utils import configure_logging
from .models import INTERNAL_ERROR_MESSAGE, Accepted, RejectionReason
from .seed import seed_deals

configure_logging()

LOGGER = logging.getLogger(__name__)

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))

LIST_COLUMNS = (
    ("deal_id", "Deal ID"),
    ("company_name", "Company"),
    ("contact_name", "Contact"),
    ("stage", "Stage"),
    ("transportation_mode", "Mode"),
    ("value", "Value"),
    ("probability", "Probability"),
    ("sales_rep", "Sales Rep"),
    ("expected_close_date", "Expected Close"),
)


def format_currency(value: float, cents: bool = False) -> str:
    if cents:
        return f"${value:,.2f}"
    return f"${value:,.0f}"


def format_percentage(value: float) -> str:
    return f"{value:.1f}%"


def format_date(value: str) -> str:
    try:
        return date_parser.parse(value).strftime("%m/%d/%Y")
    except (ValueError, OverflowError):
        return value


templates.env.filters["currency"] = format_currency
templates.env.filters["percentage"] = format_percentage
templates.env.filters["short_date"] = format_date


def _internal_error() -> JSONResponse:
    return JSONResponse(
        {"error": INTERNAL_ERROR_MESSAGE}, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
    )


def get_store(request: Request) -> DealStore:
    return request.app.state.store


def create_app(settings: Settings | None = None, store: DealStore | None = None) -> FastAPI:
    """Build the application around a single, explicitly owned deal store.

    When ``store`` is omitted one is created from ``settings`` (or the
    environment) with the sales-rep audit hook installed. The store's schema is
    created on startup and its engine disposed on shutdown.
    """

    if store is None:
        settings = settings or Settings.load()
        store = DealStore.from_url(settings.database_url, hooks=[SalesRepAuditHook()])

    app = FastAPI(title="Deal Pipeline Tracker")
    app.state.store = store

    @app.on_event("startup")
    async def startup_event() -> None:
        LOGGER.info("Starting FastAPI application")
        app.state.store.ensure_schema()

    @app.on_event("shutdown")
    async def shutdown_event() -> None:
        app.state.store.dispose()
        LOGGER.info("Database engine disposed")

    @app.post("/api/deals")
    async def create_deals(request: Request, store: DealStore = Depends(get_store)) -> JSONResponse:
        try:
            body = await request.json()
            if isinstance(body, list):
                report = ingest_many(store, body)
                return JSONResponse(report.as_dict(), status_code=status.HTTP_207_MULTI_STATUS)
            result = ingest_one(store, body)
        except Exception:
            LOGGER.exception("Error in POST /api/deals")
            return _internal_error()

        if isinstance(result, Accepted):
            return JSONResponse({"deal_id": result.deal_id}, status_code=status.HTTP_201_CREATED)
        if result.reason is RejectionReason.INTERNAL_ERROR:
            return _internal_error()
        return JSONResponse({"error": result.error}, status_code=status.HTTP_400_BAD_REQUEST)

    @app.get("/api/deals")
    async def deals_by_stage(store: DealStore = Depends(get_store)) -> JSONResponse:
        try:
            deals = store.find()
        except Exception:
            LOGGER.exception("Error fetching deals by stage")
            return _internal_error()
        return JSONResponse(get_stage_analytics(deals))

    @app.patch("/api/deals/{deal_id}")
    async def update_deal(deal_id: str, request: Request, store: DealStore = Depends(get_store)) -> JSONResponse:
        try:
            body = await request.json()
            sales_rep = body.get("sales_rep") if isinstance(body, dict) else None
            if not isinstance(sales_rep, str) or not sales_rep.strip():
                return JSONResponse(
                    {"error": "sales_rep must be a non-empty string"},
                    status_code=status.HTTP_400_BAD_REQUEST,
                )
            record = reassign_sales_rep(store, deal_id, sales_rep)
        except Exception:
            LOGGER.exception("Error in PATCH /api/deals/%s", deal_id)
            return _internal_error()
        if record is None:
            return JSONResponse({"error": "Deal not found"}, status_code=status.HTTP_404_NOT_FOUND)
        return JSONResponse(record)

    @app.get("/api/metrics")
    async def performance_metrics(store: DealStore = Depends(get_store)) -> JSONResponse:
        try:
            analytics = get_stage_analytics(store.find())
        except Exception:
            LOGGER.exception("Error computing performance metrics")
            return _internal_error()
        metrics = compute_performance_metrics(flatten_stage_analytics(analytics["stageAnalytics"]))
        return JSONResponse(metrics.as_dict())

    @app.post("/api/seed")
    async def seed(store: DealStore = Depends(get_store)) -> JSONResponse:
        try:
            count = seed_deals(store)
        except Exception:
            LOGGER.exception("Error seeding database")
            return JSONResponse(
                {"error": "Failed to seed database"},
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        return JSONResponse({"message": f"Successfully seeded {count} deals", "count": count})

    @app.get("/", response_class=HTMLResponse)
    async def dashboard(
        request: Request,
        q: str = "",
        sort: str = DEFAULT_SORT_FIELD,
        direction: str = DEFAULT_SORT_DIRECTION,
        store: DealStore = Depends(get_store),
    ) -> HTMLResponse:
        LOGGER.debug("Rendering dashboard view")
        analytics = get_stage_analytics(store.find())
        all_deals = flatten_stage_analytics(analytics["stageAnalytics"])
        listed = filter_and_sort_deals(all_deals, q, sort, direction)
        context: dict[str, Any] = {
            "total_deals": analytics["totalDeals"],
            "funnel": funnel_rows(analytics),
            "metrics": compute_performance_metrics(all_deals),
            "deals": listed,
            "columns": LIST_COLUMNS,
            "search": q,
            "sort": sort,
            "direction": direction if direction in ("asc", "desc") else DEFAULT_SORT_DIRECTION,
        }
        return templates.TemplateResponse(request, "dashboard.html", context)

    return app


app = create_app()


__all__ = ["app", "create_app", "format_currency", "format_date", "format_percentage", "get_store"]
