"""Database integration utilities."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterable, Iterator, Mapping, Protocol, Sequence

from sqlalchemy import (
    Column,
    DateTime,
    Float,
    Integer,
    MetaData,
    String,
    Table,
    create_engine,
    delete,
    insert,
    select,
    update,
)
from sqlalchemy.engine import Connection, Engine, make_url
from sqlalchemy.pool import StaticPool


metadata = MetaData()

LOGGER = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


deals = Table(
    "deals",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    # Not unique: duplicates are rejected by the ingestion pipeline before writing.
    Column("deal_id", String(255), nullable=False, index=True),
    Column("company_name", String(255), nullable=False),
    Column("contact_name", String(255), nullable=False),
    Column("transportation_mode", String(32), nullable=False),
    Column("stage", String(32), nullable=False),
    Column("value", Float, nullable=False),
    Column("probability", Float, nullable=False),
    Column("created_date", String(64), nullable=False),
    Column("updated_date", String(64), nullable=False),
    Column("expected_close_date", String(64), nullable=False),
    Column("sales_rep", String(255), nullable=False),
    Column("origin_city", String(255), nullable=False),
    Column("destination_city", String(255), nullable=False),
    Column("cargo_type", String(255), nullable=True),
    Column("created_at", DateTime, nullable=False, default=_utcnow),
    Column("updated_at", DateTime, nullable=False, default=_utcnow, onupdate=_utcnow),
)

audit_logs = Table(
    "audit_logs",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("table_name", String(64), nullable=False),
    Column("column_name", String(64), nullable=False),
    Column("previous_value", String(255), nullable=False),
    Column("new_value", String(255), nullable=False),
    Column("created_at", DateTime, nullable=False, default=_utcnow),
)


DEAL_FIELDS: tuple[str, ...] = (
    "deal_id",
    "company_name",
    "contact_name",
    "transportation_mode",
    "stage",
    "value",
    "probability",
    "created_date",
    "updated_date",
    "expected_close_date",
    "sales_rep",
    "origin_city",
    "destination_city",
    "cargo_type",
)

RECORD_COLUMNS = [deals.c.id, *(deals.c[name] for name in DEAL_FIELDS)]


class PostWriteHook(Protocol):
    """Callback invoked synchronously after a deal row has been updated."""

    def after_update(
        self,
        store: "DealStore",
        before: Mapping[str, Any],
        after: Mapping[str, Any],
        changed: Sequence[str],
    ) -> None:
        ...


def create_db_engine(database_url: str) -> Engine:
    """Create a SQLAlchemy engine."""

    LOGGER.debug("Creating database engine")
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        options: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if url.database in (None, "", ":memory:"):
            # Every connection must see the same in-memory database.
            options["poolclass"] = StaticPool
        return create_engine(database_url, **options)
    return create_engine(database_url, future=True, pool_pre_ping=True)


@contextmanager
def session(engine: Engine) -> Iterator[Connection]:
    """Provide a transactional scope around a series of operations."""

    with engine.begin() as conn:
        yield conn


def ensure_schema(engine: Engine) -> None:
    """Create tables if they do not exist."""

    LOGGER.debug("Ensuring database schema is present")
    metadata.create_all(engine)


def _record(row) -> dict[str, Any]:
    return dict(row._mapping)


class DealStore:
    """Storage collaborator for deal records.

    One store is built per process and handed to whatever needs it. Callers
    only rely on ``create``, ``save``, ``find`` and ``find_by_key``; the
    remaining methods back the update, seeding and audit features.
    """

    def __init__(self, engine: Engine, hooks: Iterable[PostWriteHook] = ()) -> None:
        self.engine = engine
        self.hooks: list[PostWriteHook] = list(hooks)

    @classmethod
    def from_url(cls, database_url: str, hooks: Iterable[PostWriteHook] = ()) -> "DealStore":
        return cls(create_db_engine(database_url), hooks)

    def ensure_schema(self) -> None:
        ensure_schema(self.engine)

    def add_hook(self, hook: PostWriteHook) -> None:
        self.hooks.append(hook)

    def dispose(self) -> None:
        LOGGER.debug("Disposing database engine")
        self.engine.dispose()

    def create(self, data: Mapping[str, Any]) -> dict[str, Any]:
        """Build an unsaved record from ``data``, keeping only deal columns."""

        return {name: data.get(name) for name in DEAL_FIELDS}

    def save(self, record: Mapping[str, Any]) -> dict[str, Any]:
        values = {name: record.get(name) for name in DEAL_FIELDS}
        with session(self.engine) as conn:
            result = conn.execute(insert(deals).values(**values))
            new_id = result.inserted_primary_key[0]
        LOGGER.debug("Saved deal %s as row %s", values["deal_id"], new_id)
        return {"id": new_id, **values}

    def find(self) -> list[dict[str, Any]]:
        with self.engine.connect() as conn:
            rows = conn.execute(select(*RECORD_COLUMNS).order_by(deals.c.id)).all()
        return [_record(row) for row in rows]

    def find_by_key(self, deal_id: str) -> dict[str, Any] | None:
        stmt = select(*RECORD_COLUMNS).where(deals.c.deal_id == deal_id).order_by(deals.c.id).limit(1)
        with self.engine.connect() as conn:
            row = conn.execute(stmt).first()
        return _record(row) if row is not None else None

    def update(self, deal_id: str, changes: Mapping[str, Any]) -> dict[str, Any] | None:
        """Apply ``changes`` to a stored deal and notify the post-write hooks.

        Returns the updated record, or ``None`` when no deal has ``deal_id``.
        """

        unknown = set(changes) - set(DEAL_FIELDS)
        if unknown:
            raise ValueError(f"Unknown deal columns: {', '.join(sorted(unknown))}")

        with session(self.engine) as conn:
            lookup = select(*RECORD_COLUMNS).where(deals.c.deal_id == deal_id).order_by(deals.c.id).limit(1)
            row = conn.execute(lookup).first()
            if row is None:
                return None
            before = _record(row)
            conn.execute(update(deals).where(deals.c.id == before["id"]).values(**changes))
            after = _record(conn.execute(select(*RECORD_COLUMNS).where(deals.c.id == before["id"])).one())

        changed = [name for name in changes if before[name] != after[name]]
        if changed:
            self._run_hooks(before, after, changed)
        return after

    def clear(self) -> int:
        with session(self.engine) as conn:
            removed = conn.execute(delete(deals)).rowcount
        LOGGER.info("Cleared %d deals", removed)
        return removed

    def list_audit_logs(self) -> list[dict[str, Any]]:
        with self.engine.connect() as conn:
            rows = conn.execute(select(audit_logs).order_by(audit_logs.c.id)).all()
        return [_record(row) for row in rows]

    def _run_hooks(self, before: Mapping[str, Any], after: Mapping[str, Any], changed: Sequence[str]) -> None:
        for hook in self.hooks:
            try:
                hook.after_update(self, before, after, changed)
            except Exception:
                LOGGER.exception(
                    "Post-write hook %s failed for deal %s", type(hook).__name__, after.get("deal_id")
                )


class SalesRepAuditHook:
    """Record an ``audit_logs`` row whenever a deal's sales rep changes."""

    column = "sales_rep"

    def after_update(
        self,
        store: DealStore,
        before: Mapping[str, Any],
        after: Mapping[str, Any],
        changed: Sequence[str],
    ) -> None:
        if self.column not in changed:
            return
        with session(store.engine) as conn:
            conn.execute(
                insert(audit_logs).values(
                    table_name=deals.name,
                    column_name=self.column,
                    previous_value=before[self.column] or "",
                    new_value=after[self.column] or "",
                )
            )
        LOGGER.info(
            "Audit log created for sales_rep change on %s: %s -> %s",
            after["deal_id"],
            before[self.column],
            after[self.column],
        )


__all__ = [
    "DEAL_FIELDS",
    "DealStore",
    "PostWriteHook",
    "SalesRepAuditHook",
    "audit_logs",
    "create_db_engine",
    "deals",
    "ensure_schema",
    "metadata",
    "session",
]
