"""Command line entry point for importing, seeding and serving deals."""
from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Iterable

from .config import Settings
from .db import DealStore, SalesRepAuditHook
from .ingestion import ingest_many
from .logging_utils import configure_logging
from .models import BatchReport
from .seed import seed_deals

LOGGER = logging.getLogger(__name__)


def load_payloads(path: Path) -> list[Any]:
    """Read deals from a JSON file holding one object or a list of them."""

    data = json.loads(path.read_text())
    return data if isinstance(data, list) else [data]


def run_import(settings: Settings, path: Path) -> BatchReport:
    """Run every deal in ``path`` through the ingestion pipeline."""

    store = DealStore.from_url(settings.database_url, hooks=[SalesRepAuditHook()])
    try:
        store.ensure_schema()
        payloads = load_payloads(path)
        LOGGER.info("Importing %d deal(s) from %s", len(payloads), path)
        return ingest_many(store, payloads)
    finally:
        store.dispose()


def run_seed(settings: Settings) -> int:
    store = DealStore.from_url(settings.database_url)
    try:
        store.ensure_schema()
        return seed_deals(store)
    finally:
        store.dispose()


def parse_args(args: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging output",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    import_cmd = commands.add_parser("import", help="Import deals from a JSON file")
    import_cmd.add_argument("path", type=Path, help="JSON file with a deal object or a list of deals")

    commands.add_parser("seed", help="Replace stored deals with the sample data set")

    serve_cmd = commands.add_parser("serve", help="Run the API and dashboard")
    serve_cmd.add_argument("--host", default="127.0.0.1")
    serve_cmd.add_argument("--port", type=int, default=8000)
    return parser.parse_args(args=args)


def main(argv: Iterable[str] | None = None) -> int:
    options = parse_args(argv)
    settings = Settings.load()
    configure_logging(logging.DEBUG if options.verbose else settings.log_level, force=True)

    if options.command == "import":
        report = run_import(settings, options.path)
        print(json.dumps(report.as_dict(), indent=2))
        return 0 if not report.errors else 1
    if options.command == "seed":
        count = run_seed(settings)
        print(f"Successfully seeded {count} deals")
        return 0

    import uvicorn

    from .app import create_app

    uvicorn.run(create_app(settings), host=options.host, port=options.port)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
