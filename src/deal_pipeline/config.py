"""Application configuration helpers."""
from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Mapping
from urllib.parse import quote_plus


DEFAULT_DATABASE_URL = "sqlite:///./deals.sqlite"
DEFAULT_LOG_LEVEL = "INFO"


def _resolve_env_file(candidate: str) -> Path | None:
    """Return the first matching environment file path if it exists."""

    path = Path(candidate)
    if path.is_absolute() and path.exists():
        return path

    search_roots = [Path.cwd(), Path(__file__).resolve().parent]
    search_roots.extend(Path(__file__).resolve().parents)

    seen: set[Path] = set()
    for root in search_roots:
        root = root.resolve()
        if root in seen:
            continue
        seen.add(root)
        potential = root / candidate
        if potential.exists():
            return potential
    return None


def _parse_env_file(path: Path) -> dict[str, str]:
    """Parse a dotenv-style file into a mapping."""

    variables: dict[str, str] = {}
    for raw_line in path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export ") :].strip()
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        variables[key] = value
    return variables


def _load_profile_env(env: Mapping[str, str]) -> dict[str, str]:
    """Load environment variables from the selected profile file."""

    explicit_file = env.get("DEAL_PIPELINE_ENV_FILE")
    profile = env.get("DEAL_PIPELINE_ENV", "local")
    candidates = [explicit_file] if explicit_file else [f".env.{profile}"]

    for candidate in candidates:
        if not candidate:
            continue
        path = _resolve_env_file(candidate)
        if path is not None:
            return _parse_env_file(path)
    return {}


def _build_database_url(env: Mapping[str, str]) -> str | None:
    """Construct a SQLAlchemy URL from discrete environment variables."""

    host = env.get("DEAL_PIPELINE_DB_HOST")
    if not host:
        return None

    username = env.get("DEAL_PIPELINE_DB_USERNAME")
    if not username:
        raise RuntimeError(
            "DEAL_PIPELINE_DB_USERNAME must be set when using discrete database settings"
        )

    if "DEAL_PIPELINE_DB_PASSWORD" not in env:
        raise RuntimeError(
            "DEAL_PIPELINE_DB_PASSWORD must be set when using discrete database settings"
        )

    password = env.get("DEAL_PIPELINE_DB_PASSWORD", "")
    port = env.get("DEAL_PIPELINE_DB_PORT", "5432")
    database = env.get("DEAL_PIPELINE_DB_NAME", "deals")
    driver = env.get("DEAL_PIPELINE_DB_DRIVER", "postgresql+psycopg")

    auth = f"{quote_plus(username)}:{quote_plus(password)}"
    port_part = f":{port}" if port else ""
    return f"{driver}://{auth}@{host}{port_part}/{database}"


@dataclass(frozen=True)
class Settings:
    """Runtime configuration."""

    database_url: str
    log_level: str = DEFAULT_LOG_LEVEL

    @staticmethod
    def load(env: Mapping[str, str] | None = None) -> "Settings":
        """Load settings from environment variables."""

        base_env = dict(os.environ if env is None else env)
        file_env = _load_profile_env(base_env)
        # Environment variables set in the shell take precedence over the file.
        merged_env = {**file_env, **base_env}

        database_url = merged_env.get("DEAL_PIPELINE_DATABASE_URL")
        if not database_url:
            database_url = _build_database_url(merged_env)
        if not database_url:
            database_url = DEFAULT_DATABASE_URL

        log_level = merged_env.get("DEAL_PIPELINE_LOG_LEVEL") or DEFAULT_LOG_LEVEL

        return Settings(database_url=database_url, log_level=log_level)


__all__ = ["Settings", "DEFAULT_DATABASE_URL"]
