"""
Backend configuration — environment variables, optionally from backend/.env.

    NATION_STORE          sqlite | postgres | github     (default sqlite)
    SQLITE_PATH           sqlite database file           (default nations.db)
    DATABASE_URL          Postgres URL for NATION_STORE=postgres
    GITHUB_REPO           owner/name for NATION_STORE=github
    GITHUB_TOKEN          API token for NATION_STORE=github
    GITHUB_BRANCH         branch for NATION_STORE=github (default main)
    TURN_MAX_WORKERS      concurrency cap for a turn     (default 8)
    TURN_TIMEOUT_SECONDS  turn-level wait bound          (default unbounded)
    FRONTEND_URL          allowed CORS origin
    LOG_LEVEL             logging level                  (default INFO)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from nation_runtime.github_repository import GitHubNationRepository
from nation_runtime.record_store import RecordStore
from nation_runtime.sqlite_repository import SqliteNationRepository
from nation_runtime.turn import DEFAULT_MAX_WORKERS

env_path = os.path.join(os.path.dirname(__file__), ".env")
if os.path.exists(env_path):
    load_dotenv(env_path)

STORE_KINDS = ("sqlite", "postgres", "github")


@dataclass(frozen=True)
class Settings:
    nation_store: str = "sqlite"
    sqlite_path: str = "nations.db"
    database_url: str = ""
    github_repo: str = ""
    github_token: str = ""
    github_branch: str = "main"
    turn_max_workers: int = DEFAULT_MAX_WORKERS
    turn_timeout_seconds: Optional[float] = None
    frontend_url: str = "http://localhost:3000"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        store = env.get("NATION_STORE", "sqlite").strip().lower()
        if store not in STORE_KINDS:
            raise ValueError(
                f"NATION_STORE must be one of {STORE_KINDS}, got {store!r}"
            )
        timeout_raw = env.get("TURN_TIMEOUT_SECONDS", "").strip()
        return cls(
            nation_store=store,
            sqlite_path=env.get("SQLITE_PATH", "nations.db"),
            database_url=env.get("DATABASE_URL", ""),
            github_repo=env.get("GITHUB_REPO", ""),
            github_token=env.get("GITHUB_TOKEN", ""),
            github_branch=env.get("GITHUB_BRANCH", "main"),
            turn_max_workers=int(env.get("TURN_MAX_WORKERS", DEFAULT_MAX_WORKERS)),
            turn_timeout_seconds=float(timeout_raw) if timeout_raw else None,
            frontend_url=env.get("FRONTEND_URL", "http://localhost:3000"),
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
        )


def build_store(settings: Settings) -> RecordStore:
    """Construct the record store selected by NATION_STORE."""
    if settings.nation_store == "postgres":
        if not settings.database_url:
            raise ValueError("DATABASE_URL not configured")
        from backend.postgres_nation_repository import PostgresNationRepository

        return PostgresNationRepository(settings.database_url)
    if settings.nation_store == "github":
        return GitHubNationRepository(
            settings.github_repo,
            token=settings.github_token,
            branch=settings.github_branch,
        )
    return SqliteNationRepository(settings.sqlite_path)
