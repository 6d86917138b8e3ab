# file: nation_runtime/__init__.py
"""
Nation Runtime — storage and turn orchestration

Record store contract and adapters (memory, sqlite3, GitHub contents API),
the global turn orchestrator, world metrics and drift comparison.
"""

from .record_store import (
    MemoryRecordStore,
    RecordStore,
    StoreError,
    StoreListError,
    StoreReadError,
    StoreWriteError,
)
from .sqlite_repository import SqliteNationRepository
from .github_repository import GitHubNationRepository
from .turn import DEFAULT_MAX_WORKERS, TurnOrchestrator, run_global_turn
from .drift import compare_worlds, snapshot_world
from .observability import WorldMetrics, collect_world_metrics

__all__ = [
    "MemoryRecordStore",
    "RecordStore",
    "StoreError",
    "StoreListError",
    "StoreReadError",
    "StoreWriteError",
    "SqliteNationRepository",
    "GitHubNationRepository",
    "DEFAULT_MAX_WORKERS",
    "TurnOrchestrator",
    "run_global_turn",
    "compare_worlds",
    "snapshot_world",
    "WorldMetrics",
    "collect_world_metrics",
]
