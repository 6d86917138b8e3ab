# file: nation_runtime/turn.py
"""
Turn Orchestrator — drives the growth model over every stored nation.

One global turn:
  1. store.list()                  — failure aborts the turn, nothing iterated
  2. per nation, independently:
       store.read(id)              — None → skipped
       advance(record)             — MalformedRecordError → failed
       store.write(id, record')    — StoreWriteError → failed
  3. summary: processed / skipped / failed (ordered by id)

Per-nation updates share no state, so they run on a thread pool with a
caller-chosen cap on concurrent store calls. A turn-level timeout bounds
the wait; anything still outstanding is reported as failed.

Running a turn twice is two turns: stats move again. It is safe to
repeat, it is not a no-op.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Dict, List, Optional

from nation_kernel.constants import DEFAULT_GROWTH_CONFIG, GrowthConfig
from nation_kernel.domain_types import TurnFailure, TurnSummary
from nation_kernel.growth import advance
from nation_kernel.invariants import MalformedRecordError

from .record_store import RecordStore, StoreError

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS: int = 8

_PROCESSED = "processed"
_SKIPPED = "skipped"


class TurnOrchestrator:
    """Runs global turns against one record store."""

    def __init__(
        self,
        store: RecordStore,
        growth_config: GrowthConfig = DEFAULT_GROWTH_CONFIG,
        max_workers: int = DEFAULT_MAX_WORKERS,
        timeout: Optional[float] = None,
    ) -> None:
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        if timeout is not None and timeout <= 0:
            raise ValueError(f"timeout must be > 0 seconds, got {timeout}")
        self._store = store
        self._config = growth_config
        self._max_workers = max_workers
        self._timeout = timeout

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run(self) -> TurnSummary:
        start = time.perf_counter()
        logger.info("Starting global turn")

        try:
            nation_ids = sorted(self._store.list())
        except Exception as exc:
            if isinstance(exc, StoreError):
                logger.error("Global turn aborted: %s", exc)
            else:
                logger.exception("Global turn aborted: store listing raised")
            return TurnSummary(
                aborted=True,
                abort_reason=str(exc) or type(exc).__name__,
                elapsed_ms=_elapsed_ms(start),
            )

        processed = 0
        skipped_ids: List[str] = []
        failures: List[TurnFailure] = []

        if nation_ids:
            outcomes = self._dispatch(nation_ids)
            for nation_id in nation_ids:
                outcome = outcomes[nation_id]
                if outcome == _PROCESSED:
                    processed += 1
                elif outcome == _SKIPPED:
                    skipped_ids.append(nation_id)
                else:
                    failures.append(outcome)

        summary = TurnSummary(
            processed=processed,
            skipped=len(skipped_ids),
            failed=tuple(failures),
            skipped_ids=tuple(skipped_ids),
            elapsed_ms=_elapsed_ms(start),
        )
        logger.info(
            "Global turn finished: %d processed, %d skipped, %d failed in %.1f ms",
            summary.processed, summary.skipped, len(summary.failed),
            summary.elapsed_ms,
        )
        return summary

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _dispatch(self, nation_ids: List[str]) -> Dict[str, object]:
        """Run every per-nation update; map id -> outcome or TurnFailure."""
        workers = min(self._max_workers, len(nation_ids))
        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="turn")
        futures: Dict[Future, str] = {}
        outcomes: Dict[str, object] = {}
        timed_out = False
        try:
            for nation_id in nation_ids:
                futures[executor.submit(self._advance_one, nation_id)] = nation_id

            done, not_done = wait(futures, timeout=self._timeout)

            for future in not_done:
                timed_out = True
                future.cancel()
                nation_id = futures[future]
                logger.warning("Nation %s still in flight at turn timeout", nation_id)
                outcomes[nation_id] = TurnFailure(nation_id, "timed out")

            for future in done:
                nation_id = futures[future]
                outcomes[nation_id] = self._collect(nation_id, future)
        finally:
            executor.shutdown(wait=not timed_out, cancel_futures=True)
        return outcomes

    def _advance_one(self, nation_id: str) -> str:
        record = self._store.read(nation_id)
        if record is None:
            logger.warning("Nation %s listed but not found; skipping", nation_id)
            return _SKIPPED
        updated = advance(record, self._config)
        self._store.write(nation_id, updated)
        logger.debug(
            "Nation %s advanced: population=%d gdp=%d hdi=%.4f",
            nation_id, updated.stats.population, updated.stats.gdp,
            updated.stats.hdi,
        )
        return _PROCESSED

    @staticmethod
    def _collect(nation_id: str, future: Future) -> object:
        try:
            return future.result()
        except (MalformedRecordError, StoreError) as exc:
            logger.warning("Nation %s failed: %s", nation_id, exc)
            return TurnFailure(nation_id, str(exc))
        except Exception as exc:
            logger.exception("Nation %s failed with an unexpected error", nation_id)
            return TurnFailure(nation_id, f"unexpected error: {exc!r}")


def run_global_turn(
    store: RecordStore,
    growth_config: GrowthConfig = DEFAULT_GROWTH_CONFIG,
    *,
    max_workers: int = DEFAULT_MAX_WORKERS,
    timeout: Optional[float] = None,
) -> TurnSummary:
    """Run one global turn and return its summary. Never raises for store failures."""
    return TurnOrchestrator(
        store, growth_config, max_workers=max_workers, timeout=timeout,
    ).run()


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000.0, 2)
