"""
engine.py - Push/pull reconciliation between the local and remote stores.

A full sync pushes every dirty local row, then pulls remote
documents changed after the caller's watermark. Conflicts resolve
by whole-record last-writer-wins on the record timestamp; ties
keep the local row. Status history is append-only and merges by id.
"""

import logging
import time
from collections import Counter as Tally
from dataclasses import dataclass, field

from jobtrack_sync.clock import Clock
from jobtrack_sync.errors import DecodeError, RemoteStoreError
from jobtrack_sync.local import LocalSources, MutableLocalDataSource, StatusHistoryLocalDataSource
from jobtrack_sync.metrics import SyncLogger, rows_pulled_total, rows_pushed_total
from jobtrack_sync.remote.base import RemoteStore
from jobtrack_sync.result import Err, Ok, Result

logger = logging.getLogger(__name__)


@dataclass
class SyncReport:
    """Per-kind counts for one engine run."""

    started_at_epoch_ms: int = 0
    pushed: Tally = field(default_factory=Tally)
    deleted: Tally = field(default_factory=Tally)
    pulled: Tally = field(default_factory=Tally)
    skipped: Tally = field(default_factory=Tally)

    @property
    def total_pushed(self) -> int:
        return sum(self.pushed.values()) + sum(self.deleted.values())

    @property
    def total_pulled(self) -> int:
        return sum(self.pulled.values())


class SyncEngine:
    """
    Stateless reconciliation for one user.

    The only carried state is the watermark the caller passes to
    pull_remote_updates / perform_full_sync. Remote failures come
    back as Err; local store errors propagate.
    """

    def __init__(self, sources: LocalSources, remote: RemoteStore, clock: Clock, user_id: str):
        self._sources = sources
        self._remote = remote
        self._clock = clock
        self._user_id = user_id
        self._log = SyncLogger()

    @property
    def user_id(self) -> str:
        return self._user_id

    async def perform_full_sync(self, last_sync_epoch_ms: int = 0) -> Result[SyncReport]:
        """Push, then pull if the push fully succeeded."""
        report = SyncReport(started_at_epoch_ms=self._clock.now_ms())
        start = time.perf_counter()
        self._log.sync_started(self._user_id, last_sync_epoch_ms, self._remote.name)

        result = await self.push_local_changes(report)
        phase = "push"
        if result.is_ok:
            result = await self.pull_remote_updates(last_sync_epoch_ms, report)
            phase = "pull"

        duration_ms = (time.perf_counter() - start) * 1000
        if result.is_ok:
            self._log.sync_completed(
                self._user_id,
                pushed=dict(report.pushed + report.deleted),
                pulled=dict(report.pulled),
                skipped=sum(report.skipped.values()),
                duration_ms=duration_ms,
            )
        else:
            self._log.sync_failed(self._user_id, phase, str(result.error), duration_ms)
        return result

    async def push_local_changes(self, report: SyncReport | None = None) -> Result[SyncReport]:
        """
        Send every dirty row to the remote store, kind by kind.

        Each row is marked synced right after its remote call
        succeeds, so a failure part way leaves earlier rows clean
        and the failing row (and everything after it) dirty.
        """
        report = report if report is not None else SyncReport()
        for source in self._sources.in_sync_order():
            pending = await source.get_pending_sync()
            if pending:
                logger.debug(f"Pushing {len(pending)} {source.kind} rows")
            for record in pending:
                try:
                    if record.SOFT_DELETABLE and record.is_deleted:
                        await self._remote.delete(self._user_id, source.kind, record.record_id)
                        report.deleted[source.kind] += 1
                    else:
                        await self._remote.upsert(self._user_id, source.kind, record.to_document())
                        report.pushed[source.kind] += 1
                except RemoteStoreError as e:
                    logger.error(f"Push of {source.kind}/{record.record_id} failed: {e}")
                    return Err(e)
                await source.mark_synced(record.record_id)
                rows_pushed_total.inc(kind=source.kind)
        return Ok(report)

    async def pull_remote_updates(
        self, last_sync_epoch_ms: int, report: SyncReport | None = None
    ) -> Result[SyncReport]:
        """
        Apply remote documents changed after last_sync_epoch_ms.

        Kinds applied before a remote failure keep their changes.
        Undecodable documents are skipped and counted.
        """
        report = report if report is not None else SyncReport()
        for source in self._sources.in_sync_order():
            try:
                documents = await self._remote.get_since(self._user_id, source.kind, last_sync_epoch_ms)
            except RemoteStoreError as e:
                logger.error(f"Pull of {source.kind} failed: {e}")
                return Err(e)

            for document in documents:
                try:
                    if not isinstance(document, dict):
                        raise DecodeError("Document is not an object", kind=source.kind)
                    record = source.RECORD.from_document(document)
                except DecodeError as e:
                    self._log.document_skipped(source.kind, e.doc_id, e.message)
                    report.skipped[source.kind] += 1
                    continue

                if isinstance(source, MutableLocalDataSource):
                    applied = await self._merge(source, record)
                else:
                    applied = await self._append(source, record)
                if applied:
                    report.pulled[source.kind] += 1
                    rows_pulled_total.inc(kind=source.kind)
        return Ok(report)

    async def _merge(self, source: MutableLocalDataSource, remote) -> bool:
        """Last-writer-wins on the record timestamp; a tie keeps local."""
        local = await source.get_by_id(remote.record_id)
        if local is not None:
            self._log.conflict_resolved(source.kind, remote.record_id, local.timestamp, remote.timestamp)
            if remote.timestamp <= local.timestamp:
                return False
        await source.upsert(remote)
        return True

    async def _append(self, source: StatusHistoryLocalDataSource, remote) -> bool:
        """History rows are immutable: insert unknown ids, ignore known ones."""
        if await source.get_by_id(remote.record_id) is not None:
            return False
        await source.insert(remote)
        await source.mark_synced(remote.record_id)
        return True
