"""
coordinator.py - Sync lifecycle and observable status.

Triggers a full sync whenever a user signs in, runs explicit
syncs on request, and publishes SyncState to observers. At most
one engine run is in flight; overlapping requests for the same
user share its result.
"""

import asyncio
import dataclasses
import logging
from typing import AsyncIterator, Optional

from jobtrack_sync.auth.base import AuthProvider
from jobtrack_sync.clock import Clock
from jobtrack_sync.errors import AuthError
from jobtrack_sync.local import LocalSources
from jobtrack_sync.metrics import pending_rows
from jobtrack_sync.observable import ObservableValue
from jobtrack_sync.remote.base import RemoteStore
from jobtrack_sync.result import Err, Result
from jobtrack_sync.sync.engine import SyncEngine, SyncReport
from jobtrack_sync.sync.state import SyncState

logger = logging.getLogger(__name__)


class SyncCoordinator:
    """
    Owns SyncState and the single in-flight sync.

    State machine: idle -> syncing -> idle (success) | idle (error).
    A running sync is never cancelled; stop() only ends the
    auth subscription.
    """

    def __init__(
        self,
        sources: LocalSources,
        remote: RemoteStore,
        auth: AuthProvider,
        clock: Clock,
        last_synced_at_epoch_ms: Optional[int] = None,
    ):
        self._sources = sources
        self._remote = remote
        self._auth = auth
        self._clock = clock
        self._state = ObservableValue(SyncState(last_synced_at_epoch_ms=last_synced_at_epoch_ms))
        self._in_flight: Optional[asyncio.Future] = None
        self._in_flight_user: Optional[str] = None
        self._auth_task: Optional[asyncio.Task] = None

    @property
    def state(self) -> SyncState:
        return self._state.value

    @property
    def sync_state(self) -> ObservableValue[SyncState]:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._auth_task is not None and not self._auth_task.done()

    def observe_state(self) -> AsyncIterator[SyncState]:
        return self._state.observe()

    def start(self) -> None:
        """Begin syncing on every sign-in. Must be called inside a running loop."""
        if self.is_running:
            return
        self._auth_task = asyncio.get_running_loop().create_task(self._watch_auth())
        logger.info(f"SyncCoordinator started (remote={self._remote.name})")

    async def stop(self) -> None:
        """Stop watching auth state and wait for any in-flight sync."""
        if self._auth_task is not None:
            self._auth_task.cancel()
            try:
                await self._auth_task
            except asyncio.CancelledError:
                pass
            self._auth_task = None
        if self._in_flight is not None and not self._in_flight.done():
            await asyncio.wait([self._in_flight])
        logger.info("SyncCoordinator stopped")

    async def sync_now(self, user_id: Optional[str] = None) -> Result[SyncReport]:
        """
        Run a full sync for user_id (default: the signed-in user).

        Joins the in-flight run when one exists for the same user;
        a run for another user is awaited first.
        """
        user_id = user_id or self._auth.current_user_id()
        if user_id is None:
            return Err(AuthError("Not signed in"))

        while self._in_flight is not None and not self._in_flight.done():
            if self._in_flight_user == user_id:
                logger.debug(f"Joining in-flight sync for {user_id}")
                return await asyncio.shield(self._in_flight)
            await asyncio.wait([self._in_flight])

        self._in_flight_user = user_id
        self._in_flight = asyncio.ensure_future(self._run(user_id))
        return await asyncio.shield(self._in_flight)

    async def refresh_pending(self) -> dict[str, int]:
        """Recompute needs_sync from the local dirty rows."""
        counts = await self._sources.pending_counts()
        for kind, count in counts.items():
            pending_rows.set(count, kind=kind)
        self._update(needs_sync=any(counts.values()))
        return counts

    async def _run(self, user_id: str) -> Result[SyncReport]:
        self._update(is_syncing=True, sync_error=None)
        watermark = self.state.last_synced_at_epoch_ms or 0
        engine = SyncEngine(self._sources, self._remote, self._clock, user_id)

        try:
            result = await engine.perform_full_sync(watermark)
        except Exception as e:
            self._update(is_syncing=False, sync_error=e)
            raise

        if result.is_ok:
            self._state.set(SyncState(
                needs_sync=False,
                last_synced_at_epoch_ms=self._clock.now_ms(),
                is_syncing=False,
                sync_error=None,
            ))
        else:
            self._update(is_syncing=False, sync_error=result.error)
        return result

    async def _watch_auth(self) -> None:
        async for user_id in self._auth.observe_state():
            if user_id is None:
                continue
            logger.info(f"User {user_id} signed in; syncing")
            try:
                await self.sync_now(user_id)
            except Exception:
                # already recorded in SyncState by _run
                logger.exception("Automatic sync crashed")

    def _update(self, **changes) -> None:
        self._state.set(dataclasses.replace(self._state.value, **changes))
