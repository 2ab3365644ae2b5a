"""SyncEngine: incremental, debounced, offline-tolerant block synchronization.

The engine reconciles a working set with two stores:

- the local durable cache, written on every attempt (it powers restart and
  offline recovery), and
- the remote store, which receives only the difference between the working
  set and the last successfully reconciled one (the baseline).

State machine: idle -> syncing -> synced | error; synced and error go back
to syncing on the next attempt. A failed remote write leaves the baseline
untouched, so the next triggered sync recomputes and resubmits the same
diff. There is no background retry timer.

No exception escapes ``sync_blocks``, ``initial_load`` or the load/probe
helpers; failures surface through ``status`` and ``last_error``.
"""

import asyncio
from datetime import datetime
from typing import Callable, Iterable, Optional, Sequence

from pydantic import ValidationError

from blocknote.models.block import Block, deserialize_blocks, serialize_blocks
from blocknote.models.sync_state import SyncState, SyncStatus
from blocknote.services.connectivity import ConnectivityMonitor
from blocknote.services.exceptions import LocalCacheError
from blocknote.services.local_cache import LocalCache
from blocknote.services.remote_store import RemoteStore, block_to_record, record_to_block
from blocknote.utils.ids import utc_now
from blocknote.utils.logging import get_logger


logger = get_logger(__name__)

STORAGE_KEY = "blocknote-blocks"
DEFAULT_DEBOUNCE_SECONDS = 0.5


def get_changed_blocks(previous: Sequence[Block], current: Sequence[Block]) -> list[Block]:
    """
    Blocks of ``current`` that are new or newer than in ``previous``.

    Args:
        previous: Baseline working set
        current: Candidate working set

    Returns:
        Changed blocks in ``current`` order
    """
    baseline = {block.id: block.updated_at for block in previous}
    return [
        block for block in current
        if block.id not in baseline or block.updated_at > baseline[block.id]
    ]


def get_deleted_block_ids(previous: Sequence[Block], current: Sequence[Block]) -> list[str]:
    """Ids present in ``previous`` but absent from ``current``, in baseline order."""
    current_ids = {block.id for block in current}
    return [block.id for block in previous if block.id not in current_ids]


class SyncEngine:
    """
    Synchronizes working sets with a local cache and an optional remote store.

    Example:
        >>> engine = SyncEngine(FileLocalCache(cache_dir), remote=RestRemoteStore(cfg))
        >>> blocks = await engine.initial_load()
        >>> engine.debounced_sync(blocks)   # after each mutation
        >>> await engine.flush()            # before shutdown
    """

    def __init__(
        self,
        local_cache: LocalCache,
        remote: Optional[RemoteStore] = None,
        connectivity: Optional[ConnectivityMonitor] = None,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        cache_key: str = STORAGE_KEY,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize sync engine.

        Args:
            local_cache: Durable key/blob cache for the working set
            remote: Remote store, or None for local-only mode
            connectivity: Online/offline signal (defaults to always online)
            debounce_seconds: Delay between the last mutation and its sync
            cache_key: Key holding the serialized working set
            clock: Time source for last_synced_at
        """
        self.local_cache = local_cache
        self.remote = remote
        self.connectivity = connectivity or ConnectivityMonitor()
        self.debounce_seconds = debounce_seconds
        self.cache_key = cache_key
        self._clock = clock

        self.status = SyncStatus.IDLE
        self.last_error: Optional[str] = None
        self.is_remote_connected = False
        self._probe_failed = False
        self._last_synced_at: Optional[datetime] = None
        self._last_upserted = 0
        self._last_deleted = 0

        self._previous_snapshot: tuple[Block, ...] = ()

        # Single-flight guard around read-diff-write of the baseline
        self._lock = asyncio.Lock()

        self._debounce_handle: Optional[asyncio.TimerHandle] = None
        self._pending_blocks: Optional[list[Block]] = None
        self._inflight: set[asyncio.Task] = set()
        self._disposed = False

    # -- observable state ----------------------------------------------------

    @property
    def is_online(self) -> bool:
        return self.connectivity.is_online

    @property
    def remote_configured(self) -> bool:
        return self.remote is not None and self.remote.is_configured

    @property
    def previous_snapshot(self) -> tuple[Block, ...]:
        """Last working set reconciled with the remote (the diff baseline)."""
        return self._previous_snapshot

    @property
    def has_pending_sync(self) -> bool:
        """True while a debounced sync is scheduled but not started."""
        return self._debounce_handle is not None

    @property
    def state(self) -> SyncState:
        return SyncState(
            status=self.status,
            last_error=self.last_error,
            is_online=self.is_online,
            is_remote_connected=self.is_remote_connected,
            last_synced_at=self._last_synced_at,
            upserted=self._last_upserted,
            deleted=self._last_deleted,
        )

    def set_previous_snapshot(self, blocks: Iterable[Block]) -> None:
        """Seed the baseline (after an initial load performed elsewhere)."""
        self._previous_snapshot = tuple(blocks)

    # -- local cache ---------------------------------------------------------

    def save_to_local_cache(self, blocks: Sequence[Block]) -> bool:
        """Persist the working set; failures are logged, never raised."""
        try:
            self.local_cache.set(self.cache_key, serialize_blocks(blocks))
            return True
        except (LocalCacheError, OSError, ValueError) as e:
            logger.warning("local_cache_save_failed", key=self.cache_key, error=str(e))
            return False

    def load_from_local_cache(self) -> list[Block]:
        """Read the cached working set; missing or unreadable yields []."""
        try:
            blob = self.local_cache.get(self.cache_key)
            if not blob:
                return []
            return deserialize_blocks(blob)
        except (LocalCacheError, OSError, ValidationError, ValueError) as e:
            logger.warning("local_cache_load_failed", key=self.cache_key, error=str(e))
            return []

    # -- remote --------------------------------------------------------------

    async def check_remote_connection(self) -> bool:
        """Probe the remote; a failed probe puts the engine in local-only mode."""
        if not self.remote_configured:
            self.is_remote_connected = False
            return False

        try:
            reachable = bool(await self.remote.probe())
        except Exception as e:
            logger.warning("remote_probe_error", error=str(e))
            reachable = False

        self.is_remote_connected = reachable
        self._probe_failed = not reachable
        logger.info("remote_probe_completed", reachable=reachable)
        return reachable

    async def load_from_remote(self) -> Optional[list[Block]]:
        """
        Fetch the ordered remote working set.

        Returns:
            Live blocks (tombstoned records dropped), [] if the remote is
            empty, or None if it is unconfigured, unreachable or malformed
        """
        if not self.remote_configured:
            logger.info("remote_not_configured", mode="local_only")
            self.is_remote_connected = False
            return None

        try:
            rows = await self.remote.fetch_all()
            blocks = [record_to_block(row) for row in rows]
        except (ValidationError, KeyError, TypeError) as e:
            logger.error("remote_records_invalid", error=str(e))
            return None
        except Exception as e:
            logger.warning("remote_load_failed", error=str(e))
            self.is_remote_connected = False
            return None

        self.is_remote_connected = True
        self._probe_failed = False

        live = [block for block in blocks if not block.is_deleted]
        if len(live) != len(blocks):
            logger.info("remote_tombstones_dropped", count=len(blocks) - len(live))
        return live

    async def initial_load(self) -> list[Block]:
        """
        Load the working set at startup and seed the baseline with it.

        Prefers the remote; falls back to the local cache when the remote
        is unconfigured, offline, unreachable or empty.
        """
        blocks: Optional[list[Block]] = None
        source = "local"

        if self.remote_configured and self.is_online:
            blocks = await self.load_from_remote()
            if blocks:
                source = "remote"

        if not blocks:
            blocks = self.load_from_local_cache()

        self._previous_snapshot = tuple(blocks)
        logger.info("initial_load_completed", source=source, count=len(blocks))
        return blocks

    # -- sync ----------------------------------------------------------------

    async def sync_blocks(self, blocks: Iterable[Block], force: bool = False) -> None:
        """
        Reconcile ``blocks`` with the local cache and the remote store.

        Args:
            blocks: Candidate working set
            force: Bypass the offline gate and upsert every block
        """
        blocks = list(blocks)
        self.status = SyncStatus.SYNCING
        self.last_error = None

        self.save_to_local_cache(blocks)

        async with self._lock:
            if not self.remote_configured:
                self._previous_snapshot = tuple(blocks)
                self._mark_synced(0, 0)
                return

            if not force and (not self.is_online or self._probe_failed):
                # Local cache is authoritative until connectivity returns
                logger.info("sync_local_only", online=self.is_online, probe_failed=self._probe_failed)
                self.status = SyncStatus.SYNCED
                return

            baseline = self._previous_snapshot
            changed = blocks if force else get_changed_blocks(baseline, blocks)
            deleted_ids = get_deleted_block_ids(baseline, blocks)
            positions = {block.id: i for i, block in enumerate(blocks)}

            logger.debug(
                "sync_diff_computed",
                force=force,
                changed=[b.id for b in changed],
                deleted=deleted_ids,
            )

            try:
                if changed:
                    await self.remote.upsert_batch(
                        [block_to_record(block, positions[block.id]) for block in changed]
                    )
                if deleted_ids:
                    await self.remote.delete_batch(deleted_ids)
            except Exception as e:
                # Baseline stays stale so the next sync resubmits this diff
                self.status = SyncStatus.ERROR
                self.last_error = str(e) or type(e).__name__
                logger.error(
                    "remote_sync_failed",
                    operation=getattr(e, "operation", None),
                    error=self.last_error,
                    changed=len(changed),
                    deleted=len(deleted_ids),
                )
                return

            self._previous_snapshot = tuple(blocks)
            self.is_remote_connected = True
            self._probe_failed = False
            self._mark_synced(len(changed), len(deleted_ids))
            logger.info("sync_completed", upserted=len(changed), deleted=len(deleted_ids))

    def _mark_synced(self, upserted: int, deleted: int) -> None:
        self.status = SyncStatus.SYNCED
        self._last_synced_at = self._clock()
        self._last_upserted = upserted
        self._last_deleted = deleted

    async def force_sync(self, blocks: Iterable[Block]) -> None:
        """Sync now, skipping the debounce window and the offline gate."""
        self._cancel_pending()
        await self.sync_blocks(blocks, force=True)

    def debounced_sync(self, blocks: Iterable[Block]) -> None:
        """
        Schedule a sync of ``blocks`` after the debounce window.

        A pending (not yet started) sync is cancelled and replaced, so a
        burst of mutations produces one sync of the last working set. A sync
        that is already running is never cancelled. Must be called from
        within a running event loop.
        """
        if self._disposed:
            logger.debug("debounced_sync_ignored", reason="disposed")
            return

        loop = asyncio.get_running_loop()
        self._cancel_pending()
        self._pending_blocks = list(blocks)
        self._debounce_handle = loop.call_later(self.debounce_seconds, self._fire_pending)
        logger.debug("sync_scheduled", delay=self.debounce_seconds, count=len(self._pending_blocks))

    def _cancel_pending(self) -> None:
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
        self._debounce_handle = None
        self._pending_blocks = None

    def _fire_pending(self) -> None:
        blocks = self._pending_blocks or []
        self._debounce_handle = None
        self._pending_blocks = None

        task = asyncio.get_running_loop().create_task(self.sync_blocks(blocks))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def flush(self) -> None:
        """Run any pending debounced sync now and wait for in-flight syncs."""
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
            self._fire_pending()

        if self._inflight:
            await asyncio.gather(*list(self._inflight))

    def dispose(self) -> None:
        """Cancel the pending debounce timer; in-flight syncs still complete."""
        self._cancel_pending()
        self._disposed = True
        logger.debug("sync_engine_disposed", inflight=len(self._inflight))
