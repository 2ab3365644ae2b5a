"""OutlineSession: wires BlockStore, TreeNavigator and SyncEngine together.

The session is the composing layer: every effective store mutation is
forwarded to the engine's debounced sync entry point, and ``open`` runs the
initial load (seeding the engine's baseline) followed by a forced sync
before anything is read.
"""

import asyncio
from pathlib import Path
from typing import Optional

from blocknote.models.config import Config
from blocknote.models.sync_state import SyncState
from blocknote.services.block_store import BlockStore
from blocknote.services.connectivity import ConnectivityMonitor
from blocknote.services.local_cache import FileLocalCache, LocalCache
from blocknote.services.remote_store import RemoteStore, RestRemoteStore
from blocknote.services.sync_engine import SyncEngine
from blocknote.services.tree_navigator import TreeNavigator
from blocknote.utils.logging import get_logger


logger = get_logger(__name__)


class OutlineSession:
    """
    One open outline: working set, navigation and sync.

    Example:
        >>> session = OutlineSession.from_config(config)
        >>> await session.open()
        >>> session.store.update_content(block_id, "<p>new</p>")
        >>> await session.close()   # flushes the debounced sync
    """

    def __init__(self, engine: SyncEngine, store: Optional[BlockStore] = None):
        """
        Initialize session.

        Args:
            engine: Sync engine with its collaborators injected
            store: Block store (a new empty one if omitted)
        """
        self.engine = engine
        self.store = store or BlockStore()
        self.navigator = TreeNavigator(self.store)
        self.store.subscribe(self.engine.debounced_sync)
        self.engine.connectivity.subscribe(self._on_connectivity_changed)
        self.is_open = False

    @classmethod
    def from_config(
        cls,
        config: Config,
        connectivity: Optional[ConnectivityMonitor] = None,
        local_cache: Optional[LocalCache] = None,
        remote: Optional[RemoteStore] = None,
    ) -> "OutlineSession":
        """
        Build a session from configuration.

        Args:
            config: Loaded configuration
            connectivity: Connectivity signal (defaults to online)
            local_cache: Override the file cache from config.cache
            remote: Override the remote store from config.remote
        """
        if local_cache is None:
            local_cache = FileLocalCache(Path(config.cache.directory))
        if remote is None and config.remote is not None:
            remote = RestRemoteStore(config.remote)

        engine = SyncEngine(
            local_cache=local_cache,
            remote=remote,
            connectivity=connectivity,
            debounce_seconds=config.sync.debounce_ms / 1000,
        )
        return cls(engine)

    async def open(self) -> None:
        """
        Load the working set, seed the baseline, then force a sync.

        While the host reports offline the startup sync is a plain one, so
        it only refreshes the local cache.
        """
        blocks = await self.engine.initial_load()
        self.store.reset(blocks)
        self.is_open = True
        if self.engine.is_online:
            await self.engine.force_sync(self.store.blocks)
        else:
            await self.engine.sync_blocks(self.store.blocks)
        logger.info("session_opened", count=len(blocks), status=self.engine.status.value)

    def _on_connectivity_changed(self, online: bool) -> None:
        # Edits kept local while offline go out once the host is back
        if online and self.is_open:
            logger.info("session_back_online", count=len(self.store))
            self.engine.debounced_sync(self.store.blocks)

    async def watch_connectivity(self, interval: float = 30.0, stop: Optional[asyncio.Event] = None) -> None:
        """
        Poll remote reachability and push the result as connectivity.

        Runs until ``stop`` is set or the task is cancelled.
        """
        await self.engine.connectivity.poll(self.engine.check_remote_connection, interval=interval, stop=stop)

    async def sync_now(self) -> SyncState:
        """Explicit "sync now": bypasses debounce and the offline gate."""
        await self.engine.force_sync(self.store.blocks)
        return self.engine.state

    async def close(self) -> SyncState:
        """Flush pending syncs and dispose the engine."""
        await self.engine.flush()
        self.engine.dispose()
        self.is_open = False
        logger.info("session_closed", status=self.engine.status.value)
        return self.engine.state
