"""Connectivity signal: online/offline state pushed or polled from the host."""

import asyncio
from typing import Awaitable, Callable

from blocknote.utils.logging import get_logger


logger = get_logger(__name__)

ConnectivityListener = Callable[[bool], None]


class ConnectivityMonitor:
    """
    Holds the host's online/offline state and notifies subscribers on change.

    Example:
        >>> monitor = ConnectivityMonitor()
        >>> monitor.subscribe(lambda online: print("online" if online else "offline"))
        >>> monitor.set_online(False)
        offline
    """

    def __init__(self, online: bool = True) -> None:
        self._online = online
        self._listeners: list[ConnectivityListener] = []

    @property
    def is_online(self) -> bool:
        return self._online

    def subscribe(self, listener: ConnectivityListener) -> None:
        """Register a callback invoked with the new state on each transition."""
        self._listeners.append(listener)

    def set_online(self, online: bool) -> None:
        """Push a connectivity event; only transitions notify subscribers."""
        if online == self._online:
            return

        self._online = online
        logger.info("connectivity_changed", online=online)
        for listener in list(self._listeners):
            listener(online)

    async def poll(
        self,
        check: Callable[[], Awaitable[bool]],
        interval: float = 30.0,
        stop: asyncio.Event | None = None,
    ) -> None:
        """
        Poll ``check`` every ``interval`` seconds and push its result.

        A check that raises counts as offline. Runs until ``stop`` is set
        or the task is cancelled.
        """
        stop = stop or asyncio.Event()
        while not stop.is_set():
            try:
                online = await check()
            except Exception as e:
                logger.warning("connectivity_check_failed", error=str(e))
                online = False
            self.set_online(bool(online))

            try:
                await asyncio.wait_for(stop.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass
