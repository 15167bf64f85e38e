"""Cancellation sentinel and one-shot cancellation token."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)


class _Cancel:
    """Type of the :data:`CANCEL` sentinel; there is only ever one instance."""

    _instance: _Cancel | None = None

    def __new__(cls) -> _Cancel:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "CANCEL"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "CANCEL"


CANCEL = _Cancel()
"""Resolved value of any prompt the user or caller cancelled."""


def is_cancel(value: Any) -> bool:
    """Return ``True`` if *value* is the cancel sentinel."""
    return value is CANCEL


class CancellationToken:
    """A latch that can be fired once and never reset.

    Listeners registered with :meth:`add_listener` are called exactly once,
    either when the token fires or immediately if it already has.
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._listeners: list[Callable[[], None]] = []
        self._event: asyncio.Event | None = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Fire the token.  Later calls do nothing."""
        if self._cancelled:
            return
        self._cancelled = True
        logger.debug("cancellation token fired")
        listeners, self._listeners = self._listeners, []
        if self._event is not None:
            self._event.set()
        for listener in listeners:
            listener()

    def add_listener(self, listener: Callable[[], None]) -> Callable[[], None]:
        """Call *listener* on cancellation; returns a function that unregisters it."""
        if self._cancelled:
            listener()
            return lambda: None
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    async def wait(self) -> None:
        """Wait until the token fires."""
        if self._cancelled:
            return
        if self._event is None:
            self._event = asyncio.Event()
        await self._event.wait()

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise asyncio.CancelledError()
