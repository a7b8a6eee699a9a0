"""Cooperative cancellation for feed queries.

A :class:`CancellationToken` is handed to a resolution call and passed on
to every feed query it makes. Feed implementations call
:meth:`CancellationToken.raise_if_cancelled` before each request; the
orchestrator also waits on the token so that in-flight queries are
cancelled as soon as it fires.

Typical usage::

    token = CancellationToken()
    task = asyncio.create_task(finder.get_versions(dep, sources, mapping, token))
    ...
    token.cancel()          # task raises OperationCancelledError
"""

from __future__ import annotations

import asyncio
from typing import Optional

from depscout.exceptions import OperationCancelledError


class CancellationToken:
    """A one-shot cancellation signal backed by :class:`asyncio.Event`.

    The event is created lazily, per event loop, so a token may be
    constructed outside a running loop and reused across ``asyncio.run``
    calls.
    """

    __slots__ = ("_event", "_loop", "_cancelled")

    def __init__(self) -> None:
        self._event: Optional[asyncio.Event] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._cancelled = False

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Signal cancellation. Calling it more than once is harmless."""
        self._cancelled = True
        if self._event is not None:
            self._event.set()

    def raise_if_cancelled(self, package_id: Optional[str] = None) -> None:
        """Raise :class:`OperationCancelledError` if cancellation was requested."""
        if self._cancelled:
            raise OperationCancelledError(package_id=package_id)

    async def wait(self) -> None:
        """Block until :meth:`cancel` is called."""
        loop = asyncio.get_running_loop()
        if self._event is None or self._loop is not loop:
            self._event = asyncio.Event()
            self._loop = loop
            if self._cancelled:
                self._event.set()
        await self._event.wait()
