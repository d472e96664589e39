"""Device permission gate fed by the presentation layer's permission prompt."""

from __future__ import annotations

import asyncio


class DevicePermissionGate:
    """In-memory fine-location grant for one device/screen."""

    def __init__(self, *, granted: bool = False) -> None:
        self._granted = granted
        self._pending: list[asyncio.Future[bool]] = []

    def has_fine_location_permission(self) -> bool:
        return self._granted

    async def request_permission(self) -> bool:
        """Wait for the next prompt answer unless permission is already held.

        For presentation clients that show the prompt themselves and need to block
        until it is answered. ``LocationSession`` never awaits this: it reports
        ``permission_denied`` and resumes from ``on_permission_result``.
        """
        if self._granted:
            return True
        future: asyncio.Future[bool] = asyncio.get_running_loop().create_future()
        self._pending.append(future)
        try:
            return await future
        finally:
            if future in self._pending:
                self._pending.remove(future)

    def resolve(self, granted: bool) -> None:
        """Record a prompt answer and release anyone waiting in request_permission."""
        self._granted = granted
        pending, self._pending = self._pending, []
        for future in pending:
            if not future.done():
                future.set_result(granted)

    def revoke(self) -> None:
        self._granted = False
