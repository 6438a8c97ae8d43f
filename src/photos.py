"""Per-card profile photo fetches that a newer request or an unmount can invalidate."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

PhotoFetcher = Callable[[str], Awaitable[str | None]]


@dataclass
class _Request:
    person_id: str
    cancelled: bool = False


class PhotoLoader:
    """
    Load photo URLs for cards without letting a stale response win.

    Every request gets its own cancellation flag. Requesting the same person again,
    or releasing the card, raises the flag of the outstanding request; its result is
    dropped when the fetch eventually resolves. Must be used from a running event loop.
    """

    def __init__(self, fetch: PhotoFetcher):
        self._fetch = fetch
        self._pending: dict[str, _Request] = {}
        self.photos: dict[str, str | None] = {}

    def request(
        self, person_id: str, on_loaded: Callable[[str, str | None], None] | None = None
    ) -> asyncio.Task:
        previous = self._pending.get(person_id)
        if previous is not None:
            previous.cancelled = True
        req = _Request(person_id)
        self._pending[person_id] = req
        return asyncio.ensure_future(self._run(req, on_loaded))

    def release(self, person_id: str) -> None:
        """The card went away: ignore whatever its pending fetch returns."""
        req = self._pending.pop(person_id, None)
        if req is not None:
            req.cancelled = True
        self.photos.pop(person_id, None)

    def is_pending(self, person_id: str) -> bool:
        return person_id in self._pending

    async def _run(self, req: _Request, on_loaded) -> None:
        try:
            url = await self._fetch(req.person_id)
        except Exception:
            logger.exception("Error loading photo for %s", req.person_id)
            url = None

        if req.cancelled:
            return
        self._pending.pop(req.person_id, None)
        self.photos[req.person_id] = url
        if on_loaded is not None:
            on_loaded(req.person_id, url)
