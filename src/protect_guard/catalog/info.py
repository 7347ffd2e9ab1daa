"""Read-through cache for evaluation template information.

The evaluation service exposes its template catalogue as a single list.
:class:`EvalInfoCache` fetches that list on a miss and keeps every entry
it returned.  Concurrent misses share one in-flight fetch, so a burst of
lookups costs a single remote call.
"""
from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from protect_guard.core.errors import EvalTemplateNotFound

InfoFetcher = Callable[[], Awaitable[list[dict[str, Any]]]]


class EvalInfoCache:
    """Name-keyed cache of evaluation template records.

    Parameters
    ----------
    fetch:
        Coroutine function returning the full list of template records.
        Each record is a mapping with at least a ``name`` key.
    """

    def __init__(self, fetch: InfoFetcher) -> None:
        self._fetch = fetch
        self._entries: dict[str, dict[str, Any]] = {}
        self._inflight: asyncio.Future[None] | None = None
        self.fetch_count = 0

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    async def get(self, name: str) -> dict[str, Any]:
        """Return the record for *name*, fetching the catalogue on a miss.

        Raises
        ------
        EvalTemplateNotFound
            If the fetched catalogue has no record called *name*.
        """
        if name in self._entries:
            return self._entries[name]

        await self._refresh()

        try:
            return self._entries[name]
        except KeyError:
            raise EvalTemplateNotFound(
                f"Evaluation template with name '{name}' not found",
                details={"name": name},
            ) from None

    async def _refresh(self) -> None:
        if self._inflight is not None:
            # shield: one waiter being cancelled must not cancel the shared fetch
            await asyncio.shield(self._inflight)
            return

        loop = asyncio.get_running_loop()
        self._inflight = loop.create_future()
        try:
            self.fetch_count += 1
            records = await self._fetch()
            for record in records:
                record_name = record.get("name")
                if record_name:
                    self._entries[record_name] = record
        except asyncio.CancelledError:
            self._inflight.cancel()
            raise
        except Exception as exc:
            self._inflight.set_exception(exc)
            # Mark retrieved so an unawaited failure is not reported.
            self._inflight.exception()
            raise
        else:
            self._inflight.set_result(None)
        finally:
            self._inflight = None

    def invalidate(self) -> None:
        """Drop every cached record."""
        self._entries.clear()
