"""Request-lifecycle tokens for outstanding AI calls.

One token per (work order, kind) may be outstanding at a time. Editing or
removing an order bumps its generation, which makes every token issued before
the edit stale: a response that arrives for a stale token is dropped instead
of overwriting newer data.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field

from ulid import ULID

from fieldflow.errors import RequestInFlightError, StaleRequestError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestToken:
    order_id: str
    kind: str  # analyze | invoice
    generation: int
    token: str = field(default_factory=lambda: str(ULID()))


class RequestTracker:
    def __init__(self):
        self._inflight: dict[tuple[str, str], RequestToken] = {}
        self._generations: dict[str, int] = {}
        # Removed orders whose generation is kept until their last request finishes.
        self._removed: set[str] = set()

    def begin(self, order_id: str, kind: str) -> RequestToken:
        key = (order_id, kind)
        if key in self._inflight:
            raise RequestInFlightError(order_id, kind)
        tok = RequestToken(order_id, kind, self._generations.get(order_id, 0))
        self._inflight[key] = tok
        return tok

    def is_current(self, tok: RequestToken) -> bool:
        return (
            tok.order_id not in self._removed
            and self._inflight.get((tok.order_id, tok.kind)) is tok
            and self._generations.get(tok.order_id, 0) == tok.generation
        )

    def ensure_current(self, tok: RequestToken) -> None:
        if not self.is_current(tok):
            logger.warning(f"Dropping stale {tok.kind} response for work order {tok.order_id}")
            raise StaleRequestError(tok.order_id, tok.kind)

    def finish(self, tok: RequestToken) -> None:
        if self._inflight.get((tok.order_id, tok.kind)) is tok:
            del self._inflight[(tok.order_id, tok.kind)]
        if tok.order_id in self._removed:
            self._prune(tok.order_id)

    def invalidate(self, order_id: str) -> None:
        """Mark every outstanding request for ``order_id`` as superseded."""
        self._generations[order_id] = self._generations.get(order_id, 0) + 1

    def forget(self, order_id: str) -> None:
        """The order is gone: invalidate its requests and drop its bookkeeping once they finish."""
        self.invalidate(order_id)
        self._removed.add(order_id)
        self._prune(order_id)

    def _prune(self, order_id: str) -> None:
        if not self.in_flight(order_id):
            self._generations.pop(order_id, None)
            self._removed.discard(order_id)

    def in_flight(self, order_id: str) -> list[str]:
        return sorted(kind for (oid, kind) in self._inflight if oid == order_id)

    def tracked_orders(self) -> int:
        """Orders with bookkeeping still held, for leak checks."""
        return len(self._generations)

    @contextmanager
    def track(self, order_id: str, kind: str):
        tok = self.begin(order_id, kind)
        try:
            yield tok
        finally:
            self.finish(tok)
