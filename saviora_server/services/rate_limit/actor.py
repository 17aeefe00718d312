"""Sliding-window admission control owned by a single per-identity actor."""

from __future__ import annotations

from typing import Callable, Dict, Optional, Protocol, Union

from pydantic import ValidationError

from ...errors import BadRequest, StaleState, StorageFailure
from ...logging_config import logger
from ...models import RateLimitDecision, RateLimitRequest, RateLimitState, ViewIncrement
from ...utils.timestamps import epoch_ms, ms_to_iso
from .storage import ActorStorage


STATE_KEY = "st"
VIEWS_KEY = "viewsBuffer"

Clock = Callable[[], int]
ActorResult = Union[RateLimitDecision, ViewIncrement]


class ViewSink(Protocol):
    def add_dream_views(self, counts: Dict[str, int]) -> None:  # pragma: no cover - typing protocol
        ...


class RateLimiterActor:
    """Tracks a request window for one identity using only its private storage.

    Calls for the same key must be serialized by the hosting runtime; the actor
    itself holds no locks. Every housekeeping fault degrades toward admitting
    traffic.
    """

    def __init__(
        self,
        storage: ActorStorage,
        *,
        stale_buffer_ms: int,
        alarm_interval_ms: int,
        clock: Clock = epoch_ms,
        view_sink: Optional[ViewSink] = None,
    ) -> None:
        self._storage = storage
        self._stale_buffer_ms = stale_buffer_ms
        self._alarm_interval_ms = alarm_interval_ms
        self._clock = clock
        self._view_sink = view_sink

    @property
    def key(self) -> str:
        return self._storage.actor_key

    def evaluate(self, request: RateLimitRequest) -> ActorResult:
        now = self._clock()
        self._ensure_alarm(now)

        if request.action == "increment_view":
            return self._increment_view(request.dream_id)

        mutating = request.action != "get"
        state = self._load_state(now, heal=mutating)

        if not state.window_open() or now > state.reset_at:
            state = RateLimitState(count=0, reset_at=now + request.window_ms)

        if request.action == "hit":
            state.count += 1
            self._save_state(state)
            logger.debug(
                "rate limit hit",
                extra={"actor": self.key, "count": state.count, "reset_at": ms_to_iso(state.reset_at)},
            )
        elif request.action == "reset":
            state = RateLimitState(count=0, reset_at=now + request.window_ms)
            self._save_state(state)
            logger.info("rate limit reset", extra={"actor": self.key})

        return RateLimitDecision(
            allowed=state.count <= request.max_requests,
            count=state.count,
            remaining=max(0, request.max_requests - state.count),
            reset_at=state.reset_at,
        )

    def alarm(self) -> None:
        """Wake-up handler: reclaim stale state, flush buffered views, re-arm."""
        now = self._clock()
        try:
            try:
                self._read_state(now)
            except StaleState as exc:
                logger.info("reclaiming stale rate limit state", extra={"actor": self.key, "reason": str(exc)})
                self._discard_state()
            except StorageFailure as exc:
                logger.warning("alarm state check failed", extra={"actor": self.key, "error": str(exc)})
            self._flush_views()
        finally:
            self._arm(now)

    # State ------------------------------------------------------------------

    def _read_state(self, now: int) -> RateLimitState:
        raw = self._storage.get(STATE_KEY)
        if raw is None:
            return RateLimitState()
        try:
            state = RateLimitState.model_validate(raw)
        except ValidationError:
            logger.warning("discarding malformed rate limit state", extra={"actor": self.key})
            return RateLimitState()
        if state.window_open() and now > state.reset_at + self._stale_buffer_ms:
            raise StaleState(f"window ended at {ms_to_iso(state.reset_at)}")
        return state

    def _load_state(self, now: int, *, heal: bool) -> RateLimitState:
        try:
            return self._read_state(now)
        except StaleState:
            if heal:
                self._discard_state()
            return RateLimitState()
        except StorageFailure as exc:
            logger.warning(
                "rate limit state unavailable; admitting with fresh window",
                extra={"actor": self.key, "error": str(exc)},
            )
            return RateLimitState()

    def _save_state(self, state: RateLimitState) -> None:
        try:
            self._storage.put(STATE_KEY, state.model_dump(by_alias=True))
        except StorageFailure as exc:
            logger.warning("rate limit state write failed", extra={"actor": self.key, "error": str(exc)})

    def _discard_state(self) -> None:
        try:
            self._storage.delete(STATE_KEY)
        except StorageFailure as exc:
            logger.warning("stale state delete failed", extra={"actor": self.key, "error": str(exc)})

    # Alarms -----------------------------------------------------------------

    def _ensure_alarm(self, now: int) -> None:
        try:
            if self._storage.get_alarm() is None:
                self._storage.set_alarm(now + self._alarm_interval_ms)
        except StorageFailure as exc:
            logger.warning("failed to arm actor alarm", extra={"actor": self.key, "error": str(exc)})

    def _arm(self, now: int) -> None:
        try:
            self._storage.set_alarm(now + self._alarm_interval_ms)
        except StorageFailure as exc:
            logger.error(
                "failed to re-arm actor alarm; dormant until next request",
                extra={"actor": self.key, "error": str(exc)},
            )

    # Views ------------------------------------------------------------------

    def _increment_view(self, dream_id: Optional[str]) -> ViewIncrement:
        if not dream_id:
            raise BadRequest("dreamId required")
        buffer: Dict[str, int] = self._storage.get(VIEWS_KEY) or {}
        buffer[dream_id] = int(buffer.get(dream_id, 0)) + 1
        self._storage.put(VIEWS_KEY, buffer)
        logger.debug(
            "view buffered",
            extra={"actor": self.key, "dream_id": dream_id, "buffered": buffer[dream_id]},
        )
        return ViewIncrement(count=buffer[dream_id], buffer_size=len(buffer))

    def _flush_views(self) -> None:
        if self._view_sink is None:
            return
        try:
            batch: Dict[str, int] = self._storage.get(VIEWS_KEY) or {}
            if not batch:
                return
            # Cleared before the write so a committed batch is never replayed
            self._storage.put(VIEWS_KEY, {})
        except StorageFailure as exc:
            logger.warning(
                "view buffer unavailable; flush postponed",
                extra={"actor": self.key, "error": str(exc)},
            )
            return

        try:
            self._view_sink.add_dream_views(batch)
        except StorageFailure as exc:
            logger.warning(
                "view flush failed; counts put back in the buffer",
                extra={"actor": self.key, "error": str(exc)},
            )
            self._restore_views(batch)
            return
        logger.info("flushed buffered views", extra={"actor": self.key, "dreams": len(batch)})

    def _restore_views(self, batch: Dict[str, int]) -> None:
        try:
            self._storage.put(VIEWS_KEY, batch)
        except StorageFailure as exc:
            logger.error(
                "buffered views lost",
                extra={"actor": self.key, "dreams": len(batch), "error": str(exc)},
            )


__all__ = ["ActorResult", "Clock", "RateLimiterActor", "STATE_KEY", "VIEWS_KEY", "ViewSink"]
