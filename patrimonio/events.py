"""In-process publish/subscribe for store changes and rejected writes.

Two kinds of events travel on the bus:

* StoreChange: published after every successful commit, so derived views
  (query_service.LiveQuery, the /api/events stream) recompute without polling.
* WriteRejected: published when a commit fails. The mutation layer does not
  raise these back to the caller; they are kept per user on the error channel
  and streamed to connected clients.
"""
import asyncio
import json
import logging
import threading
from collections import defaultdict, deque
from collections.abc import AsyncGenerator, Callable
from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field

from patrimonio.config import settings

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class StoreChange(BaseModel):
    kind: Literal["change"] = "change"
    user_id: str
    collection: str
    ids: list[str] = []
    occurred_at: datetime = Field(default_factory=_now)


class WriteRejected(BaseModel):
    kind: Literal["permission-error"] = "permission-error"
    user_id: str
    operation: str          # create / update
    path: str               # e.g. "assets/<id>"
    message: str
    payload: dict[str, Any] = {}
    occurred_at: datetime = Field(default_factory=_now)


Event = StoreChange | WriteRejected
Subscriber = Callable[[Event], None]


class EventBus:
    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback; returns a function that unregisters it."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, event: Event) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(event)
            except Exception:
                # keep delivering to the remaining subscribers
                logger.exception("Assinante de eventos falhou ao processar %s", event.kind)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)


class ErrorChannel:
    """Keeps the most recent rejected writes per user."""

    def __init__(self, bus: EventBus, maxlen: int = 100) -> None:
        self._bus = bus
        self._maxlen = maxlen
        self._errors: dict[str, deque[WriteRejected]] = defaultdict(lambda: deque(maxlen=self._maxlen))
        self._lock = threading.Lock()

    def report(self, error: WriteRejected) -> None:
        logger.warning(
            "Gravação rejeitada (%s %s) para usuário %s: %s",
            error.operation, error.path, error.user_id, error.message,
        )
        with self._lock:
            self._errors[error.user_id].append(error)
        self._bus.publish(error)

    def recent(self, user_id: str) -> list[WriteRejected]:
        with self._lock:
            return list(self._errors.get(user_id, ()))

    def drain(self, user_id: str) -> list[WriteRejected]:
        with self._lock:
            errors = self._errors.pop(user_id, deque())
        return list(errors)

    def clear(self) -> None:
        with self._lock:
            self._errors.clear()


bus = EventBus()
error_channel = ErrorChannel(bus, maxlen=settings.ERROR_CHANNEL_SIZE)


def format_sse(event: Event) -> str:
    payload = event.model_dump(mode="json")
    return f"event: {event.kind}\ndata: {json.dumps(payload, ensure_ascii=False)}\n\n"


async def stream_events(user_id: str, event_bus: EventBus = bus) -> AsyncGenerator[str, None]:
    """Yield SSE messages for one user until the client disconnects.

    Publishers run in worker threads (sync routes), so events are handed to
    the event loop with call_soon_threadsafe.
    """
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue[str] = asyncio.Queue(maxsize=256)

    def on_event(event: Event) -> None:
        if event.user_id != user_id:
            return
        loop.call_soon_threadsafe(_offer, queue, format_sse(event))

    unsubscribe = event_bus.subscribe(on_event)
    try:
        yield ": connected\n\n"
        while True:
            yield await queue.get()
    finally:
        unsubscribe()


def _offer(queue: asyncio.Queue, message: str) -> None:
    try:
        queue.put_nowait(message)
    except asyncio.QueueFull:
        logger.warning("Fila SSE cheia, evento descartado")
