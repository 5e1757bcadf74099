from __future__ import annotations

import time
from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Any, Callable, DefaultDict, Deque, List, Optional

from macro_core.event_types import EventType, as_event_type


@dataclass(frozen=True)
class Event:
    type: EventType
    payload: Any = None  # MUST NOT be dict
    ts: float = field(default_factory=time.time)


Handler = Callable[[Event], None]


class EventBus:
    """
    Typed-payload EventBus (single-threaded).

    Rules:
    - Event.payload must NOT be a dict (runtime enforced).
    - post(event_type, **kwargs) converts kwargs into the typed payload dataclass
      of a known event type.
    - Events are queued; handlers only run inside dispatch_pending(), so a service
      that posts never re-enters UI code in the middle of a mutation.
    """

    def __init__(self) -> None:
        self._q: Deque[Event] = deque()
        self._handlers: DefaultDict[EventType, List[Handler]] = defaultdict(list)

    # ---------- publish side ----------
    def publish(self, event: Event) -> None:
        if not isinstance(event, Event):
            raise TypeError("publish() expects an Event")
        if isinstance(event.payload, dict):
            raise TypeError(f"dict payload is not allowed for {event.type.value}")
        self._q.append(event)

    def post_payload(self, event_type: EventType | str, payload: Any = None) -> None:
        et = as_event_type(event_type)
        self.publish(Event(type=et, payload=payload))

    def post(self, event_type: EventType | str, **kwargs: Any) -> None:
        et = as_event_type(event_type)

        from macro_core.events.payloads import (
            DirtyStateChangedPayload,
            RecordDeletedPayload,
            RecordUpdatedPayload,
        )

        def require(name: str) -> Any:
            if name not in kwargs:
                raise TypeError(f"{et.value} missing required field: {name}")
            return kwargs[name]

        def as_str(v: Any) -> str:
            return v if isinstance(v, str) else str(v)

        if et is EventType.DIRTY_STATE_CHANGED:
            self.post_payload(et, DirtyStateChangedPayload(dirty=bool(require("dirty"))))
            return

        if et in (EventType.RECORD_UPDATED, EventType.RECORD_DELETED):
            cls = RecordUpdatedPayload if et is EventType.RECORD_UPDATED else RecordDeletedPayload
            self.post_payload(
                et,
                cls(
                    record_type=as_str(require("record_type")),  # type: ignore[arg-type]
                    name=as_str(require("name")),
                    collection=as_str(kwargs.get("collection", "") or ""),
                    source=as_str(kwargs.get("source", "") or ""),
                    saved=bool(kwargs.get("saved", False)),
                ),
            )
            return

        if not kwargs:
            self.post_payload(et, None)
            return

        raise TypeError(f"{et.value} does not support kwargs payload; use post_payload() with a typed payload")

    # ---------- subscribe side ----------
    def subscribe(self, event_type: EventType | str, handler: Handler) -> None:
        et = as_event_type(event_type)
        if handler is None:
            raise ValueError("handler cannot be None")
        self._handlers[et].append(handler)

    def unsubscribe(self, event_type: EventType | str, handler: Handler) -> None:
        et = as_event_type(event_type)
        if et not in self._handlers:
            return
        self._handlers[et] = [h for h in self._handlers[et] if h is not handler]

    # ---------- dispatch side ----------
    def dispatch_pending(
        self,
        *,
        max_events: int = 200,
        on_error: Optional[Callable[[Event, Exception], None]] = None,
    ) -> int:
        """
        Deliver up to `max_events` queued events in FIFO order.

        A failing handler does not stop dispatch of later events when `on_error`
        is given; without `on_error` the exception propagates to the caller.
        """
        dispatched = 0
        while dispatched < max_events and self._q:
            ev = self._q.popleft()
            dispatched += 1
            try:
                self._dispatch_one(ev)
            except Exception as e:
                if on_error is None:
                    raise
                on_error(ev, e)
        return dispatched

    def _dispatch_one(self, ev: Event) -> None:
        specific = list(self._handlers.get(ev.type, []))
        wildcard = list(self._handlers.get(EventType.ANY, []))
        for h in specific:
            h(ev)
        for h in wildcard:
            h(ev)

    def pending_count(self) -> int:
        return len(self._q)
