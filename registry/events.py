"""
Audit Event Emitter for the Capability Mint Authority

Every state-changing operation produces a structured event for external
indexers. Events raised inside a call are buffered and only reach the sinks
when the call commits; a rolled-back call publishes nothing.
"""

import json
import logging
import time
import uuid
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from threading import RLock
from typing import Any, Callable, Dict, List, Optional, Union


class EventType(Enum):
    """Audit event types."""
    INITIALIZED = "initialized"
    VERSION_MIGRATED = "version_migrated"
    COLLECTION_MIGRATED = "collection_migrated"
    CREATION_AUTHORITY_ISSUED = "creation_authority_issued"
    COLLECTION_CREATED = "collection_created"
    CONFIGURATION_UPDATED = "configuration_updated"
    SIGNING_POLICY_UPDATED = "signing_policy_updated"
    COLLECTION_ACTIVATED = "collection_activated"
    COLLECTION_DEACTIVATED = "collection_deactivated"
    ASSET_MINTED = "asset_minted"


@dataclass
class Event:
    """Audit event record."""
    event_type: EventType
    payload: Dict[str, Any]
    sender: Optional[str] = None
    tx_digest: Optional[str] = None
    sequence: int = 0
    event_id: str = ""
    timestamp: float = 0.0

    def __post_init__(self):
        """Initialize derived fields."""
        if not self.event_id:
            self.event_id = f"evt_{int(time.time() * 1000000)}_{uuid.uuid4().hex[:8]}"
        if not self.timestamp:
            self.timestamp = time.time()

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['event_type'] = self.event_type.value
        return data


EventSink = Callable[[Event], None]


class MemorySink:
    """Append-only in-memory event log."""

    def __init__(self):
        self.events: List[Event] = []

    def __call__(self, event: Event) -> None:
        self.events.append(event)

    def of_type(self, event_type: EventType) -> List[Event]:
        return [e for e in self.events if e.event_type == event_type]


class JSONLinesSink:
    """Append events to a JSON-lines file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def __call__(self, event: Event) -> None:
        with open(self.path, 'a') as f:
            f.write(json.dumps(event.to_dict(), default=str) + "\n")

    def read(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []
        with open(self.path, 'r') as f:
            return [json.loads(line) for line in f if line.strip()]


class LoggingSink:
    """Forward events to a stdlib logger."""

    def __init__(self, logger_name: str = "registry.events", level: int = logging.INFO):
        self.logger = logging.getLogger(logger_name)
        self.level = level

    def __call__(self, event: Event) -> None:
        self.logger.log(
            self.level,
            f"{event.event_type.value} tx={event.tx_digest} sender={event.sender} "
            f"{json.dumps(event.payload, default=str, sort_keys=True)}"
        )


class EventEmitter:
    """
    Buffered, append-only event emitter.

    ``begin`` opens a buffer for the current call, ``flush`` publishes it to all
    sinks in order, ``discard`` drops it. Outside a call events publish
    immediately.
    """

    def __init__(self, sinks: Optional[List[EventSink]] = None):
        self.logger = logging.getLogger(__name__)
        self.sinks: List[EventSink] = list(sinks) if sinks else [MemorySink()]
        self._buffer: Optional[List[Event]] = None
        self._sequence = 0
        self._lock = RLock()

        self.stats = {
            "events_published": 0,
            "events_discarded": 0,
            "sink_errors": 0,
        }

    @property
    def memory(self) -> Optional[MemorySink]:
        """First in-memory sink, if any."""
        for sink in self.sinks:
            if isinstance(sink, MemorySink):
                return sink
        return None

    def add_sink(self, sink: EventSink) -> None:
        with self._lock:
            self.sinks.append(sink)

    def begin(self) -> None:
        with self._lock:
            self._buffer = []

    def emit(self, event_type: EventType, ctx=None, **payload) -> Event:
        """Record an event for the current call."""
        with self._lock:
            self._sequence += 1
            event = Event(
                event_type=event_type,
                payload=payload,
                sender=getattr(ctx, 'sender', None),
                tx_digest=getattr(ctx, 'digest', None),
                sequence=self._sequence,
            )

            if self._buffer is not None:
                self._buffer.append(event)
            else:
                self._publish([event])

            return event

    def pending(self) -> List[Event]:
        with self._lock:
            return list(self._buffer or [])

    def flush(self) -> List[Event]:
        with self._lock:
            events, self._buffer = self._buffer or [], None
            self._publish(events)
            return events

    def discard(self) -> int:
        with self._lock:
            dropped = len(self._buffer or [])
            self._buffer = None
            self.stats["events_discarded"] += dropped
            return dropped

    def _publish(self, events: List[Event]) -> None:
        for event in events:
            for sink in self.sinks:
                try:
                    sink(event)
                except Exception as e:
                    # The call already committed; a broken sink must not undo it
                    self.stats["sink_errors"] += 1
                    self.logger.error(f"Event sink {sink!r} failed for {event.event_id}: {e}")
            self.stats["events_published"] += 1
