"""Trace context for observability across database operations."""

import json
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional


@dataclass
class Span:
    """A single traced unit of work.

    Attributes:
        name: Operation name (e.g., "mongodb")
        trace_id: Identifier of the owning trace
        span_id: Unique identifier for this span
        parent_id: span_id of the parent span, None for a root span
        tags: Key-value tags attached while the span is open
    """

    name: str
    trace_id: str
    span_id: str = field(default_factory=lambda: uuid.uuid4().hex[:16])
    parent_id: Optional[str] = None
    started_at: datetime = field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None
    tags: Dict[str, Any] = field(default_factory=dict)

    def set_tag(self, key: str, value: Any) -> "Span":
        self.tags[key] = value
        return self

    def finish(self) -> None:
        if self.finished_at is None:
            self.finished_at = datetime.now()

    @property
    def finished(self) -> bool:
        return self.finished_at is not None

    def to_dict(self) -> Dict[str, Any]:
        ended_at = self.finished_at or datetime.now()
        return {
            "name": self.name,
            "span_id": self.span_id,
            "parent_id": self.parent_id,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "latency": (ended_at - self.started_at).total_seconds(),
            "tags": self.tags,
        }


@dataclass
class TraceContext:
    """Trace context holding the spans of one logical request.

    Attributes:
        trace_id: Unique identifier for this trace
        started_at: Timestamp when trace was created
        spans: Every span started in this trace, in start order
    """

    trace_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    started_at: datetime = field(default_factory=datetime.now)
    spans: List[Span] = field(default_factory=list)
    collection: str | None = None
    log_file: str | None = None
    finished_at: datetime | None = None
    _active: List[Span] = field(default_factory=list, init=False, repr=False)

    @property
    def finished(self) -> bool:
        return self.finished_at is not None

    @property
    def active_span(self) -> Optional[Span]:
        """Innermost span that is currently open, if any."""
        return self._active[-1] if self._active else None

    def start_span(self, name: str, child_of: Optional[Span] = None) -> Span:
        """Create a span, parented to `child_of` when given. The span is not activated."""
        span = Span(
            name=name,
            trace_id=self.trace_id,
            parent_id=child_of.span_id if child_of is not None else None,
        )
        self.spans.append(span)
        return span

    @contextmanager
    def activate(self, span: Span) -> Iterator[Span]:
        """Make `span` the active span for the duration of the block."""
        self._active.append(span)
        try:
            yield span
        finally:
            self._active.remove(span)

    def to_dict(self) -> Dict[str, Any]:
        ended_at = self.finished_at or datetime.now()
        return {
            "trace_id": self.trace_id,
            "started_at": self.started_at.isoformat(),
            "ended_at": ended_at.isoformat(),
            "total_latency": (ended_at - self.started_at).total_seconds(),
            "collection": self.collection,
            "spans": [span.to_dict() for span in self.spans],
        }

    def finish(self) -> Dict[str, Any]:
        if self.finished_at is None:
            self.finished_at = datetime.now()
        payload = self.to_dict()
        if self.log_file:
            path = Path(self.log_file)
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("a", encoding="utf-8") as f:
                # filters and documents carry ObjectId / datetime values
                f.write(json.dumps(payload, ensure_ascii=False, default=str) + "\n")
        return payload
