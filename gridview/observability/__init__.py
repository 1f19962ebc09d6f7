"""
Observability & Audit Layer

RESPONSIBILITY: Recording what the diagram core did and why
ALLOWED INPUTS: Events from any layer
OUTPUTS: AuditLogEntry records, queryable read-only

WHAT THIS LAYER MUST NOT DO:
============================
- Modify diagram behavior
- Filter or interpret events (only record them)
- Block the event handler that produced the record
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional

from ..contracts.events import AuditEventType, AuditLogEntry


@dataclass
class ObservabilityConfig:
    """Configuration for the audit log."""
    max_entries: int = 10_000  # oldest entries are evicted beyond this

    def __post_init__(self):
        if self.max_entries <= 0:
            raise ValueError("max_entries must be positive")


class AuditLog:
    """
    Append-only audit log collector.

    Each layer records through `record()`; entries are never modified
    after collection. Sequence numbers keep increasing across evictions.
    """

    def __init__(self, config: Optional[ObservabilityConfig] = None):
        self._config = config or ObservabilityConfig()
        self._entries: List[AuditLogEntry] = []
        self._sequence: int = 0

    def record(
        self,
        event_type: AuditEventType,
        layer: str,
        action: str,
        entity_id: Optional[str] = None,
        entity_type: Optional[str] = None,
        **metadata: object,
    ) -> AuditLogEntry:
        """Create and collect an entry. Metadata values are stringified."""
        self._sequence += 1
        entry = AuditLogEntry(
            entry_id=f"{layer}_{self._sequence:06d}",
            event_type=event_type,
            timestamp=datetime.now(timezone.utc),
            layer=layer,
            action=action,
            entity_id=entity_id,
            entity_type=entity_type,
            metadata=tuple(sorted((k, str(v)) for k, v in metadata.items())),
        )
        self._entries.append(entry)
        overflow = len(self._entries) - self._config.max_entries
        if overflow > 0:
            del self._entries[:overflow]
        return entry

    def get_entries(
        self,
        event_type: Optional[AuditEventType] = None,
        layer: Optional[str] = None,
        action: Optional[str] = None,
    ) -> List[AuditLogEntry]:
        """Get entries, optionally filtered."""
        entries = self._entries
        if event_type:
            entries = [e for e in entries if e.event_type == event_type]
        if layer:
            entries = [e for e in entries if e.layer == layer]
        if action:
            entries = [e for e in entries if e.action == action]
        return list(entries)

    def counts_by_type(self) -> Dict[AuditEventType, int]:
        counts: Dict[AuditEventType, int] = {}
        for entry in self._entries:
            counts[entry.event_type] = counts.get(entry.event_type, 0) + 1
        return counts

    @property
    def entry_count(self) -> int:
        return len(self._entries)

    @property
    def sequence(self) -> int:
        return self._sequence
