"""
Audit Log Tests
"""

import pytest

from gridview.contracts import AuditEventType
from gridview.observability import AuditLog, ObservabilityConfig


class TestAuditLog:

    def test_record_stringifies_metadata(self):
        log = AuditLog()
        entry = log.record(AuditEventType.FETCH, "session", "fetch_applied", sequence=3, nodes=5)
        assert entry.entry_id == "session_000001"
        assert entry.get("sequence") == "3"
        assert entry.get("missing") is None
        assert entry.timestamp.tzinfo is not None

    def test_filters(self):
        log = AuditLog()
        log.record(AuditEventType.FETCH, "session", "fetch_started")
        log.record(AuditEventType.VIEWPORT, "viewport", "rejected")
        log.record(AuditEventType.FETCH, "session", "fetch_applied")
        assert len(log.get_entries(AuditEventType.FETCH)) == 2
        assert len(log.get_entries(layer="viewport")) == 1
        assert [e.action for e in log.get_entries(action="fetch_applied")] == ["fetch_applied"]

    def test_eviction_keeps_sequence(self):
        log = AuditLog(ObservabilityConfig(max_entries=2))
        for i in range(5):
            log.record(AuditEventType.SYSTEM, "test", f"tick_{i}")
        assert log.entry_count == 2
        assert log.sequence == 5
        assert [e.action for e in log.get_entries()] == ["tick_3", "tick_4"]

    def test_counts_by_type(self):
        log = AuditLog()
        log.record(AuditEventType.ERROR, "session", "fetch_failed")
        log.record(AuditEventType.ERROR, "session", "fetch_failed")
        log.record(AuditEventType.INTEGRITY, "session", "missing_endpoint")
        assert log.counts_by_type() == {AuditEventType.ERROR: 2, AuditEventType.INTEGRITY: 1}

    def test_entries_are_a_copy(self):
        log = AuditLog()
        log.record(AuditEventType.SYSTEM, "test", "a")
        log.get_entries().clear()
        assert log.entry_count == 1

    def test_invalid_config(self):
        with pytest.raises(ValueError):
            ObservabilityConfig(max_entries=0)
