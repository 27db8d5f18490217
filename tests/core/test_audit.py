"""Tests for the ledger audit trail."""

import pytest
from datetime import timedelta


class TestAuditAction:
    """Tests for AuditAction enum."""

    def test_has_create_update_delete(self):
        """AuditAction has required values."""
        from core.audit import AuditAction

        assert AuditAction.CREATE.value == "create"
        assert AuditAction.UPDATE.value == "update"
        assert AuditAction.DELETE.value == "delete"


class TestComputeChanges:
    """Tests for compute_changes utility function."""

    def test_detects_changed_fields(self):
        """Different values for same key detected."""
        from core.audit import compute_changes

        old = {"notes": "", "total": "220.00"}
        new = {"notes": "", "total": "330.00"}

        changes = compute_changes(old, new)

        assert changes == {"total": {"old": "220.00", "new": "330.00"}}

    def test_detects_added_fields(self):
        """New fields in 'new' dict detected."""
        from core.audit import compute_changes

        changes = compute_changes({"notes": ""}, {"notes": "", "paid_date": "2024-06-15"})

        assert changes["paid_date"] == {"old": None, "new": "2024-06-15"}

    def test_detects_removed_fields(self):
        """Fields in 'old' but not 'new' detected."""
        from core.audit import compute_changes

        changes = compute_changes({"notes": "", "project_id": 4}, {"notes": ""})

        assert changes["project_id"] == {"old": 4, "new": None}

    def test_excludes_updated_at_by_default(self):
        """updated_at not reported as change."""
        from core.audit import compute_changes

        old = {"notes": "a", "updated_at": "2024-06-15T12:00:00Z"}
        new = {"notes": "a", "updated_at": "2024-06-16T12:00:00Z"}

        assert compute_changes(old, new) == {}

    def test_custom_exclude_fields(self):
        """Can exclude additional fields."""
        from core.audit import compute_changes

        old = {"notes": "a", "payments": []}
        new = {"notes": "b", "payments": [{"amount": "1.00"}]}

        changes = compute_changes(old, new, exclude_fields={"updated_at", "payments"})

        assert "notes" in changes
        assert "payments" not in changes


class TestAuditLogger:
    """Tests for AuditLogger class."""

    def test_log_change_creates_entry(self, audit, now):
        """Create audit entry for entity change."""
        from core.audit import AuditAction

        entry = audit.log_change(
            entity_type="invoice",
            entity_id=1,
            action=AuditAction.CREATE,
            changes={"created": {"invoice_number": "INV-2024-001"}}
        )

        assert entry.entity_type == "invoice"
        assert entry.entity_id == 1
        assert entry.action == AuditAction.CREATE
        assert entry.created_at == now
        assert audit.get_entity_history("invoice", 1) == [entry]

    def test_log_change_defaults_to_system(self, audit):
        from core.audit import AuditAction

        entry = audit.log_change("invoice", 1, AuditAction.CREATE, {"created": {}})

        assert entry.actor == "system"

    def test_log_change_uses_context_actor(self, audit, as_test_actor):
        """Defaults to current actor context."""
        from core.audit import AuditAction

        entry = audit.log_change("invoice", 1, AuditAction.CREATE, {"created": {}})

        assert entry.actor == as_test_actor

    def test_log_change_explicit_actor_overrides(self, audit, as_test_actor):
        """Explicit actor overrides context."""
        from core.audit import AuditAction

        entry = audit.log_change(
            "invoice", 1, AuditAction.UPDATE,
            {"notes": {"old": "A", "new": "B"}},
            actor="clerk@ledger.test"
        )

        assert entry.actor == "clerk@ledger.test"

    def test_entries_are_immutable(self, audit):
        from pydantic import ValidationError
        from core.audit import AuditAction

        entry = audit.log_change("invoice", 1, AuditAction.CREATE, {"created": {}})

        with pytest.raises(ValidationError):
            entry.actor = "someone-else"

    def test_get_entity_history_returns_newest_first(self, audit, clock):
        """History returned newest-first."""
        from core.audit import AuditAction

        audit.log_change("invoice", 1, AuditAction.CREATE, {"created": {}})
        clock.advance(minutes=5)
        audit.log_change("invoice", 1, AuditAction.UPDATE, {"notes": {"old": "", "new": "x"}})

        history = audit.get_entity_history("invoice", 1)

        assert [entry.action for entry in history] == [AuditAction.UPDATE, AuditAction.CREATE]
        assert history[0].created_at - history[1].created_at == timedelta(minutes=5)

    def test_get_entity_history_filters_by_entity(self, audit):
        """History only for requested entity."""
        from core.audit import AuditAction

        audit.log_change("invoice", 1, AuditAction.CREATE, {"created": {}})
        audit.log_change("invoice", 2, AuditAction.CREATE, {"created": {}})

        assert [e.entity_id for e in audit.get_entity_history("invoice", 1)] == [1]
        assert [e.entity_id for e in audit.get_entity_history("invoice", 2)] == [2]
        assert audit.get_entity_history("payment", 1) == []

    def test_get_actor_activity_respects_limit(self, audit):
        """Activity limited to specified count."""
        from core.audit import AuditAction

        for i in range(5):
            audit.log_change("invoice", i, AuditAction.CREATE, {"created": {"index": i}})

        activity = audit.get_actor_activity(limit=3)

        assert [e.entity_id for e in activity] == [4, 3, 2]

    def test_get_actor_activity_filters_by_actor(self, audit):
        """Activity only for requested actor."""
        from core.audit import AuditAction

        audit.log_change("invoice", 1, AuditAction.CREATE, {"created": {}}, actor="alice")
        audit.log_change("invoice", 2, AuditAction.CREATE, {"created": {}}, actor="bob")

        assert [e.entity_id for e in audit.get_actor_activity(actor="alice")] == [1]
        assert [e.entity_id for e in audit.get_actor_activity(actor="bob")] == [2]
