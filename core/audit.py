"""
Audit trail for all ledger changes.

Every mutation to every invoice is logged here. The audit log is:
- Append-only (entries never modified or deleted)
- Actor-attributed (who made the change)
- Detailed (captures old and new values)

Entries live in memory alongside the ledger and share its lifetime.
"""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel

from utils.actor_context import get_current_actor
from utils.timezone import Clock, now_utc


class AuditAction(Enum):
    """Type of change made to an entity."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class AuditEntry(BaseModel):
    """One recorded change."""

    id: UUID
    actor: str
    entity_type: str
    entity_id: int
    action: AuditAction
    changes: dict[str, Any]
    created_at: datetime

    model_config = {"frozen": True}


def compute_changes(
    old: dict[str, Any],
    new: dict[str, Any],
    exclude_fields: set[str] | None = None
) -> dict[str, dict[str, Any]]:
    """
    Compute changes between two entity states.

    Args:
        old: Previous state of entity
        new: New state of entity
        exclude_fields: Fields to ignore (defaults to {"updated_at"})

    Returns:
        Dict of {field: {"old": old_val, "new": new_val}} for changed fields.
        Empty dict if no changes.
    """
    exclude = exclude_fields or {"updated_at"}
    changes = {}

    all_keys = set(old.keys()) | set(new.keys())
    for key in all_keys:
        if key in exclude:
            continue

        old_val = old.get(key)
        new_val = new.get(key)

        if old_val != new_val:
            changes[key] = {"old": old_val, "new": new_val}

    return changes


class AuditLogger:
    """
    Append-only audit trail.

    Always use model_dump(mode="json") when passing Pydantic models so
    Decimals, dates and UUIDs are stored as JSON-compatible strings.

    Usage:
        audit = AuditLogger()

        audit.log_change(
            entity_type="invoice",
            entity_id=invoice.id,
            action=AuditAction.CREATE,
            changes={"created": invoice.model_dump(mode="json")}
        )

        changes = compute_changes(
            old.model_dump(mode="json"),
            new.model_dump(mode="json")
        )
        audit.log_change("invoice", invoice.id, AuditAction.UPDATE, changes)

        history = audit.get_entity_history("invoice", invoice.id)
    """

    def __init__(self, clock: Clock = now_utc):
        self.clock = clock
        self._entries: list[AuditEntry] = []

    def log_change(
        self,
        entity_type: str,
        entity_id: int,
        action: AuditAction,
        changes: dict[str, Any],
        actor: str | None = None
    ) -> AuditEntry:
        """
        Log an entity change.

        Args:
            entity_type: Type of entity ("invoice", "payment")
            entity_id: ID of the entity
            action: The action performed (CREATE, UPDATE, DELETE)
            changes: The changes made (format depends on action)
            actor: Who made the change (defaults to current context)

        Changes format by action:
        - CREATE: {"created": {full entity data}}
        - UPDATE: {"field": {"old": old_val, "new": new_val}, ...}
        - DELETE: {"deleted": {full entity data at deletion}}
        """
        entry = AuditEntry(
            id=uuid4(),
            actor=actor or get_current_actor(),
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            changes=changes,
            created_at=self.clock(),
        )
        self._entries.append(entry)
        return entry

    def get_entity_history(self, entity_type: str, entity_id: int) -> list[AuditEntry]:
        """
        Get full audit history for an entity.

        Returns:
            List of audit entries, newest first.
        """
        return [
            entry for entry in reversed(self._entries)
            if entry.entity_type == entity_type and entry.entity_id == entity_id
        ]

    def get_actor_activity(self, actor: str | None = None, limit: int = 100) -> list[AuditEntry]:
        """
        Get recent activity by actor.

        Args:
            actor: Actor to get activity for (defaults to current context)
            limit: Maximum entries to return

        Returns:
            List of audit entries, newest first.
        """
        actor = actor or get_current_actor()
        matches = [entry for entry in reversed(self._entries) if entry.actor == actor]
        return matches[:limit]
