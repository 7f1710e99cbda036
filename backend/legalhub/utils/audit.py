"""Lightweight helper for recording audit log entries.

Usage:
    record_audit(
        db, user.id, action="onboarding_step_completed",
        entity_type="onboarding_step", entity_id=record.id,
        summary="Completed step personal_info",
    )

The row is added to the current session and committed with the
enclosing transaction; no extra flush is performed.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from legalhub.models.audit_log import AuditLog


def record_audit(
    db: AsyncSession,
    user_id: str | None,
    *,
    action: str,
    entity_type: str,
    entity_id: str | None = None,
    summary: str | None = None,
    details: dict | None = None,
) -> None:
    """Append an audit log entry to the current DB session."""
    entry = AuditLog(
        user_id=user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        summary=summary,
        details=details,
    )
    db.add(entry)
