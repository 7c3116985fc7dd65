"""Audit recorder.

Recording never fails the business operation that triggered it: errors are
logged and dropped.
"""

import structlog
from protean.utils.globals import current_domain

from procurement.audit.audit_entry import AuditAction, AuditEntry

logger = structlog.get_logger(__name__)


def record(action, entity_type, entity_id, actor_id=None, changes=None, order_id=None):
    """Append an audit entry. Returns the entry, or None when it could not be stored."""
    try:
        entry = AuditEntry.append(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            actor_id=actor_id,
            changes=changes,
            order_id=order_id,
        )
        current_domain.repository_for(AuditEntry).add(entry)
    except Exception:
        logger.exception(
            "Failed to record audit entry",
            action=action.value if isinstance(action, AuditAction) else action,
            entity_type=entity_type,
            entity_id=str(entity_id),
        )
        return None
    return entry


def entries_for_order(order_id, action=None) -> list[AuditEntry]:
    """Audit entries attached to an order, oldest first."""
    criteria = {"order_id": str(order_id)}
    if action is not None:
        criteria["action"] = action.value if isinstance(action, AuditAction) else action
    return (
        current_domain.repository_for(AuditEntry)
        ._dao.query.filter(**criteria)
        .order_by("created_at")
        .all()
        .items
    )
