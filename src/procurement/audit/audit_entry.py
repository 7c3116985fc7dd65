"""AuditEntry aggregate — append-only record of a state-changing action."""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, Identifier, String, Text

from procurement.domain import procurement


class AuditAction(Enum):
    CREATE = "CREATE"
    SUBMIT_ORDER = "SUBMIT_ORDER"
    EMAIL_SENT = "EMAIL_SENT"
    DELIVERY_FAILED = "DELIVERY_FAILED"
    RETRY_DELIVERY = "RETRY_DELIVERY"


@procurement.aggregate
class AuditEntry:
    action = String(required=True, max_length=50)
    entity_type = String(required=True, max_length=50)
    entity_id = Identifier(required=True)
    actor_id = Identifier()
    order_id = Identifier()
    changes = Text()  # JSON snapshot
    created_at = DateTime()

    @classmethod
    def append(cls, action, entity_type, entity_id, actor_id=None, changes=None, order_id=None):
        return cls(
            action=action.value if isinstance(action, AuditAction) else action,
            entity_type=entity_type,
            entity_id=str(entity_id),
            actor_id=str(actor_id) if actor_id else None,
            order_id=str(order_id) if order_id else None,
            changes=json.dumps(changes or {}, default=str),
            created_at=datetime.now(UTC),
        )

    def change_set(self) -> dict:
        return json.loads(self.changes) if self.changes else {}
