"""Domain errors raised synchronously to callers of the order pipeline.

They extend Protean's exceptions so the FastAPI integration maps them to
HTTP responses without route-level handling: validation failures become 400
and missing references become 404.
"""

from protean.exceptions import ObjectNotFoundError, ValidationError


class ReferenceNotFound(ObjectNotFoundError):
    """A referenced catalog record (factory, variant, price list...) does not exist."""

    def __init__(self, entity_type: str, identifier):
        self.entity_type = entity_type
        self.identifier = str(identifier)
        super().__init__(f"{entity_type} {identifier} not found")


class OrderNotFound(ObjectNotFoundError):
    def __init__(self, order_id):
        self.order_id = str(order_id)
        super().__init__(f"Order {order_id} not found")


class PriceUnavailable(ValidationError):
    """No eligible price exists for a requested variant."""

    def __init__(self, variant_id, label=None):
        self.variant_id = str(variant_id)
        super().__init__({"items": [f"No price found for variant {label or variant_id}"]})


class EmptyOrder(ValidationError):
    def __init__(self):
        super().__init__({"items": ["Order must have at least one item"]})


class InvalidTransition(ValidationError):
    def __init__(self, current: str, target: str, message: str | None = None):
        self.current = current
        self.target = target
        super().__init__({"status": [message or f"Cannot transition from {current} to {target}"]})
