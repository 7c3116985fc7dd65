"""Role capabilities — who may do what.

Every HTTP operation names the capability it needs; the role → capability
table below is the single place that decides. The authenticated actor
arrives from the gateway; token issuance lives elsewhere.
"""

from dataclasses import dataclass
from enum import Enum


class Role(Enum):
    ADMIN = "ADMIN"
    SELLER = "SELLER"
    FACTORY_VIEWER = "FACTORY_VIEWER"


class Capability(Enum):
    CREATE_ORDER = "create_order"
    SUBMIT_ORDER = "submit_order"
    VIEW_ORDERS = "view_orders"
    VIEW_ALL_ORDERS = "view_all_orders"
    RETRY_DELIVERY = "retry_delivery"
    MANAGE_CATALOG = "manage_catalog"


_ROLE_CAPABILITIES = {
    Role.ADMIN: set(Capability),
    Role.SELLER: {
        Capability.CREATE_ORDER,
        Capability.SUBMIT_ORDER,
        Capability.VIEW_ORDERS,
    },
    Role.FACTORY_VIEWER: {
        Capability.VIEW_ORDERS,
        Capability.VIEW_ALL_ORDERS,
    },
}


class CapabilityDenied(Exception):
    def __init__(self, role, capability):
        self.role = role
        self.capability = capability
        super().__init__(f"Role {role.value} lacks capability {capability.value}")


@dataclass(frozen=True)
class Actor:
    user_id: str
    organization_id: str
    role: Role

    def can(self, capability: Capability) -> bool:
        return capability in _ROLE_CAPABILITIES.get(self.role, set())

    def ensure(self, capability: Capability) -> None:
        if not self.can(capability):
            raise CapabilityDenied(self.role, capability)

    def can_see_order(self, order) -> bool:
        """Sellers see only the orders they created; other viewing roles see all."""
        if self.can(Capability.VIEW_ALL_ORDERS):
            return True
        return self.can(Capability.VIEW_ORDERS) and str(order.created_by) == self.user_id
