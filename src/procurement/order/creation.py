"""Order creation — command and handler."""

import json

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, Text
from protean.utils.globals import current_domain

from procurement.audit import recorder
from procurement.audit.audit_entry import AuditAction
from procurement.catalog.organization import Factory
from procurement.domain import procurement
from procurement.order.aggregation import RequestedItem, price_items
from procurement.order.numbering import next_order_number
from procurement.order.order import Order
from procurement.shared.exceptions import EmptyOrder, ReferenceNotFound


@procurement.command(part_of="Order")
class CreateOrder:
    organization_id = Identifier(required=True)
    created_by = Identifier(required=True)
    factory_id = Identifier(required=True)
    price_list_id = Identifier()
    items = Text(required=True)  # JSON: list of {variant_id, quantity, notes?}
    notes = Text()


@procurement.command_handler(part_of=Order)
class CreateOrderHandler:
    @handle(CreateOrder)
    def create_order(self, command):
        items_data = json.loads(command.items) if isinstance(command.items, str) else command.items
        requested = [RequestedItem.from_dict(item) for item in items_data or []]
        if not requested:
            raise EmptyOrder()

        try:
            current_domain.repository_for(Factory).get(command.factory_id)
        except ObjectNotFoundError as exc:
            raise ReferenceNotFound("Factory", command.factory_id) from exc

        priced = price_items(requested, price_list_id=command.price_list_id)

        order = Order.draft(
            order_number=next_order_number(),
            organization_id=command.organization_id,
            created_by=command.created_by,
            factory_id=command.factory_id,
            lines=priced.lines,
            currency=priced.currency,
            price_list_id=command.price_list_id,
            notes=command.notes,
        )
        current_domain.repository_for(Order).add(order)

        recorder.record(
            AuditAction.CREATE,
            entity_type="Order",
            entity_id=order.id,
            actor_id=command.created_by,
            order_id=order.id,
            changes={
                "order_number": order.order_number,
                "total_amount": order.total_amount,
                "items_count": len(order.items),
            },
        )
        return str(order.id)
