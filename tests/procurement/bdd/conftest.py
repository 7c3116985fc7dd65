"""Shared BDD fixtures and step definitions for the order pipeline."""

import json

import pytest
from procurement.audit.recorder import entries_for_order
from procurement.fulfillment.consumer import FulfillmentConsumer
from procurement.fulfillment.delivery_job import DeliveryJob
from procurement.order.creation import CreateOrder
from procurement.order.numbering import next_order_number
from procurement.order.order import Order
from procurement.order.submission import submit_order
from procurement.shared.exceptions import EmptyOrder
from protean import current_domain
from pytest_bdd import given, parsers, then, when


@pytest.fixture()
def error():
    """Container for the exception a When step captured."""
    return {"exc": None}


def _create_order(catalog, variant_ids, quantity):
    items = [{"variant_id": variant_id, "quantity": quantity} for variant_id in variant_ids]
    return current_domain.process(
        CreateOrder(
            organization_id=catalog.organization_id,
            created_by=catalog.buyer_id,
            factory_id=catalog.factory_id,
            price_list_id=catalog.price_list_id,
            items=json.dumps(items),
        ),
        asynchronous=False,
    )


def _jobs_for(order_id):
    return current_domain.repository_for(DeliveryJob)._dao.query.filter(order_id=order_id).all().items


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a factory "{name}" reachable at "{email}"'))
def _(catalog, name, email):
    assert catalog.factory_id


@given("two jacket variants priced at 450.00 on the buyer's price list")
def _(catalog):
    assert len(catalog.variant_ids) == 2


@given(parsers.cfparse("the buyer has drafted an order for {count:d} variant"), target_fixture="order_id")
def _(catalog, count):
    return _create_order(catalog, catalog.variant_ids[:count], quantity=1)


@given("the buyer has submitted an order", target_fixture="order_id")
def _(draft_order, catalog):
    submit_order(draft_order, submitted_by=catalog.buyer_id)
    return draft_order


@given("a draft order with no items", target_fixture="order_id")
def _(catalog):
    order = Order.draft(
        order_number=next_order_number(),
        organization_id=catalog.organization_id,
        created_by=catalog.buyer_id,
        factory_id=catalog.factory_id,
        lines=[],
    )
    current_domain.repository_for(Order).add(order)
    return str(order.id)


@given("the factory mail server is refusing connections")
def _(notifier):
    notifier.configure(should_succeed=False, failure_reason="SMTP connection refused")


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse("the buyer orders {quantity:d} of each variant"), target_fixture="order_id")
def _(catalog, quantity):
    return _create_order(catalog, catalog.variant_ids, quantity=quantity)


@when("the buyer submits the order")
def _(order_id, catalog, error):
    try:
        submit_order(order_id, submitted_by=catalog.buyer_id)
    except EmptyOrder as exc:
        error["exc"] = exc


@when("the fulfillment worker processes the queue")
def _(task_queue):
    FulfillmentConsumer(queue=task_queue).drain()


@when("the fulfillment worker processes the queue through every retry")
def _(task_queue, clock):
    consumer = FulfillmentConsumer(queue=task_queue)
    consumer.drain()
    while task_queue.next_due_in() is not None:
        clock.advance(task_queue.next_due_in())
        consumer.drain()


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def _(order_id, status):
    assert current_domain.repository_for(Order).get(order_id).status == status


@then(parsers.cfparse('the order total is "{amount}"'))
def _(order_id, amount):
    assert current_domain.repository_for(Order).get(order_id).total_amount == amount


@then(parsers.cfparse("the order has {count:d} items"))
def _(order_id, count):
    assert len(current_domain.repository_for(Order).get(order_id).items) == count


@then("exactly one delivery job exists for the order")
def _(order_id):
    assert len(_jobs_for(order_id)) == 1


@then(parsers.cfparse('the delivery job status is "{status}" with {attempts:d} attempts'))
def _(order_id, status, attempts):
    job = _jobs_for(order_id)[0]
    assert job.status == status
    assert job.attempts == attempts


@then(parsers.cfparse('the order has {count:d} "{action}" audit entry'))
def _(order_id, count, action):
    assert len(entries_for_order(order_id, action)) == count


@then("the submission is rejected as an empty order")
def _(error):
    assert isinstance(error["exc"], EmptyOrder)
