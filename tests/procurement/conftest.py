import json
from types import SimpleNamespace

import pytest
from procurement.catalog.management import (
    AddProduct,
    AddProductVariant,
    CreatePriceList,
    RegisterFactory,
    RegisterOrganization,
    SetPrice,
)
from procurement.fulfillment.queue import reset_queue, set_queue
from procurement.fulfillment.queue.memory_queue import InMemoryTaskQueue
from procurement.fulfillment.queue.redis_queue import RedisTaskQueue
from procurement.notifier import reset_notifier, set_notifier
from procurement.notifier.fake_notifier import FakeNotifier
from procurement.order.creation import CreateOrder
from procurement.rendering import reset_renderer, set_renderer
from procurement.rendering.fake_renderer import FakeDocumentRenderer
from protean import current_domain
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def procurement_bed():
    from procurement.domain import procurement

    bed = DomainFixture(procurement)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(procurement_bed):
    with procurement_bed.domain_context():
        yield

        for _, provider in current_domain.providers.items():
            provider._data_reset()
        for _, broker in current_domain.brokers.items():
            broker._data_reset()
        current_domain.event_store.store._data_reset()


class FakeClock:
    """Monotonic clock the tests move forward by hand."""

    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture(autouse=True)
def task_queue(clock):
    queue = InMemoryTaskQueue(clock=clock)
    set_queue(queue)
    yield queue
    reset_queue()


class _Pipeline:
    def __init__(self, client):
        self._client = client
        self._calls = []

    def __getattr__(self, name):
        def _queue(*args, **kwargs):
            self._calls.append((name, args, kwargs))
            return self

        return _queue

    def execute(self):
        return [getattr(self._client, name)(*args, **kwargs) for name, args, kwargs in self._calls]


class StubRedis:
    """Implements the handful of commands RedisTaskQueue issues."""

    def __init__(self):
        self.hashes = {}
        self.zsets = {}

    def hsetnx(self, name, key, value):
        table = self.hashes.setdefault(name, {})
        if key in table:
            return 0
        table[key] = value
        return 1

    def hset(self, name, key, value):
        self.hashes.setdefault(name, {})[key] = value

    def hget(self, name, key):
        return self.hashes.get(name, {}).get(key)

    def hgetall(self, name):
        return dict(self.hashes.get(name, {}))

    def hdel(self, name, key):
        return 1 if self.hashes.get(name, {}).pop(key, None) is not None else 0

    def zadd(self, name, mapping):
        self.zsets.setdefault(name, {}).update(mapping)

    def zrem(self, name, member):
        return 1 if self.zsets.get(name, {}).pop(member, None) is not None else 0

    def zrangebyscore(self, name, low, high, start=0, num=None):
        members = sorted((score, member) for member, score in self.zsets.get(name, {}).items() if score <= high)
        return [member for _, member in members][start : start + num if num else None]

    def zcard(self, name):
        return len(self.zsets.get(name, {}))

    def pipeline(self):
        return _Pipeline(self)

    def ping(self):
        return True


@pytest.fixture()
def redis_queue():
    """A RedisTaskQueue over StubRedis, installed as the active queue."""
    queue = RedisTaskQueue(client=StubRedis())
    set_queue(queue)
    yield queue
    reset_queue()


@pytest.fixture(autouse=True)
def renderer():
    fake = FakeDocumentRenderer()
    set_renderer(fake)
    yield fake
    reset_renderer()


@pytest.fixture(autouse=True)
def notifier():
    fake = FakeNotifier()
    set_notifier(fake)
    yield fake
    reset_notifier()


def _process(command):
    return current_domain.process(command, asynchronous=False)


@pytest.fixture()
def catalog():
    """A buyer, a factory, two variants and a price list pricing both at 450.00."""
    organization_id = _process(
        RegisterOrganization(name="Acme Retail", email="buying@acme.example", address="1 Market St")
    )
    factory_id = _process(
        RegisterFactory(name="Northwind Textiles", contact_email="orders@northwind.example", address="9 Mill Rd")
    )
    product_id = _process(AddProduct(factory_id=factory_id, name="Canvas Jacket", category="Outerwear"))
    variant_m = _process(
        AddProductVariant(
            product_id=product_id, sku="JKT-CAN-M", name="Canvas Jacket M", attributes=json.dumps({"size": "M"})
        )
    )
    variant_l = _process(
        AddProductVariant(
            product_id=product_id, sku="JKT-CAN-L", name="Canvas Jacket L", attributes=json.dumps({"size": "L"})
        )
    )
    price_list_id = _process(
        CreatePriceList(name="Acme Wholesale", organization_ids=json.dumps([organization_id]))
    )
    _process(SetPrice(price_list_id=price_list_id, variant_id=variant_m, amount="450.00"))
    _process(SetPrice(price_list_id=price_list_id, variant_id=variant_l, amount="450.00"))

    return SimpleNamespace(
        organization_id=organization_id,
        factory_id=factory_id,
        product_id=product_id,
        variant_ids=[variant_m, variant_l],
        price_list_id=price_list_id,
        buyer_id="user-seller-001",
    )


@pytest.fixture()
def draft_order(catalog):
    """A Draft order for three of each variant, totalling 2700.00."""
    items = [{"variant_id": variant_id, "quantity": 3} for variant_id in catalog.variant_ids]
    return _process(
        CreateOrder(
            organization_id=catalog.organization_id,
            created_by=catalog.buyer_id,
            factory_id=catalog.factory_id,
            price_list_id=catalog.price_list_id,
            items=json.dumps(items),
        )
    )
