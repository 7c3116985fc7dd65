"""Integration tests for the delivery endpoints via TestClient."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from procurement.api import delivery_router
from procurement.fulfillment.consumer import FulfillmentConsumer
from procurement.order.submission import submit_order
from protean.integrations.fastapi import register_exception_handlers


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(delivery_router)
    register_exception_handlers(app)
    return TestClient(app)


ADMIN = {"X-User-Id": "user-admin-001", "X-Organization-Id": "org-platform", "X-User-Role": "ADMIN"}


@pytest.fixture()
def seller(catalog):
    return {"X-User-Id": catalog.buyer_id, "X-Organization-Id": catalog.organization_id, "X-User-Role": "SELLER"}


@pytest.fixture()
def failed_job(draft_order, catalog, task_queue, notifier, clock):
    receipt = submit_order(draft_order, submitted_by=catalog.buyer_id)
    notifier.configure(should_succeed=False, failure_reason="SMTP connection refused")
    consumer = FulfillmentConsumer(queue=task_queue)
    for delay in (0, 5, 10):
        clock.advance(delay)
        consumer.drain()
    notifier.configure(should_succeed=True)
    return receipt.job_id


class TestGetDelivery:
    def test_seller_sees_own_delivery(self, client, draft_order, catalog, seller):
        receipt = submit_order(draft_order, submitted_by=catalog.buyer_id)

        response = client.get(f"/deliveries/{receipt.job_id}", headers=seller)

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "Pending"
        assert body["attempts"] == 0
        assert body["max_attempts"] == 3
        assert body["subject"] == f"New Order: {receipt.order_number}"

    def test_failed_delivery_reports_last_error(self, client, failed_job):
        body = client.get(f"/deliveries/{failed_job}", headers=ADMIN).json()
        assert body["status"] == "Failed"
        assert body["attempts"] == 3
        assert "SMTP connection refused" in body["last_error"]

    def test_unknown_job_is_404(self, client):
        assert client.get("/deliveries/no-such-job", headers=ADMIN).status_code == 404


class TestRetryDelivery:
    def test_admin_retries_failed_delivery(self, client, failed_job, task_queue):
        response = client.post(f"/deliveries/{failed_job}/retry", headers=ADMIN)

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "Pending"
        assert body["attempts"] == 0
        assert task_queue.pending_count() == 1

    def test_seller_cannot_retry(self, client, failed_job, seller):
        response = client.post(f"/deliveries/{failed_job}/retry", headers=seller)
        assert response.status_code == 403

    def test_retrying_pending_delivery_is_400(self, client, draft_order, catalog):
        receipt = submit_order(draft_order, submitted_by=catalog.buyer_id)
        response = client.post(f"/deliveries/{receipt.job_id}/retry", headers=ADMIN)
        assert response.status_code == 400

    def test_unknown_job_is_404(self, client):
        assert client.post("/deliveries/no-such-job/retry", headers=ADMIN).status_code == 404
