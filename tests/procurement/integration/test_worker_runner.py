"""Tests for the fulfillment worker process entry point."""

import signal
import threading

import pytest
import server
from procurement.fulfillment.consumer import FulfillmentConsumer
from procurement.order.order import Order, OrderStatus
from procurement.order.submission import submit_order
from protean import current_domain


@pytest.fixture()
def submitted(draft_order, catalog):
    return submit_order(draft_order, submitted_by=catalog.buyer_id)


def _order_status(receipt):
    return current_domain.repository_for(Order).get(receipt.order_id).status


class TestRunOnce:
    def test_processes_due_tasks_and_returns(self, submitted, task_queue, notifier):
        server.run(once=True)

        assert _order_status(submitted) == OrderStatus.EMAILED.value
        assert notifier.calls == 1
        assert task_queue.pending_count() == 0


class TestRunUntilStopped:
    def test_consumes_until_terminated(self, submitted, task_queue, notifier, monkeypatch):
        handlers = {}
        monkeypatch.setattr(server.signal, "signal", lambda signum, handler: handlers.__setitem__(signum, handler))

        run_once = FulfillmentConsumer.run_once

        def run_once_then_terminate(consumer):
            outcome = run_once(consumer)
            if outcome is None:
                handlers[signal.SIGTERM]()
            return outcome

        monkeypatch.setattr(FulfillmentConsumer, "run_once", run_once_then_terminate)

        server.run(poll_interval=0.01, reconcile_every=3600)

        assert set(handlers) == {signal.SIGINT, signal.SIGTERM}
        assert _order_status(submitted) == OrderStatus.EMAILED.value
        assert notifier.calls == 1

    def test_sweeper_reconciles_until_stopped(self, monkeypatch):
        stop_event = threading.Event()
        sweeps = []

        def sweep():
            sweeps.append(threading.current_thread().name)
            if len(sweeps) == 2:
                stop_event.set()

        monkeypatch.setattr(server, "_reconcile", sweep)
        sweeper = threading.Thread(target=server._sweep_until_stopped, args=(stop_event, 0.01), name="sweeper")
        sweeper.start()
        sweeper.join(timeout=5)

        assert not sweeper.is_alive()
        assert sweeps == ["sweeper", "sweeper"]

    def test_failed_sweep_does_not_stop_the_sweeper(self, monkeypatch):
        stop_event = threading.Event()
        attempts = []

        def flaky_sweep():
            attempts.append(1)
            if len(attempts) == 1:
                raise RuntimeError("database unavailable")
            stop_event.set()

        monkeypatch.setattr(server, "_reconcile", flaky_sweep)
        server._sweep_until_stopped(stop_event, 0.01)

        assert len(attempts) == 2
