"""Fulfillment worker runner for the procurement domain.

Consumes `send-order-document` tasks from the task queue (TASK_QUEUE_URL)
and runs the reconciliation sweep periodically so orders whose task was lost
between commit and enqueue are still delivered.

Usage:
    python src/server.py                      # Run until interrupted
    python src/server.py --once               # Process due tasks, then exit
    python src/server.py --reconcile-every 60 # Sweep every 60 seconds
"""

import argparse
import signal
import threading

import structlog
from procurement.domain import procurement
from procurement.fulfillment.consumer import FulfillmentConsumer
from procurement.fulfillment.reconciliation import reconcile_submitted_orders
from procurement.utils.logging import configure_logging

logger = structlog.get_logger(__name__)


def _reconcile():
    report = reconcile_submitted_orders()
    if report.jobs_created or report.tasks_enqueued or report.tasks_recovered:
        logger.info(
            "Reconciliation sweep",
            jobs_created=len(report.jobs_created),
            tasks_enqueued=len(report.tasks_enqueued),
            tasks_recovered=report.tasks_recovered,
        )


def _sweep_until_stopped(stop_event, every):
    # Runs on its own thread, so it needs its own domain context
    with procurement.domain_context():
        while not stop_event.wait(every):
            try:
                _reconcile()
            except Exception:
                logger.exception("Reconciliation sweep failed")


def run(once=False, poll_interval=1.0, reconcile_every=300.0):
    consumer = FulfillmentConsumer(poll_interval=poll_interval)

    with procurement.domain_context():
        _reconcile()
        if once:
            outcomes = consumer.drain()
            logger.info("Processed due tasks", count=len(outcomes))
            return

        stop_event = threading.Event()
        signal.signal(signal.SIGINT, lambda *_: stop_event.set())
        signal.signal(signal.SIGTERM, lambda *_: stop_event.set())

        sweeper = threading.Thread(
            target=_sweep_until_stopped, args=(stop_event, reconcile_every), name="reconciliation", daemon=True
        )
        sweeper.start()
        consumer.run(stop_event)
        sweeper.join()


def main():
    parser = argparse.ArgumentParser(description="Vendora fulfillment worker")
    parser.add_argument("--once", action="store_true", help="Process due tasks once and exit")
    parser.add_argument("--poll-interval", type=float, default=1.0, help="Seconds to wait when the queue is idle")
    parser.add_argument("--reconcile-every", type=float, default=300.0, help="Seconds between reconciliation sweeps")
    args = parser.parse_args()

    configure_logging()
    procurement.init()
    run(once=args.once, poll_interval=args.poll_interval, reconcile_every=args.reconcile_every)


if __name__ == "__main__":
    main()
