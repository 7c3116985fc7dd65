"""Domain events for the DeliveryJob aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from procurement.domain import procurement


@procurement.event(part_of="DeliveryJob")
class DeliveryJobCreated:
    __version__ = 1

    job_id = Identifier(required=True)
    order_id = Identifier(required=True)
    factory_id = Identifier(required=True)
    idempotency_key = String(required=True)
    max_attempts = Integer(required=True)
    created_at = DateTime(required=True)


@procurement.event(part_of="DeliveryJob")
class DeliveryAttemptStarted:
    __version__ = 1

    job_id = Identifier(required=True)
    order_id = Identifier(required=True)
    attempt = Integer(required=True)
    started_at = DateTime(required=True)


@procurement.event(part_of="DeliveryJob")
class DeliverySucceeded:
    __version__ = 1

    job_id = Identifier(required=True)
    order_id = Identifier(required=True)
    attempt = Integer(required=True)
    document_reference = String(required=True)
    sent_at = DateTime(required=True)


@procurement.event(part_of="DeliveryJob")
class DeliveryAttemptFailed:
    """An attempt failed and the job went back to Pending for another try."""

    __version__ = 1

    job_id = Identifier(required=True)
    order_id = Identifier(required=True)
    attempt = Integer(required=True)
    max_attempts = Integer(required=True)
    error = String(max_length=1000)
    failed_at = DateTime(required=True)


@procurement.event(part_of="DeliveryJob")
class DeliveryFailed:
    """The job is out of attempts, or hit an error not worth retrying."""

    __version__ = 1

    job_id = Identifier(required=True)
    order_id = Identifier(required=True)
    attempts = Integer(required=True)
    error = String(max_length=1000)
    failed_at = DateTime(required=True)


@procurement.event(part_of="DeliveryJob")
class DeliveryRetried:
    __version__ = 1

    job_id = Identifier(required=True)
    order_id = Identifier(required=True)
    retried_by = Identifier()
    retried_at = DateTime(required=True)
