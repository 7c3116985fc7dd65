"""Human-readable order numbers: ORD-<year>-<5-digit sequence>.

The sequence is the total number of orders plus one, which is only best
effort under concurrent creation. Numbers already taken are skipped, and the
unique constraint on `order_number` rejects whatever still collides.
"""

from datetime import UTC, datetime

from protean.utils.globals import current_domain

from procurement.order.order import Order

_MAX_PROBES = 100


def format_order_number(year: int, sequence: int) -> str:
    return f"ORD-{year}-{sequence:05d}"


def _is_taken(order_number) -> bool:
    return bool(current_domain.repository_for(Order)._dao.query.filter(order_number=order_number).all().items)


def next_order_number(now=None) -> str:
    year = (now or datetime.now(UTC)).year
    sequence = current_domain.repository_for(Order)._dao.query.all().total + 1

    candidate = format_order_number(year, sequence)
    for _ in range(_MAX_PROBES):
        if not _is_taken(candidate):
            break
        sequence += 1
        candidate = format_order_number(year, sequence)
    return candidate
