"""Procurement bounded context — B2B orders from buyer organizations to factories.

Hosts the supporting catalog records (organizations, factories, products,
variants, price lists), the order lifecycle, the delivery pipeline that
renders an order document and sends it to the factory, and the audit trail.
"""

import structlog
from protean.domain import Domain

procurement = Domain(name="procurement")

logger = structlog.get_logger(__name__)
