"""Organization and Factory aggregates — the two parties to every order.

Organizations are the wholesale buyers; factories are the suppliers that
receive submitted orders at their contact address.
"""

from datetime import UTC, datetime

from protean.fields import Boolean, DateTime, String, Text

from procurement.domain import procurement


@procurement.aggregate
class Organization:
    name = String(required=True, max_length=255)
    email = String(max_length=255)
    phone = String(max_length=50)
    address = Text()
    created_at = DateTime()

    @classmethod
    def register(cls, name, email=None, phone=None, address=None):
        return cls(
            name=name,
            email=email,
            phone=phone,
            address=address,
            created_at=datetime.now(UTC),
        )


@procurement.aggregate
class Factory:
    name = String(required=True, max_length=255)
    contact_email = String(required=True, max_length=255)
    contact_phone = String(max_length=50)
    address = Text()
    is_active = Boolean(default=True)
    created_at = DateTime()

    @classmethod
    def register(cls, name, contact_email, contact_phone=None, address=None):
        return cls(
            name=name,
            contact_email=contact_email,
            contact_phone=contact_phone,
            address=address,
            is_active=True,
            created_at=datetime.now(UTC),
        )
