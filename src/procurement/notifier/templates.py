"""New-order email sent to the factory with the order document attached."""

from jinja2 import Environment, select_autoescape

from procurement.fulfillment.order_graph import OrderGraph
from procurement.shared.money import format_amount

_environment = Environment(autoescape=select_autoescape(default=True, default_for_string=True))
_environment.filters["money"] = format_amount

_text_environment = Environment(autoescape=False)
_text_environment.filters["money"] = format_amount

_HTML_BODY = """<!DOCTYPE html>
<html>
<body style="font-family: Arial, sans-serif; color: #333;">
  <h2>New Order Received</h2>
  <p>Dear {{ order.factory.name }},</p>
  <p>You have received a new order from <strong>{{ order.organization.name }}</strong>.</p>
  <table style="border-collapse: collapse;">
    <tr><td><strong>Order Number:</strong></td><td>{{ order.order_number }}</td></tr>
    {% if order.created_at %}
    <tr><td><strong>Date:</strong></td><td>{{ order.created_at.strftime("%Y-%m-%d") }}</td></tr>
    {% endif %}
    <tr><td><strong>Total Amount:</strong></td><td>{{ order.currency }} {{ order.total_amount | money }}</td></tr>
    <tr><td><strong>Items:</strong></td><td>{{ order.item_count }}</td></tr>
  </table>
  {% if order.notes %}<p><strong>Notes:</strong> {{ order.notes }}</p>{% endif %}
  <p>Please find the complete order details in the attached PDF.</p>
  <p>Best regards,<br>Vendora Platform</p>
</body>
</html>
"""

_TEXT_BODY = """New Order Received

Dear {{ order.factory.name }},

You have received a new order from {{ order.organization.name }}.

Order Number: {{ order.order_number }}
{% if order.created_at %}Date: {{ order.created_at.strftime("%Y-%m-%d") }}
{% endif %}Total Amount: {{ order.currency }} {{ order.total_amount | money }}
Items: {{ order.item_count }}
{% if order.notes %}Notes: {{ order.notes }}
{% endif %}
Please find the complete order details in the attached PDF.

Best regards,
Vendora Platform
"""


class NewOrderEmailTemplate:
    html_template = _environment.from_string(_HTML_BODY)
    text_template = _text_environment.from_string(_TEXT_BODY)

    @classmethod
    def render(cls, order: OrderGraph, subject: str) -> dict:
        return {
            "subject": f"{subject} from {order.organization.name}",
            "body": cls.text_template.render(order=order),
            "html_body": cls.html_template.render(order=order),
            "attachment_name": f"order-{order.order_number}.pdf",
        }
