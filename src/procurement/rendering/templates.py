"""Order document template — the sheet the factory receives as a PDF."""

from jinja2 import Environment, select_autoescape

from procurement.fulfillment.order_graph import OrderGraph
from procurement.shared.money import format_amount

_environment = Environment(autoescape=select_autoescape(default=True, default_for_string=True))
_environment.filters["money"] = format_amount

_ORDER_DOCUMENT = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>Order {{ order.order_number }}</title>
  <style>
    @page { size: A4; margin: 20mm; }
    body { font-family: Arial, sans-serif; font-size: 12px; color: #333; }
    .header { text-align: center; margin-bottom: 30px; border-bottom: 2px solid #333; padding-bottom: 20px; }
    .header h1 { margin: 0; }
    .parties { display: flex; justify-content: space-between; margin-bottom: 30px; }
    .party { width: 45%; }
    .party h3 { margin: 0 0 8px; border-bottom: 1px solid #ccc; padding-bottom: 4px; }
    table { width: 100%; border-collapse: collapse; margin-bottom: 20px; }
    th, td { border: 1px solid #ddd; padding: 8px; text-align: left; }
    th { background: #f5f5f5; }
    td.amount, th.amount { text-align: right; }
    .total { text-align: right; font-size: 16px; font-weight: bold; margin-bottom: 20px; }
    .notes { background: #f9f9f9; padding: 12px; margin-bottom: 20px; }
    .footer { text-align: center; font-size: 10px; color: #777; border-top: 1px solid #ccc; padding-top: 10px; }
  </style>
</head>
<body>
  <div class="header">
    <h1>PURCHASE ORDER</h1>
    <p>Order Number: <strong>{{ order.order_number }}</strong></p>
    {% if order.created_at %}<p>Date: {{ order.created_at.strftime("%Y-%m-%d") }}</p>{% endif %}
  </div>

  <div class="parties">
    <div class="party">
      <h3>FROM</h3>
      <p><strong>{{ order.organization.name }}</strong></p>
      {% if order.organization.address %}<p>{{ order.organization.address }}</p>{% endif %}
      {% if order.organization.email %}<p>Email: {{ order.organization.email }}</p>{% endif %}
      {% if order.organization.phone %}<p>Phone: {{ order.organization.phone }}</p>{% endif %}
    </div>
    <div class="party">
      <h3>TO</h3>
      <p><strong>{{ order.factory.name }}</strong></p>
      {% if order.factory.address %}<p>{{ order.factory.address }}</p>{% endif %}
      {% if order.factory.email %}<p>Email: {{ order.factory.email }}</p>{% endif %}
      {% if order.factory.phone %}<p>Phone: {{ order.factory.phone }}</p>{% endif %}
    </div>
  </div>

  <table>
    <thead>
      <tr>
        <th>SKU</th>
        <th>Product</th>
        <th>Variant</th>
        <th>Quantity</th>
        <th class="amount">Unit Price</th>
        <th class="amount">Total</th>
      </tr>
    </thead>
    <tbody>
      {% for line in order.lines %}
      <tr>
        <td>{{ line.sku }}</td>
        <td>{{ line.product_name }}</td>
        <td>{{ line.variant_name }}</td>
        <td>{{ line.quantity }}</td>
        <td class="amount">{{ order.currency }} {{ line.unit_price | money }}</td>
        <td class="amount">{{ order.currency }} {{ line.line_total | money }}</td>
      </tr>
      {% endfor %}
    </tbody>
  </table>

  <div class="total">TOTAL AMOUNT: {{ order.currency }} {{ order.total_amount | money }}</div>

  {% if order.notes %}
  <div class="notes"><strong>Notes:</strong><p>{{ order.notes }}</p></div>
  {% endif %}

  <div class="footer">
    <p>Generated by Vendora Platform</p>
  </div>
</body>
</html>
"""


class OrderDocumentTemplate:
    template = _environment.from_string(_ORDER_DOCUMENT)

    @classmethod
    def render(cls, graph: OrderGraph) -> str:
        return cls.template.render(order=graph)
