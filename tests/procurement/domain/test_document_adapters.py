"""Tests for the order document template, the PDF renderer and the SMTP notifier."""

import subprocess
from dataclasses import replace
from datetime import UTC, datetime
from decimal import Decimal
from pathlib import Path

import aiosmtplib
import pytest
from procurement.fulfillment.order_graph import OrderGraph, OrderLine, Party
from procurement.notifier.port import DeliveryError
from procurement.notifier.smtp_notifier import SmtpNotifier
from procurement.notifier.templates import NewOrderEmailTemplate
from procurement.rendering.pdf_renderer import PdfDocumentRenderer
from procurement.rendering.port import RenderError
from procurement.rendering.templates import OrderDocumentTemplate


def _graph(notes="Ship <fast>"):
    return OrderGraph(
        order_id="ord-001",
        order_number="ORD-2026-00001",
        status="Submitted",
        currency="USD",
        total_amount=Decimal("2700.00"),
        created_at=datetime(2026, 3, 14, tzinfo=UTC),
        notes=notes,
        organization=Party(name="Acme Retail", email="buying@acme.example", address="1 Market St"),
        factory=Party(name="Northwind Textiles", email="orders@northwind.example"),
        lines=(
            OrderLine(
                sku="JKT-CAN-M",
                product_name="Canvas Jacket",
                variant_name="Canvas Jacket M",
                quantity=3,
                unit_price=Decimal("450.00"),
                line_total=Decimal("1350.00"),
            ),
            OrderLine(
                sku="JKT-CAN-L",
                product_name="Canvas Jacket",
                variant_name="Canvas Jacket L",
                quantity=3,
                unit_price=Decimal("450.00"),
                line_total=Decimal("1350.00"),
            ),
        ),
    )


class TestOrderDocumentTemplate:
    def test_contains_parties_lines_and_total(self):
        html = OrderDocumentTemplate.render(_graph())
        assert "ORD-2026-00001" in html
        assert "Acme Retail" in html
        assert "Northwind Textiles" in html
        assert "JKT-CAN-M" in html
        assert "USD 1350.00" in html
        assert "TOTAL AMOUNT: USD 2700.00" in html
        assert "Generated by Vendora Platform" in html

    def test_escapes_user_text(self):
        html = OrderDocumentTemplate.render(_graph(notes="<script>alert(1)</script>"))
        assert "<script>alert(1)</script>" not in html
        assert "&lt;script&gt;" in html


class TestNewOrderEmailTemplate:
    def test_subject_names_the_buyer(self):
        content = NewOrderEmailTemplate.render(_graph(), "New Order: ORD-2026-00001")
        assert content["subject"] == "New Order: ORD-2026-00001 from Acme Retail"
        assert content["attachment_name"] == "order-ORD-2026-00001.pdf"

    def test_bodies_summarize_the_order(self):
        content = NewOrderEmailTemplate.render(_graph(), "New Order: ORD-2026-00001")
        assert "New Order Received" in content["html_body"]
        assert "Items: 2" in content["body"]
        assert "USD 2700.00" in content["body"]

    def test_text_body_formats_amounts_and_keeps_notes_verbatim(self):
        graph = replace(_graph(), total_amount=Decimal("2700"))
        content = NewOrderEmailTemplate.render(graph, "New Order: ORD-2026-00001")

        assert "Total Amount: USD 2700.00" in content["body"]
        assert "Date: 2026-03-14" in content["body"]
        assert "Notes: Ship <fast>" in content["body"]
        assert "Ship &lt;fast&gt;" in content["html_body"]


class TestPdfDocumentRenderer:
    def test_render_writes_named_pdf(self, tmp_path, monkeypatch):
        def fake_run(command, **kwargs):
            target = next(arg.split("=", 1)[1] for arg in command if arg.startswith("--print-to-pdf="))
            Path(target).write_bytes(b"%PDF-1.4 test")
            return subprocess.CompletedProcess(command, 0, b"", b"")

        monkeypatch.setattr(subprocess, "run", fake_run)
        renderer = PdfDocumentRenderer(storage_path=str(tmp_path), chromium_binary="chromium")

        reference = renderer.render(_graph())

        assert Path(reference).parent == tmp_path
        assert Path(reference).name.startswith("order-ORD-2026-00001-")
        assert reference.endswith(".pdf")
        assert renderer.read(reference) == b"%PDF-1.4 test"

    def test_nonzero_exit_is_a_render_error(self, tmp_path, monkeypatch):
        monkeypatch.setattr(
            subprocess, "run", lambda command, **kwargs: subprocess.CompletedProcess(command, 1, b"", b"crashed")
        )
        renderer = PdfDocumentRenderer(storage_path=str(tmp_path))
        with pytest.raises(RenderError, match="crashed"):
            renderer.render(_graph())
        assert list(tmp_path.iterdir()) == []

    def test_timeout_is_a_render_error(self, tmp_path, monkeypatch):
        def slow_run(command, **kwargs):
            raise subprocess.TimeoutExpired(command, kwargs["timeout"])

        monkeypatch.setattr(subprocess, "run", slow_run)
        renderer = PdfDocumentRenderer(storage_path=str(tmp_path), timeout=0.5)
        with pytest.raises(RenderError, match="timed out"):
            renderer.render(_graph())

    def test_discard_removes_file(self, tmp_path):
        document = tmp_path / "order-ORD-2026-00001-x.pdf"
        document.write_bytes(b"%PDF")
        PdfDocumentRenderer(storage_path=str(tmp_path)).discard(str(document))
        assert not document.exists()


class TestSmtpNotifier:
    def _notifier(self):
        return SmtpNotifier(host="smtp.example", port=2525, from_email="orders@vendora.example", start_tls=False)

    def test_message_carries_attachment_and_stable_id(self):
        message = self._notifier().build_message(
            ["orders@northwind.example"],
            "New Order: ORD-2026-00001",
            _graph(),
            b"%PDF-1.4",
            "order-delivery-job-001",
        )
        assert message["Subject"] == "New Order: ORD-2026-00001 from Acme Retail"
        assert message["To"] == "orders@northwind.example"
        assert message["Message-ID"] == "<order-delivery-job-001@vendora.example>"
        attachments = list(message.iter_attachments())
        assert [part.get_filename() for part in attachments] == ["order-ORD-2026-00001.pdf"]
        assert attachments[0].get_content() == b"%PDF-1.4"

    def test_send_delivers_through_aiosmtplib(self, monkeypatch):
        sent = []

        async def fake_send(message, **kwargs):
            sent.append((message, kwargs))

        monkeypatch.setattr(aiosmtplib, "send", fake_send)
        message_id = self._notifier().send(
            recipients=["orders@northwind.example"],
            subject="New Order: ORD-2026-00001",
            order=_graph(),
            document_reference="/tmp/order.pdf",
            document=b"%PDF-1.4",
            idempotency_key="order-delivery-job-001",
        )
        assert message_id == "<order-delivery-job-001@vendora.example>"
        assert sent[0][1]["hostname"] == "smtp.example"
        assert sent[0][1]["port"] == 2525

    def test_smtp_errors_become_delivery_errors(self, monkeypatch):
        async def failing_send(message, **kwargs):
            raise aiosmtplib.SMTPException("451 try again later")

        monkeypatch.setattr(aiosmtplib, "send", failing_send)
        with pytest.raises(DeliveryError, match="451"):
            self._notifier().send(
                recipients=["orders@northwind.example"],
                subject="New Order: ORD-2026-00001",
                order=_graph(),
                document_reference="/tmp/order.pdf",
                document=b"%PDF-1.4",
                idempotency_key="order-delivery-job-001",
            )

    def test_requires_recipients(self):
        with pytest.raises(DeliveryError):
            self._notifier().send(
                recipients=[],
                subject="New Order: ORD-2026-00001",
                order=_graph(),
                document_reference="/tmp/order.pdf",
                document=b"%PDF-1.4",
                idempotency_key="order-delivery-job-001",
            )
