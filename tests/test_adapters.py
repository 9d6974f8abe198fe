"""Tests for the PDF and email adapters with the third-party clients replaced."""

import base64
import sys
import types

import pytest

from services import mailer_service, pdf_service
from services.mailer_service import html_to_text, send_email
from services.pdf_service import generate_pdf, pdf_file_path


class FakePostmark:
    sent = []

    def __init__(self, server_token):
        self.server_token = server_token
        self.emails = self

    def send(self, **kwargs):
        FakePostmark.sent.append(kwargs)


@pytest.fixture
def postmark(monkeypatch):
    FakePostmark.sent = []
    monkeypatch.setattr(mailer_service, "PostmarkClient", FakePostmark)
    monkeypatch.setattr(mailer_service, "POSTMARK_API_TOKEN", "server-token")
    monkeypatch.setattr(mailer_service, "SENDER_EMAIL", "billing@studio.test")
    return FakePostmark.sent


@pytest.fixture
def fake_weasyprint(monkeypatch):
    rendered = []

    class HTML:
        def __init__(self, string):
            self.string = string

        def write_pdf(self, target):
            rendered.append(self.string)
            with open(target, "wb") as f:
                f.write(b"%PDF-1.7 fake")

    module = types.ModuleType("weasyprint")
    module.HTML = HTML
    monkeypatch.setitem(sys.modules, "weasyprint", module)
    return rendered


def test_send_email_requires_a_token(monkeypatch) -> None:
    monkeypatch.setattr(mailer_service, "POSTMARK_API_TOKEN", None)
    with pytest.raises(ValueError, match="POSTMARK_API_TOKEN"):
        send_email("a@b.test", "Hi", "<p>Hi</p>")


def test_send_email_with_attachments(postmark, tmp_path) -> None:
    pdf = tmp_path / "invoice_INV-0001.pdf"
    pdf.write_bytes(b"%PDF-data")

    send_email(
        "accounts@acme.test",
        "Invoice INV-0001",
        "<p>Dear Acme,</p><p>Please pay.</p>",
        attachments=[str(pdf), str(tmp_path / "missing.pdf")],
    )

    message = postmark[0]
    assert message["From"] == "billing@studio.test"
    assert message["To"] == "accounts@acme.test"
    assert message["TextBody"] == "Dear Acme,\nPlease pay."
    assert message["Attachments"] == [{
        "Name": "invoice_INV-0001.pdf",
        "Content": base64.b64encode(b"%PDF-data").decode("utf-8"),
        "ContentType": "application/pdf",
    }]


def test_html_to_text_drops_styles() -> None:
    html = "<html><style>p { color: red; }</style><body><p>Total:   ₹220.00</p></body></html>"
    assert html_to_text(html) == "Total: ₹220.00"


def test_generate_pdf_writes_into_output_dir(fake_weasyprint, tmp_path) -> None:
    path = generate_pdf("<h1>INV-0001</h1>", "INV/0001", prefix="invoice", output_dir=str(tmp_path / "out"))

    assert path == str(tmp_path / "out" / "invoice_INV-0001.pdf")
    assert fake_weasyprint == ["<h1>INV-0001</h1>"]
    with open(path, "rb") as f:
        assert f.read().startswith(b"%PDF")


def test_generate_pdf_defaults_to_configured_dir(fake_weasyprint, monkeypatch, tmp_path) -> None:
    monkeypatch.setattr(pdf_service, "OUTPUT_DIR", str(tmp_path))
    assert pdf_file_path("QUO-0001", "quote") == str(tmp_path / "quote_QUO-0001.pdf")
    assert generate_pdf("<p>q</p>", "QUO-0001", prefix="quote") == str(tmp_path / "quote_QUO-0001.pdf")


def test_generate_pdf_wraps_failures(monkeypatch, tmp_path) -> None:
    class BrokenHTML:
        def __init__(self, string):
            raise OSError("cannot load pango")

    module = types.ModuleType("weasyprint")
    module.HTML = BrokenHTML
    monkeypatch.setitem(sys.modules, "weasyprint", module)

    with pytest.raises(RuntimeError, match="Failed to generate receipt PDF: cannot load pango"):
        generate_pdf("<p>r</p>", "PAY-000001", prefix="receipt", output_dir=str(tmp_path))
