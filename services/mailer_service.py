import base64
import os
import re

from postmarker.core import PostmarkClient

from configs.settings import POSTMARK_API_TOKEN, SENDER_EMAIL
from utils.logger import get_logger

logger = get_logger(__name__)

MIME_TYPES = {
    ".pdf": "application/pdf",
    ".csv": "text/csv",
    ".html": "text/html",
}


def html_to_text(html: str) -> str:
    """Plain-text fallback for mail clients that do not render HTML."""
    text = re.sub(r"<(script|style)[^>]*>.*?</\1>", "", html, flags=re.DOTALL | re.IGNORECASE)
    text = re.sub(r"<br\s*/?>|</p>|</div>|</tr>", "\n", text, flags=re.IGNORECASE)
    text = re.sub(r"<[^>]+>", "", text)
    text = re.sub(r"[ \t]+", " ", text)
    return re.sub(r"\n\s*\n+", "\n\n", text).strip()


def build_attachments(file_paths: list[str] | None) -> list[dict]:
    attachments_list = []
    for file_path in file_paths or []:
        if not os.path.exists(file_path):
            logger.warning(f"⚠️ Skipping missing attachment: {file_path}")
            continue
        extension = os.path.splitext(file_path)[1].lower()
        with open(file_path, "rb") as f:
            encoded = base64.b64encode(f.read()).decode("utf-8")
        attachments_list.append({
            "Name": os.path.basename(file_path),
            "Content": encoded,
            "ContentType": MIME_TYPES.get(extension, "application/octet-stream"),
        })
    return attachments_list


def send_email(
    recipient_email: str,
    subject: str,
    html_body: str,
    attachments: list[str] = None,
    text_body: str | None = None,
):
    """
    Generic email sender using Postmark.

    Args:
        recipient_email: Email of recipient.
        subject: Email subject.
        html_body: Rendered HTML body.
        attachments: List of file paths (PDF, CSV, etc.)
        text_body: Plain-text body; derived from ``html_body`` when omitted.
    """
    if not POSTMARK_API_TOKEN:
        raise ValueError("POSTMARK_API_TOKEN missing in environment.")
    if not SENDER_EMAIL:
        raise ValueError("SENDER_EMAIL missing in environment.")

    postmark = PostmarkClient(server_token=POSTMARK_API_TOKEN)
    attachments_list = build_attachments(attachments)

    postmark.emails.send(
        From=SENDER_EMAIL,
        To=recipient_email,
        Subject=subject,
        HtmlBody=html_body,
        TextBody=text_body or html_to_text(html_body),
        Attachments=attachments_list,
    )
    logger.info(f"✅ Email sent to {recipient_email} ({len(attachments_list)} attachment(s))")
