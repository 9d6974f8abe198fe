# services/pdf_service.py
import os
from datetime import datetime

from configs.settings import OUTPUT_DIR
from utils.logger import get_logger

logger = get_logger(__name__)


def pdf_file_path(document_number: str | None, prefix: str = "document", output_dir: str | None = None) -> str:
    """Where the PDF for ``document_number`` is written."""
    doc_id = document_number or datetime.now().isoformat()
    safe_name = doc_id.replace(":", "-").replace("/", "-")
    return os.path.join(output_dir or OUTPUT_DIR, f"{prefix}_{safe_name}.pdf")


def generate_pdf(
    html_content: str,
    document_number: str | None = None,
    prefix: str = "document",
    output_dir: str | None = None,
) -> str:
    """
    Generic PDF generator using WeasyPrint.

    Args:
        html_content: Fully rendered HTML document.
        document_number: Used to name the file (INV-0001, QUO-0001, PAY-000001).
        prefix: 'invoice', 'quote', 'receipt', etc.
        output_dir: Overrides OUTPUT_DIR.

    Returns:
        str: Path to generated PDF file.
    """
    try:
        # WeasyPrint needs pango at import time
        from weasyprint import HTML

        file_path = pdf_file_path(document_number, prefix, output_dir)
        os.makedirs(os.path.dirname(file_path), exist_ok=True)

        HTML(string=html_content).write_pdf(file_path)
        logger.info(f"✅ PDF generated: {file_path}")
        return file_path
    except Exception as e:
        raise RuntimeError(f"Failed to generate {prefix} PDF: {e}")
