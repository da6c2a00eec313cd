"""Resume text extraction from PDF files using pypdf."""
import logging
from io import BytesIO

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from ..core.errors import ValidationError

logger = logging.getLogger(__name__)


def extract_text(pdf_content: bytes) -> str:
    """Extract text from all pages of a PDF.

    Raises:
        ValidationError: If the bytes are not a readable PDF.
    """
    try:
        reader = PdfReader(BytesIO(pdf_content))
        text_parts = []
        for page in reader.pages:
            page_text = page.extract_text()
            if page_text:
                text_parts.append(page_text)
    except (PdfReadError, ValueError) as e:
        logger.warning(f"Could not parse PDF: {e}")
        raise ValidationError(f"Failed to parse PDF: {e}") from e

    return "\n\n".join(text_parts)
