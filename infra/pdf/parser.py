from typing import Optional, Tuple

import pdfplumber


def parse_pdf(path: str, max_pages: Optional[int] = None) -> Tuple[str, int]:
    """Extracted text and total page count."""
    text_parts = []
    with pdfplumber.open(path) as pdf:
        pages = pdf.pages if max_pages is None else pdf.pages[:max_pages]
        for page in pages:
            text_parts.append(page.extract_text() or "")
        page_count = len(pdf.pages)
    return "\n".join(text_parts), page_count
