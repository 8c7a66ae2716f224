"""PDF decoding via pypdf."""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class PdfDocument:
    text: str
    page_count: int
    info: dict[str, Any] = field(default_factory=dict)


def decode_pdf(data: bytes) -> PdfDocument:
    """Decode raw PDF bytes into text, page count and document info.

    ``pypdf`` is imported lazily.

    Raises:
        pypdf.errors.PdfReadError: *data* is not a readable PDF.
    """
    from pypdf import PdfReader  # noqa: PLC0415

    reader = PdfReader(io.BytesIO(data))
    pages_text: list[str] = []
    for page in reader.pages:
        page_text = page.extract_text() or ""
        if page_text.strip():
            pages_text.append(page_text)

    info: dict[str, Any] = {}
    if reader.metadata:
        for key, value in reader.metadata.items():
            info[str(key).lstrip("/")] = str(value)

    return PdfDocument(text="\n".join(pages_text), page_count=len(reader.pages), info=info)
