"""
Test helper utilities for papyrus-core.
"""

from pathlib import Path
from typing import Optional

from docx import Document

from papyrus_core.core.pdf_generator import PDFConfig, PDFRenderer
from papyrus_core.services import CompletionClient


MINIMAL_PDF = (
    b"%PDF-1.4\n"
    b"1 0 obj << /Type /Catalog /Pages 2 0 R >> endobj\n"
    b"2 0 obj << /Type /Pages /Kids [] /Count 0 >> endobj\n"
    b"trailer << /Root 1 0 R >>\n"
    b"%%EOF"
)

TEST_TEMPLATE_HTML = """<!DOCTYPE html>
<html>
<head>
    {{STYLES}}
</head>
<body>
    <h1 class="report-title">{{TITLE}}</h1>
    <p class="byline">{{AUTHOR}} - {{DATE}}</p>
    <main>{{CONTENT}}</main>
</body>
</html>"""


def create_test_template(
    templates_dir: Path,
    template_id: str,
    html: Optional[str] = None,
) -> Path:
    """
    Write an HTML template into a templates directory.

    Args:
        templates_dir: Directory to write into
        template_id: Template identifier (file stem)
        html: Template source; a report layout using every token by default

    Returns:
        Path to created template file
    """
    templates_dir.mkdir(parents=True, exist_ok=True)
    template_path = templates_dir / f"{template_id}.html"
    template_path.write_text(html if html is not None else TEST_TEMPLATE_HTML, encoding="utf-8")
    return template_path


def create_test_docx(path: Path, paragraphs, table_rows=None) -> Path:
    """Create a .docx file with the given paragraphs and an optional table."""
    document = Document()
    for text in paragraphs:
        document.add_paragraph(text)

    if table_rows:
        table = document.add_table(rows=len(table_rows), cols=len(table_rows[0]))
        for row, values in zip(table.rows, table_rows):
            for cell, value in zip(row.cells, values):
                cell.text = value

    document.save(str(path))
    return path


def assert_pdf_valid(pdf_path: Path, min_size: int = 10):
    """Assert that a file looks like a PDF."""
    assert pdf_path.exists(), f"PDF file does not exist: {pdf_path}"
    assert pdf_path.stat().st_size >= min_size, f"PDF file too small: {pdf_path.stat().st_size} bytes"

    with open(pdf_path, "rb") as f:
        header = f.read(4)
        assert header == b"%PDF", f"Invalid PDF header: {header}"


def assert_png_valid(png_path: Path):
    """Assert that a file carries the PNG signature."""
    assert png_path.exists(), f"PNG file does not exist: {png_path}"
    with open(png_path, "rb") as f:
        assert f.read(8) == b"\x89PNG\r\n\x1a\n"


class StubCompletionClient(CompletionClient):
    """Deterministic language model: returns queued replies and records calls."""

    def __init__(self, replies=None):
        self.replies = list(replies or [])
        self.calls = []

    async def complete(self, prompt, system_instruction, temperature=0.3,
                       max_tokens=2000, model=None):
        self.calls.append({
            "prompt": prompt,
            "system_instruction": system_instruction,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "model": model,
        })
        reply = self.replies.pop(0) if self.replies else ""
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakePDFRenderer(PDFRenderer):
    """Returns a small fixed PDF and records what it was asked to render."""

    def __init__(self, pdf_bytes: bytes = MINIMAL_PDF):
        self.pdf_bytes = pdf_bytes
        self.rendered = []

    async def render_pdf(self, html: str, config: Optional[PDFConfig] = None) -> bytes:
        self.rendered.append((html, config))
        # Content-dependent bytes so concurrent outputs are distinguishable
        return self.pdf_bytes + f"\n% {len(html)}\n".encode()
