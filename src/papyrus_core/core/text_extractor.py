"""
Plain-text extraction from uploaded files.

Supports plain text, markdown (read as plain text), HTML (tags stripped with
a naive regex) and Word ``.docx`` documents via python-docx.
"""

import logging
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Optional, List, Union

from docx import Document

from .content_types import DocumentContent
from ..exceptions import UnsupportedFormatError

logger = logging.getLogger(__name__)


SUPPORTED_EXTENSIONS = [".txt", ".md", ".docx", ".html", ".htm"]

FORMAT_BY_EXTENSION = {
    ".txt": "plain",
    ".md": "markdown",
    ".docx": "docx",
    ".html": "html",
    ".htm": "html",
}

_TAG_PATTERN = re.compile(r"<[^>]*>")


def strip_html_tags(html: str) -> str:
    """
    Remove anything that looks like a tag and trim the result.

    This is not an HTML parser: literal angle brackets in text are mangled.
    """
    return _TAG_PATTERN.sub("", html).strip()


@dataclass
class ExtractedText:
    """Text pulled out of one file, with format and extractor warnings."""

    text: str
    format: str
    filename: str = ""
    upload_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    warnings: List[str] = field(default_factory=list)
    extracted_at: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def content(self) -> DocumentContent:
        return DocumentContent(self.text)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "upload_id": self.upload_id,
            "filename": self.filename,
            "extracted_text": self.text,
            "format": self.format,
            "warnings": list(self.warnings),
            "extracted_at": self.extracted_at,
            "statistics": self.content.statistics(),
        }


@dataclass
class BatchExtraction:
    """Outcome of a batch run: successes and per-file errors."""

    batch_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    results: List[ExtractedText] = field(default_factory=list)
    errors: List[Dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "batch_id": self.batch_id,
            "processed_count": len(self.results),
            "error_count": len(self.errors),
            "results": [r.to_dict() for r in self.results],
            "errors": list(self.errors),
        }


class TextExtractor:
    """Extracts plain text from the supported upload formats."""

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    def detect_format(self, file_path: Union[str, Path], kind: Optional[str] = None) -> str:
        """
        Map an extension (``kind`` or the path's suffix) to a format name.

        Raises:
            UnsupportedFormatError: If the extension is not supported
        """
        extension = (kind or Path(file_path).suffix).lower()
        if extension and not extension.startswith("."):
            extension = "." + extension
        if extension not in FORMAT_BY_EXTENSION:
            raise UnsupportedFormatError(
                f"Unsupported file format: {extension or '(none)'}",
                supported=SUPPORTED_EXTENSIONS,
            )
        return FORMAT_BY_EXTENSION[extension]

    def extract_plain_text(self, file_path: Union[str, Path], kind: Optional[str] = None) -> str:
        """Return only the text of a file."""
        return self.extract_file(file_path, kind).text

    def extract_file(
        self,
        file_path: Union[str, Path],
        kind: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> ExtractedText:
        """
        Extract text from a file.

        Args:
            file_path: Path to the file on disk
            kind: Extension to use instead of the path's suffix (uploads
                  are often stored under a generated name)
            filename: Original filename for reporting

        Returns:
            ExtractedText with text, format and any warnings

        Raises:
            UnsupportedFormatError: If the extension is not supported
            FileNotFoundError: If the file doesn't exist
        """
        file_path = Path(file_path)
        text_format = self.detect_format(file_path, kind)

        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        warnings: List[str] = []
        if text_format in ("plain", "markdown"):
            text = file_path.read_text(encoding=self.encoding)
        elif text_format == "html":
            text = strip_html_tags(file_path.read_text(encoding=self.encoding))
        else:
            text, warnings = self._extract_docx(file_path)

        logger.info(f"Extracted {len(text)} characters from {file_path.name} ({text_format})")
        return ExtractedText(
            text=text,
            format=text_format,
            filename=filename or file_path.name,
            warnings=warnings,
        )

    def _extract_docx(self, file_path: Path):
        document = Document(str(file_path))
        warnings = []

        blocks = [para.text for para in document.paragraphs]

        for table in document.tables:
            for row in table.rows:
                cells = [(c.text or "").replace("\n", " ").strip() for c in row.cells]
                blocks.append("\t".join(cells))

        image_count = len(document.inline_shapes)
        if image_count:
            warnings.append(f"Skipped {image_count} inline image(s)")
        if document.tables:
            warnings.append(
                f"Flattened {len(document.tables)} table(s) to tab-separated rows"
            )

        return "\n\n".join(blocks).strip(), warnings

    def extract_batch(self, files: List[Union[str, Path, tuple]]) -> BatchExtraction:
        """
        Extract several files, recording failures instead of stopping.

        Args:
            files: Paths, or ``(path, original_filename)`` tuples

        Returns:
            BatchExtraction with results and a per-file error list
        """
        batch = BatchExtraction()

        for i, item in enumerate(files):
            if isinstance(item, tuple):
                file_path, original_name = Path(item[0]), item[1]
            else:
                file_path, original_name = Path(item), Path(item).name

            try:
                logger.info(f"Extracting file {i+1}/{len(files)}: {original_name}")
                kind = Path(original_name).suffix or None
                batch.results.append(self.extract_file(file_path, kind, original_name))
            except Exception as e:
                logger.error(f"Failed to extract {original_name}: {e}")
                batch.errors.append({"filename": original_name, "error": str(e)})

        logger.info(f"Batch extraction complete: {len(batch.results)}/{len(files)} successful")
        return batch
