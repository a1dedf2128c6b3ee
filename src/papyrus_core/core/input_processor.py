"""
Markdown conversion for papyrus-core.

Strips YAML frontmatter, expands page-break shortcodes and converts the
remaining markdown to an HTML fragment.
"""

import re
import logging
from dataclasses import dataclass, field
from typing import Dict, Any, Optional, List, Tuple

import frontmatter
import markdown
import yaml

logger = logging.getLogger(__name__)


@dataclass
class ConvertedContent:
    """HTML produced from a markdown document plus its frontmatter."""

    html: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def title(self) -> str:
        return str(self.metadata.get("title") or "")

    @property
    def author(self) -> str:
        return str(self.metadata.get("author") or "")


class InputProcessor:
    """
    Converts markdown content to HTML.

    Features:
    - YAML frontmatter parsing
    - Tables, fenced code, footnotes, definition lists
    - Page-break shortcodes
    """

    def __init__(self, markdown_extensions: Optional[List[str]] = None):
        """
        Initialize the InputProcessor.

        Args:
            markdown_extensions: List of markdown extensions to enable
        """
        self.markdown_extensions = markdown_extensions or [
            'tables',
            'fenced_code',
            'footnotes',
            'attr_list',
            'def_list',
            'abbr',
            'sane_lists',
        ]

    def to_html(self, content: str) -> str:
        """Convert markdown to an HTML fragment."""
        return self.convert(content).html

    def convert(self, content: str) -> ConvertedContent:
        """
        Convert markdown content with optional frontmatter.

        Args:
            content: Markdown content

        Returns:
            ConvertedContent with the HTML fragment and frontmatter metadata
        """
        metadata, body = self._split_frontmatter(content)
        processed_content = self._process_shortcodes(body)

        # A fresh converter per call keeps concurrent requests independent
        md = markdown.Markdown(extensions=self.markdown_extensions)
        html = md.convert(processed_content)

        logger.debug(f"Converted {len(content)} characters of markdown to {len(html)} characters of HTML")
        return ConvertedContent(html=html, metadata=metadata)

    def _split_frontmatter(self, content: str) -> Tuple[Dict[str, Any], str]:
        """
        Separate a leading YAML frontmatter block from the markdown body.

        A leading ``---`` block is only frontmatter when it parses to a
        mapping (or is empty). Anything else, such as a horizontal rule
        followed by prose, is left in the body untouched.

        Returns:
            Tuple of (metadata, body)
        """
        handler = frontmatter.YAMLHandler()
        if not handler.detect(content):
            return {}, content

        try:
            raw_metadata, body = handler.split(content)
            metadata = handler.load(raw_metadata)
        except (ValueError, yaml.YAMLError) as e:
            logger.debug(f"Leading block is not frontmatter, keeping it as markdown: {e}")
            return {}, content

        if metadata is None and not raw_metadata.strip():
            metadata = {}
        if not isinstance(metadata, dict):
            logger.debug("Leading block is not a YAML mapping, keeping it as markdown")
            return {}, content

        return metadata, body

    def _process_shortcodes(self, content: str) -> str:
        """
        Process custom shortcodes in content.

        Args:
            content: Raw markdown content

        Returns:
            Content with shortcodes processed
        """
        content = re.sub(r'\[PAGE_BREAK\]', '<div class="page-break"></div>', content, flags=re.IGNORECASE)
        content = re.sub(r'\[BREAK\]', '<div class="page-break"></div>', content, flags=re.IGNORECASE)
        return content
