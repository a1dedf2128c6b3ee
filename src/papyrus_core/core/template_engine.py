"""
Template engine module for papyrus-core.

Resolves a template id to an HTML skeleton, builds the style block from
merged style options and substitutes title, content, author, date and styles
into the skeleton's placeholder tokens.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Optional, List

from jinja2 import Environment, FileSystemLoader, TemplateNotFound
from markupsafe import escape

from .content_types import RenderedTemplate, StyleOptions, Template

logger = logging.getLogger(__name__)


BUILTIN_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

DEFAULT_TEMPLATE_ID = "default"

# Each token is replaced once, at its first occurrence only
PLACEHOLDERS = ("{{TITLE}}", "{{CONTENT}}", "{{AUTHOR}}", "{{DATE}}", "{{STYLES}}")

TEMPLATE_DESCRIPTIONS = {
    "default": "Clean, professional layout",
    "modern": "Contemporary design with bold typography",
    "classic": "Traditional layout",
    "minimal": "Ultra-clean design",
}

# Tokens are replaced on first occurrence only, so each appears once here:
# the title goes in the <h1> and the page has no <title> element.
DEFAULT_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    {{STYLES}}
</head>
<body>
    <header>
        <h1>{{TITLE}}</h1>
        <div class="document-info">
            <p><strong>Author:</strong> {{AUTHOR}}</p>
            <p><strong>Date:</strong> {{DATE}}</p>
        </div>
        <hr>
    </header>

    <main>
        {{CONTENT}}
    </main>
</body>
</html>
"""

STYLE_BLOCK_TEMPLATE = """<style>
  body {
    font-family: {{ s.font_family }};
    font-size: {{ s.font_size }};
    line-height: {{ s.line_height }};
    color: {{ s.primary_color }};
    max-width: 210mm;
    margin: 0 auto;
  }
  h1, h2, h3, h4, h5, h6 {
    color: {{ s.accent_color }};
    margin-top: 24px;
    margin-bottom: 12px;
    page-break-after: avoid;
  }
  h1 { font-size: 24pt; border-bottom: 2px solid {{ s.accent_color }}; padding-bottom: 8px; }
  h2 { font-size: 20pt; }
  h3 { font-size: 16pt; }
  h4 { font-size: 14pt; }
  table {
    width: 100%;
    border-collapse: collapse;
    margin: 16px 0;
  }
  th, td {
    border: 1px solid #ddd;
    padding: 12px;
    text-align: left;
  }
  th {
    background-color: {{ s.accent_color }};
    color: white;
  }
  .chart-container, .diagram-container {
    margin: 20px 0;
    padding: 16px;
    border: 1px dashed #ccc;
    text-align: center;
    background-color: #f9f9f9;
    page-break-inside: avoid;
  }
  blockquote {
    border-left: 4px solid {{ s.accent_color }};
    margin-left: 0;
    padding-left: 20px;
    color: #666;
  }
  code {
    background-color: #f4f4f4;
    padding: 2px 4px;
    border-radius: 3px;
    font-family: 'Courier New', monospace;
  }
  pre {
    background-color: #f4f4f4;
    padding: 16px;
    border-radius: 5px;
    overflow-x: auto;
  }
  .page-break {
    page-break-before: always;
  }
</style>"""


class TemplateEngine:
    """
    Renders document content into named HTML templates.

    Features:
    - Template lookup in custom directories, then built-in templates
    - Fallback to the in-code default template, never "template not found"
    - Style block generation from merged style options
    - First-occurrence placeholder substitution
    """

    def __init__(self, template_dirs: Optional[List] = None, include_builtin: bool = True):
        """
        Initialize the TemplateEngine.

        Args:
            template_dirs: Directories searched for ``<id>.html`` templates,
                           in order, before the built-in templates
            include_builtin: Whether to search the packaged templates
        """
        self.template_dirs = [Path(d) for d in (template_dirs or [])]
        self.include_builtin = include_builtin
        self.jinja_env = self._setup_jinja_environment()
        self.style_template = Environment(autoescape=False).from_string(STYLE_BLOCK_TEMPLATE)

    def _setup_jinja_environment(self) -> Environment:
        """Set up a Jinja2 environment used to locate template sources."""
        search_path = [str(d) for d in self.template_dirs]
        if self.include_builtin:
            search_path.append(str(BUILTIN_TEMPLATE_DIR))
        return Environment(loader=FileSystemLoader(search_path), autoescape=True)

    def resolve_template(self, template_id: Optional[str]) -> RenderedTemplate:
        """
        Find the raw source of a template.

        Unknown ids fall back to the default template. The source is
        returned unrendered; its placeholder tokens are substituted by
        ``render_template``.

        Returns:
            RenderedTemplate holding the raw source and the resolved name
        """
        template_id = template_id or DEFAULT_TEMPLATE_ID
        template_filename = f"{template_id}.html"

        try:
            source, filename, _ = self.jinja_env.loader.get_source(self.jinja_env, template_filename)
            logger.debug(f"Resolved template '{template_id}' to {filename}")
            return RenderedTemplate(html_content=source, template_name=template_id)
        except TemplateNotFound:
            if template_id != DEFAULT_TEMPLATE_ID:
                logger.warning(f"Template not found: {template_filename}, using default template")
        except OSError as e:
            logger.warning(f"Failed to read template {template_filename}: {e}, using default template")

        return RenderedTemplate(html_content=DEFAULT_TEMPLATE, template_name=DEFAULT_TEMPLATE_ID)

    def build_style_block(self, styles: Optional[Dict[str, Any]] = None) -> str:
        """Render the ``<style>`` block for merged style options."""
        return self.style_template.render(s=StyleOptions.merged(styles))

    def render(self, content: str, template_id: Optional[str] = None,
               options: Optional[Dict[str, Any]] = None) -> str:
        """Render content into a template and return the HTML document."""
        return self.render_template(content, template_id, options).html_content

    def render_template(
        self,
        content: str,
        template_id: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> RenderedTemplate:
        """
        Render HTML content into a named template.

        Args:
            content: HTML fragment for the document body
            template_id: Template identifier, e.g. ``"modern"``
            options: ``title``, ``author``, ``date`` and ``styles`` overrides

        Returns:
            RenderedTemplate object with final HTML content
        """
        options = options or {}
        template = self.resolve_template(template_id)

        title = options.get("title") or "Document"
        author = options.get("author") or ""
        date = options.get("date") or datetime.now().strftime("%Y-%m-%d")

        values = {
            "{{TITLE}}": str(escape(title)),
            "{{CONTENT}}": content,
            "{{AUTHOR}}": str(escape(author)),
            "{{DATE}}": str(escape(date)),
            "{{STYLES}}": self.build_style_block(options.get("styles")),
        }

        html_content = template.html_content
        for token in PLACEHOLDERS:
            # A missing token silently drops that field
            html_content = html_content.replace(token, values[token], 1)

        logger.info(f"Rendered template: {template.template_name}")
        return RenderedTemplate(
            html_content=html_content,
            template_name=template.template_name,
            metadata={
                "title": title,
                "author": author,
                "date": date,
                "requested_template": template_id or DEFAULT_TEMPLATE_ID,
            },
        )

    def list_templates(self) -> List[Template]:
        """
        List every available template.

        Returns:
            ``default`` first, then discovered templates sorted by id
        """
        available = {
            DEFAULT_TEMPLATE_ID: Template(
                id=DEFAULT_TEMPLATE_ID,
                name="Default",
                description=TEMPLATE_DESCRIPTIONS[DEFAULT_TEMPLATE_ID],
            )
        }

        for template_file in self.jinja_env.loader.list_templates():
            if not template_file.endswith(".html") or "/" in template_file:
                continue
            template_id = template_file[: -len(".html")]
            _, filename, _ = self.jinja_env.loader.get_source(self.jinja_env, template_file)
            available[template_id] = Template(
                id=template_id,
                name=template_id[:1].upper() + template_id[1:],
                description=TEMPLATE_DESCRIPTIONS.get(template_id, "Custom template"),
                path=Path(filename),
            )

        ordered = [available.pop(DEFAULT_TEMPLATE_ID)]
        ordered.extend(available[key] for key in sorted(available))
        return ordered

    def get_template(self, template_id: str) -> Optional[Template]:
        """Return one listed template, or None if the id is unknown."""
        for template in self.list_templates():
            if template.id == template_id:
                return template
        return None

    def validate_template(self, template_id: str) -> List[str]:
        """
        Check a template's placeholder tokens.

        Missing tokens drop their field and repeated tokens are only
        substituted once, so both are reported.

        Returns:
            List of validation warnings
        """
        warnings = []
        template = self.resolve_template(template_id)
        if template.template_name != template_id:
            warnings.append(f"Template not found: {template_id}")

        for token in PLACEHOLDERS:
            count = template.html_content.count(token)
            if count == 0:
                warnings.append(f"Template may be missing placeholder: {token}")
            elif count > 1:
                warnings.append(
                    f"Placeholder {token} appears {count} times; only the first is replaced"
                )
        return warnings
