"""
Document compilation for papyrus-core.

Drives markdown content through HTML conversion, special-element expansion
and template rendering, and optionally on to a PDF artifact.
"""

import logging
from datetime import datetime
from typing import Dict, Any, Optional

from .content_types import GeneratedArtifact, RenderedTemplate
from .input_processor import InputProcessor
from .pdf_generator import PDFConfig, PDFRenderer
from .special_elements import SpecialElementExpander
from .template_engine import TemplateEngine
from ..exceptions import PDFGenerationError, ValidationError
from ..logging import timed_operation
from ..services.storage_abstraction import ArtifactStorage

logger = logging.getLogger(__name__)


class DocumentCompiler:
    """
    Compiles markdown content into a styled HTML document or PDF artifact.

    Every collaborator is passed in; the compiler holds no per-request
    state, so one instance serves concurrent requests.
    """

    def __init__(
        self,
        template_engine: TemplateEngine,
        expander: SpecialElementExpander,
        pdf_renderer: PDFRenderer,
        storage: ArtifactStorage,
        input_processor: Optional[InputProcessor] = None,
        pdf_defaults: Optional[Dict[str, Any]] = None,
    ):
        self.template_engine = template_engine
        self.expander = expander
        self.pdf_renderer = pdf_renderer
        self.storage = storage
        self.input_processor = input_processor or InputProcessor()
        self.pdf_defaults = dict(pdf_defaults or {})

    async def render_document(
        self,
        content: str,
        template_id: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> RenderedTemplate:
        """
        Run markdown conversion, marker expansion and template rendering.

        Frontmatter ``title``/``author`` are used when options omit them.

        Raises:
            ValidationError: If content is empty
        """
        if content is None or not str(content).strip():
            raise ValidationError("Content is required")

        options = dict(options or {})
        converted = self.input_processor.convert(content)
        expanded_html = await self.expander.expand(converted.html)

        options["title"] = options.get("title") or converted.title or None
        options["author"] = options.get("author") or converted.author or None

        return self.template_engine.render_template(expanded_html, template_id, options)

    @timed_operation("compile_to_html")
    async def compile_to_html(
        self,
        content: str,
        template_id: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Compile markdown content into a complete HTML document."""
        rendered = await self.render_document(content, template_id, options)
        return rendered.html_content

    @timed_operation("compile_to_pdf")
    async def compile_to_pdf(
        self,
        content: str,
        template_id: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> GeneratedArtifact:
        """
        Compile markdown content into a PDF artifact.

        Args:
            content: Markdown document content
            template_id: Template identifier
            options: ``title``, ``author``, ``date``, ``styles`` and
                     ``pdf_options`` (page option overrides)

        Returns:
            GeneratedArtifact with filename, path, URL and on-disk size

        Raises:
            ValidationError: If content or page options are invalid
            PDFGenerationError: If rasterization or writing the file fails
        """
        options = options or {}
        pdf_config = PDFConfig.from_options(
            options.get("pdf_options") or options.get("pdfOptions"), **self.pdf_defaults
        )
        config_errors = pdf_config.validate()
        if config_errors:
            raise ValidationError("; ".join(config_errors))

        rendered = await self.render_document(content, template_id, options)
        pdf_bytes = await self.pdf_renderer.render_pdf(rendered.html_content, pdf_config)

        try:
            artifact = await self.storage.save_bytes(
                pdf_bytes,
                prefix="document",
                extension="pdf",
                metadata={
                    "template": rendered.template_name,
                    "generation_time": datetime.now().isoformat(),
                },
            )
        except OSError as e:
            logger.error(f"Failed to write PDF artifact: {e}")
            raise PDFGenerationError() from None

        logger.info(f"PDF generated: {artifact.filename} ({artifact.size} bytes)")
        return artifact
