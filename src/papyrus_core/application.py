"""
Composition root for papyrus-core.

Each component is constructed once from ``PapyrusSettings`` and handed to
its consumers explicitly. ``PapyrusApplication`` is the request/response
surface an HTTP layer would call.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .config import PapyrusSettings
from .core.chart_service import ChartService, MatplotlibChartRasterizer
from .core.content_pipeline import ContentPipeline, style_suggestions
from .core.content_types import Analysis, ExtractedData, GeneratedArtifact, Template
from .core.document_compiler import DocumentCompiler
from .core.input_processor import InputProcessor
from .core.pdf_generator import AsyncPDFGenerator, PDFRenderer
from .core.special_elements import SpecialElementExpander
from .core.template_engine import TemplateEngine
from .core.text_extractor import BatchExtraction, ExtractedText, TextExtractor
from .services.ai_client import CompletionClient, OpenAICompletionClient
from .services.storage_abstraction import ArtifactStorage, LocalArtifactStorage

logger = logging.getLogger(__name__)


class PapyrusApplication:
    """Holds the wired components and exposes the public operations."""

    def __init__(
        self,
        settings: PapyrusSettings,
        pipeline: ContentPipeline,
        compiler: DocumentCompiler,
        template_engine: TemplateEngine,
        chart_service: ChartService,
        text_extractor: TextExtractor,
    ):
        self.settings = settings
        self.pipeline = pipeline
        self.compiler = compiler
        self.template_engine = template_engine
        self.chart_service = chart_service
        self.text_extractor = text_extractor

    # Content

    async def analyze(self, text: str, text_format: str = "plain") -> Analysis:
        return await self.pipeline.analyze(text, text_format)

    async def enhance(self, text: str, suggestions: list, text_format: str = "plain") -> str:
        return await self.pipeline.enhance(text, suggestions, text_format)

    def extract_signals(self, text: str) -> ExtractedData:
        return self.pipeline.extract_signals(text)

    async def suggest_charts(self, text: str) -> Dict[str, Any]:
        return await self.pipeline.suggest_charts(text)

    def style_suggestions(self, kind: str) -> Any:
        return style_suggestions(kind)

    # Documents

    async def compile_to_pdf(self, content: str, template_id: Optional[str] = None,
                             options: Optional[Dict[str, Any]] = None) -> GeneratedArtifact:
        return await self.compiler.compile_to_pdf(content, template_id, options)

    async def compile_to_html(self, content: str, template_id: Optional[str] = None,
                              options: Optional[Dict[str, Any]] = None) -> str:
        return await self.compiler.compile_to_html(content, template_id, options)

    def list_templates(self) -> List[Template]:
        return self.template_engine.list_templates()

    def get_template(self, template_id: str) -> Optional[Template]:
        return self.template_engine.get_template(template_id)

    # Charts and diagrams

    async def generate_chart(self, data: Dict[str, Any], chart_type: str = "bar",
                             options: Optional[Dict[str, Any]] = None) -> GeneratedArtifact:
        return await self.chart_service.generate_chart(data, chart_type, options)

    async def generate_diagram(self, description: str, diagram_type: str = "flowchart",
                               options: Optional[Dict[str, Any]] = None) -> GeneratedArtifact:
        """Ask the model for mermaid code and write it as a diagram page."""
        code = await self.pipeline.generate_diagram_code(description, diagram_type)
        artifact = await self.chart_service.generate_diagram(code, options)
        artifact.metadata["mermaid_code"] = code
        return artifact

    # Uploads

    def extract_file(self, file_path: Union[str, Path], kind: Optional[str] = None,
                     filename: Optional[str] = None) -> ExtractedText:
        return self.text_extractor.extract_file(file_path, kind, filename)

    def extract_batch(self, files: list) -> BatchExtraction:
        return self.text_extractor.extract_batch(files)


def build_application(
    settings: Optional[PapyrusSettings] = None,
    completion_client: Optional[CompletionClient] = None,
    pdf_renderer: Optional[PDFRenderer] = None,
    storage: Optional[ArtifactStorage] = None,
    chart_storage: Optional[ArtifactStorage] = None,
) -> PapyrusApplication:
    """
    Construct every component once and wire them together.

    Args:
        settings: Settings to use; read from the environment when omitted
        completion_client: Language-model client (OpenAI by default)
        pdf_renderer: Headless-browser renderer (Playwright by default)
        storage: Storage for PDF artifacts
        chart_storage: Storage for chart and diagram artifacts

    Returns:
        A ready PapyrusApplication
    """
    settings = settings or PapyrusSettings.from_env()

    storage = storage or LocalArtifactStorage(settings.output_dir, settings.url_prefix)
    chart_storage = chart_storage or LocalArtifactStorage(
        settings.charts_dir, f"{settings.url_prefix.rstrip('/')}/charts"
    )
    completion_client = completion_client or OpenAICompletionClient(
        api_key=settings.openai_api_key, default_model=settings.analysis_model
    )

    template_engine = TemplateEngine(settings.template_dirs)
    compiler = DocumentCompiler(
        template_engine=template_engine,
        expander=SpecialElementExpander(),
        pdf_renderer=pdf_renderer or AsyncPDFGenerator(headless=settings.headless),
        storage=storage,
        input_processor=InputProcessor(),
        pdf_defaults={"timeout": settings.pdf_timeout_ms},
    )
    chart_service = ChartService(
        chart_storage,
        MatplotlibChartRasterizer(settings.chart_width, settings.chart_height),
    )
    pipeline = ContentPipeline(
        completion_client,
        analysis_model=settings.analysis_model,
        extraction_model=settings.extraction_model,
    )

    logger.info(f"papyrus-core application ready (output: {settings.output_dir})")
    return PapyrusApplication(
        settings=settings,
        pipeline=pipeline,
        compiler=compiler,
        template_engine=template_engine,
        chart_service=chart_service,
        text_extractor=TextExtractor(),
    )
