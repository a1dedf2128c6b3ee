"""
Core document processing modules.

Contains the main business logic for:
- Template rendering and special-element expansion
- Document compilation and PDF rasterization
- Content analysis, enhancement and signal extraction
- Charts, diagrams and upload text extraction
"""

from .chart_service import ChartService, MatplotlibChartRasterizer
from .content_pipeline import ContentPipeline, style_suggestions
from .content_types import (
    Analysis,
    ChartSpecification,
    Dataset,
    DocumentContent,
    EnhancementSuggestion,
    ExtractedData,
    ExtractedDatum,
    GeneratedArtifact,
    RenderedTemplate,
    StyleOptions,
    Template,
)
from .document_compiler import DocumentCompiler
from .input_processor import InputProcessor
from .pdf_generator import AsyncPDFGenerator, PDFConfig, PDFRenderer
from .signals import extract_signals, suggest_chart_type
from .special_elements import SpecialElementExpander
from .template_engine import TemplateEngine
from .text_extractor import TextExtractor

__all__ = [
    "ChartService",
    "MatplotlibChartRasterizer",
    "ContentPipeline",
    "style_suggestions",
    "Analysis",
    "ChartSpecification",
    "Dataset",
    "DocumentContent",
    "EnhancementSuggestion",
    "ExtractedData",
    "ExtractedDatum",
    "GeneratedArtifact",
    "RenderedTemplate",
    "StyleOptions",
    "Template",
    "DocumentCompiler",
    "InputProcessor",
    "AsyncPDFGenerator",
    "PDFConfig",
    "PDFRenderer",
    "extract_signals",
    "suggest_chart_type",
    "SpecialElementExpander",
    "TemplateEngine",
    "TextExtractor",
]
