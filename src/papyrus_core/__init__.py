"""
Papyrus Core Library

Turns free text into styled HTML and PDF documents, with AI-assisted
structure suggestions, chart and diagram artifacts and upload text
extraction.

Main exports:
- build_application: Construct and wire every component from settings
- PapyrusSettings: Process-wide settings
- DocumentCompiler: Markdown to HTML/PDF compilation
- TemplateEngine: Template resolution and rendering
- ContentPipeline: AI-assisted analysis and enhancement
- ChartService: Chart and diagram artifacts
- TextExtractor: Plain text from uploaded files
"""

from .application import PapyrusApplication, build_application
from .config import PapyrusSettings
from .core import (
    AsyncPDFGenerator,
    ChartService,
    ContentPipeline,
    DocumentCompiler,
    InputProcessor,
    SpecialElementExpander,
    TemplateEngine,
    TextExtractor,
    extract_signals,
    suggest_chart_type,
)
from .exceptions import (
    AIServiceError,
    ChartGenerationError,
    CollaboratorError,
    PapyrusError,
    PDFGenerationError,
    UnsupportedFormatError,
    ValidationError,
)
from .services import ArtifactStorage, LocalArtifactStorage, CompletionClient, OpenAICompletionClient

__version__ = "1.0.0"

__all__ = [
    "PapyrusApplication",
    "build_application",
    "PapyrusSettings",
    "AsyncPDFGenerator",
    "ChartService",
    "ContentPipeline",
    "DocumentCompiler",
    "InputProcessor",
    "SpecialElementExpander",
    "TemplateEngine",
    "TextExtractor",
    "extract_signals",
    "suggest_chart_type",
    "AIServiceError",
    "ChartGenerationError",
    "CollaboratorError",
    "PapyrusError",
    "PDFGenerationError",
    "UnsupportedFormatError",
    "ValidationError",
    "ArtifactStorage",
    "LocalArtifactStorage",
    "CompletionClient",
    "OpenAICompletionClient",
]
