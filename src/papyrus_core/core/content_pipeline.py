"""
Content pipeline for papyrus-core.

Turns raw user text into enhanced markdown with the help of a language
model, and harvests chart-worthy data locally. The model is an injected
``CompletionClient``; prompts are module-level constants so they can be
tuned without touching the logic.

Public API
----------
ContentPipeline.analyze(text, format)                  -> Analysis
ContentPipeline.enhance(text, suggestions, format)     -> str
ContentPipeline.extract_signals(text)                  -> ExtractedData
ContentPipeline.extract_chart_data(text)               -> Dict
ContentPipeline.suggest_charts(text)                   -> Dict
ContentPipeline.generate_diagram_code(description, t)  -> str
style_suggestions(kind)                                -> Dict
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional, Union

from .chart_service import create_bar_chart
from .content_types import Analysis, EnhancementSuggestion, ExtractedData
from .signals import extract_signals, suggest_chart_type
from ..exceptions import AIServiceError, ValidationError
from ..services.ai_client import CompletionClient

logger = logging.getLogger(__name__)


TEXT_FORMATS = ("plain", "markdown", "html")
DIAGRAM_TYPES = ("flowchart", "sequence", "class", "state", "gantt")

# ---------------------------------------------------------------------------
# Prompt templates
# ---------------------------------------------------------------------------

ANALYSIS_SYSTEM = (
    "You are a professional document formatting expert. Analyze text and provide "
    "specific, actionable suggestions for creating well-structured PDF documents."
)

ANALYSIS_PROMPT = """\
Analyze the following {format} text and suggest improvements for creating a professional PDF document.

Text to analyze:
\"\"\"
{text}
\"\"\"

Please provide suggestions in the following categories:
1. Structure improvements (headings, sections, subsections)
2. Content formatting (bullet points, numbered lists, emphasis)
3. Data visualization opportunities (tables, charts, diagrams)
4. Typography and styling recommendations
5. Content enhancement suggestions (missing information, clarity improvements)

Return your response as a JSON object with the following structure:
{{
  "suggestions": [
    {{"type": "heading", "position": "line number or text snippet", "current": "current text",
      "suggested": "suggested heading text", "level": 1, "reasoning": "why this should be a heading"}},
    {{"type": "list", "position": "...", "current": "...", "suggested": "* item 1\\n* item 2",
      "listType": "bullet|numbered", "reasoning": "..."}},
    {{"type": "table", "position": "...", "current": "...", "suggested": "table markdown", "reasoning": "..."}},
    {{"type": "chart", "position": "...", "current": "...", "chartType": "bar|line|pie|scatter",
      "data": "extracted data for chart", "reasoning": "..."}},
    {{"type": "diagram", "position": "...", "current": "...", "diagramType": "flowchart|sequence|mindmap",
      "description": "diagram description", "reasoning": "..."}}
  ],
  "overall_structure": {{
    "title": "suggested document title",
    "sections": ["section1", "section2"],
    "estimated_pages": 5,
    "document_type": "report|article|manual|presentation"
  }},
  "typography": {{
    "font_suggestions": ["Roboto", "Open Sans", "Lato"],
    "style_recommendations": ["professional", "modern", "clean"]
  }}
}}
"""

ENHANCE_SYSTEM = (
    "You are a professional document editor. Apply formatting suggestions to create "
    "well-structured markdown content."
)

ENHANCE_PROMPT = """\
Apply the following suggestions to enhance this {format} text for PDF generation:

Original text:
\"\"\"
{text}
\"\"\"

Suggestions to apply:
{suggestions}

Return the enhanced text in markdown format with:
1. Proper headings (# ## ### etc.)
2. Formatted lists
3. Tables where suggested
4. Placeholders for charts and diagrams like: [CHART: chart_description] or [DIAGRAM: diagram_description]
5. Emphasis and formatting applied

Maintain the original meaning and content while improving structure and readability.
"""

CHART_DATA_SYSTEM = (
    "You are a data extraction expert. Identify numerical data in text that would "
    "benefit from visualization."
)

CHART_DATA_PROMPT = """\
Analyze the following text and extract any numerical data that could be visualized as charts or graphs:

\"\"\"
{text}
\"\"\"

Return a JSON object with potential chart data:
{{
  "charts": [
    {{
      "title": "Chart title",
      "type": "bar|line|pie|scatter",
      "data": {{"labels": ["label1", "label2"], "datasets": [{{"label": "Dataset name", "data": [1, 2]}}]}},
      "context": "surrounding text that contains this data",
      "position": "approximate location in text"
    }}
  ]
}}

Only extract data that would make meaningful visualizations. If no suitable data is found, return an empty charts array.
"""

DIAGRAM_SYSTEM = "You are a diagram expert. Create clear, informative diagrams using mermaid.js syntax."

DIAGRAM_PROMPT = """\
Create a {diagram_type} diagram description based on this text:

\"\"\"
{text}
\"\"\"

Return a mermaid.js diagram syntax that represents the concepts, processes, or relationships described in the text.

For flowcharts, use: graph TD or graph LR
For sequence diagrams, use: sequenceDiagram
For class diagrams, use: classDiagram

Make sure the diagram is clear, well-structured, and adds value to understanding the content.
"""

_FENCE_PATTERN = re.compile(r"^\s*```[\w-]*\s*\n(.*?)\n?\s*```\s*$", re.DOTALL)

STYLE_SUGGESTIONS: Dict[str, Any] = {
    "typography": {
        "fonts": ["Arial", "Helvetica", "Georgia", "Times New Roman", "Verdana", "Calibri"],
        "sizes": ["10pt", "11pt", "12pt", "14pt", "16pt", "18pt"],
        "styles": ["Normal", "Bold", "Italic", "Bold Italic"],
    },
    "colors": {
        "primary": ["#333333", "#000000", "#2c3e50", "#34495e"],
        "accent": ["#3498db", "#e74c3c", "#2ecc71", "#f39c12", "#9b59b6"],
        "backgrounds": ["#ffffff", "#f8f9fa", "#ecf0f1", "#bdc3c7"],
    },
    "layouts": [
        {"id": "default", "name": "Default", "description": "Clean and simple"},
        {"id": "modern", "name": "Modern", "description": "Contemporary design"},
        {"id": "classic", "name": "Classic", "description": "Traditional layout"},
        {"id": "minimal", "name": "Minimal", "description": "Ultra-clean design"},
    ],
}


def style_suggestions(kind: str) -> Any:
    """
    Return the typography, colour or layout catalogue.

    Raises:
        ValidationError: If ``kind`` is not a known catalogue
    """
    if kind not in STYLE_SUGGESTIONS:
        raise ValidationError(f"Suggestion type not found: {kind}")
    return STYLE_SUGGESTIONS[kind]


def strip_code_fence(reply: str) -> str:
    """Remove a single surrounding markdown code fence, if present."""
    match = _FENCE_PATTERN.match(reply)
    return match.group(1).strip() if match else reply.strip()


def parse_json_reply(reply: str) -> Any:
    """
    Parse a model reply as JSON.

    Raises:
        AIServiceError: If the reply is not valid JSON
    """
    try:
        return json.loads(strip_code_fence(reply))
    except (TypeError, ValueError) as e:
        logger.error(f"Language model returned unparseable JSON: {e}")
        raise AIServiceError("Language model returned malformed JSON") from None


def _require_text(text: Optional[str], field_name: str = "Text content") -> str:
    if text is None or not str(text).strip():
        raise ValidationError(f"{field_name} is required")
    return str(text)


def _require_format(text_format: Optional[str]) -> str:
    text_format = text_format or "plain"
    if text_format not in TEXT_FORMATS:
        raise ValidationError(f"Invalid format: {text_format}. Supported: {list(TEXT_FORMATS)}")
    return text_format


class ContentPipeline:
    """
    Orchestrates AI-assisted content analysis and enhancement.

    Collaborator failures and unparseable replies both surface as
    ``AIServiceError``; nothing is retried.
    """

    def __init__(
        self,
        client: CompletionClient,
        analysis_model: Optional[str] = None,
        extraction_model: Optional[str] = None,
    ):
        self.client = client
        self.analysis_model = analysis_model
        self.extraction_model = extraction_model

    async def _complete(self, operation: str, prompt: str, system: str,
                        temperature: float, max_tokens: int,
                        model: Optional[str]) -> str:
        try:
            return await self.client.complete(
                prompt, system, temperature=temperature, max_tokens=max_tokens, model=model
            )
        except Exception as e:
            logger.error(f"Error during {operation}: {e}")
            raise AIServiceError(f"Failed to {operation}") from None

    async def analyze(self, text: str, text_format: str = "plain") -> Analysis:
        """
        Ask the model for structural and typographic suggestions.

        Raises:
            ValidationError: If text is empty or the format is unknown
            AIServiceError: If the model fails or its reply is not JSON
        """
        text = _require_text(text)
        text_format = _require_format(text_format)

        reply = await self._complete(
            "analyze content with AI",
            ANALYSIS_PROMPT.format(format=text_format, text=text),
            ANALYSIS_SYSTEM, temperature=0.3, max_tokens=2000, model=self.analysis_model,
        )
        data = parse_json_reply(reply)
        if not isinstance(data, dict):
            raise AIServiceError("Language model returned malformed JSON")

        suggestions = []
        for item in data.get("suggestions") or []:
            try:
                suggestions.append(EnhancementSuggestion.from_dict(item))
            except ValidationError as e:
                logger.warning(f"Skipping malformed suggestion: {e}")

        logger.info(f"Content analysis produced {len(suggestions)} suggestion(s)")
        return Analysis(
            suggestions=suggestions,
            overall_structure=data.get("overall_structure") or {},
            typography=data.get("typography") or {},
        )

    async def enhance(
        self,
        text: str,
        suggestions: List[Union[EnhancementSuggestion, Dict[str, Any]]],
        text_format: str = "plain",
    ) -> str:
        """
        Apply suggestions and return the enhanced markdown.

        Raises:
            ValidationError: If text is empty, suggestions is not a list or
                             the format is unknown
            AIServiceError: If the model fails
        """
        text = _require_text(text)
        text_format = _require_format(text_format)
        if not isinstance(suggestions, list):
            raise ValidationError("Suggestions must be an array")

        payload = [
            s.to_dict() if isinstance(s, EnhancementSuggestion) else s
            for s in suggestions
        ]
        enhanced = await self._complete(
            "enhance content with AI",
            ENHANCE_PROMPT.format(
                format=text_format, text=text, suggestions=json.dumps(payload, indent=2)
            ),
            ENHANCE_SYSTEM, temperature=0.2, max_tokens=3000, model=self.analysis_model,
        )

        logger.info(f"Enhanced content: {len(text)} -> {len(enhanced)} characters")
        return enhanced

    def extract_signals(self, text: str) -> ExtractedData:
        """Harvest label/value data locally, without calling the model."""
        return extract_signals(text)

    def suggest_chart_type(self, values) -> str:
        return suggest_chart_type(values)

    async def extract_chart_data(self, text: str) -> Dict[str, Any]:
        """
        Ask the model for chart-worthy data.

        Returns:
            ``{"charts": [...]}`` as parsed from the reply
        """
        text = _require_text(text)
        reply = await self._complete(
            "extract chart data",
            CHART_DATA_PROMPT.format(text=text),
            CHART_DATA_SYSTEM, temperature=0.1, max_tokens=1500, model=self.extraction_model,
        )
        data = parse_json_reply(reply)
        if not isinstance(data, dict):
            raise AIServiceError("Language model returned malformed JSON")
        data.setdefault("charts", [])
        return data

    async def suggest_charts(self, text: str) -> Dict[str, Any]:
        """
        Combine local extraction with the model's chart suggestions.

        Model charts come first; a local ``Extracted Data`` chart follows when
        key-value pairs were found.
        """
        simple = self.extract_signals(_require_text(text))
        ai_extraction = await self.extract_chart_data(text)

        suggested_charts = [
            {
                "title": chart.get("title"),
                "type": chart.get("type"),
                "data": chart.get("data"),
                "position": chart.get("position"),
            }
            for chart in ai_extraction.get("charts") or []
            if isinstance(chart, dict)
        ]

        if simple.key_value:
            labels = [d.label for d in simple.key_value]
            values = [d.value for d in simple.key_value]
            suggested_charts.append({
                "title": "Extracted Data",
                "type": suggest_chart_type(values),
                "data": create_bar_chart(labels, [{"label": "Values", "data": values}]),
                "source": "simple_extraction",
            })

        return {
            "simple_extraction": simple.to_dict(),
            "ai_extraction": ai_extraction,
            "suggested_charts": suggested_charts,
        }

    async def generate_diagram_code(self, description: str, diagram_type: str = "flowchart") -> str:
        """
        Ask the model for mermaid.js code describing ``description``.

        Raises:
            ValidationError: If description is empty or the type is unknown
            AIServiceError: If the model fails
        """
        description = _require_text(description, "Description")
        if diagram_type not in DIAGRAM_TYPES:
            raise ValidationError(
                f"Invalid diagram type: {diagram_type}. Supported: {list(DIAGRAM_TYPES)}"
            )

        reply = await self._complete(
            "generate diagram description",
            DIAGRAM_PROMPT.format(diagram_type=diagram_type, text=description),
            DIAGRAM_SYSTEM, temperature=0.3, max_tokens=1000, model=self.extraction_model,
        )
        return strip_code_fence(reply)
