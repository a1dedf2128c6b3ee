"""
Content type definitions for papyrus-core.

Plain dataclasses shared by the pipeline stages. Everything here converts to
JSON-serializable dictionaries with ``to_dict`` so callers can hand results
straight back over HTTP.
"""

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Dict, Any, Optional, List

from ..exceptions import ValidationError


SUGGESTION_TYPES = ("heading", "list", "table", "chart", "diagram")


@dataclass
class DocumentContent:
    """
    A markdown text blob moving through the pipeline.

    Counts are derived from ``text`` on every access and never cached,
    so they stay correct after the text is modified.
    """

    text: str = ""

    @property
    def character_count(self) -> int:
        return len(self.text)

    @property
    def word_count(self) -> int:
        return len(self.text.split())

    @property
    def line_count(self) -> int:
        return len(self.text.split("\n"))

    def statistics(self) -> Dict[str, int]:
        return {
            "character_count": self.character_count,
            "word_count": self.word_count,
            "line_count": self.line_count,
        }


@dataclass
class StyleOptions:
    """Typographic preferences injected into a template's style block."""

    font_family: str = "Arial, sans-serif"
    font_size: str = "12pt"
    line_height: str = "1.6"
    primary_color: str = "#333333"
    accent_color: str = "#2563eb"

    # camelCase keys sent by JSON callers
    _ALIASES = {
        "fontFamily": "font_family",
        "fontSize": "font_size",
        "lineHeight": "line_height",
        "primaryColor": "primary_color",
        "accentColor": "accent_color",
    }

    @classmethod
    def merged(cls, overrides: Optional[Dict[str, Any]] = None) -> "StyleOptions":
        """
        Shallow-merge overrides onto the defaults.

        Explicit keys win, everything else falls back. Unknown keys and
        ``None`` values are ignored.
        """
        options = cls()
        if not overrides:
            return options

        known = {f.name for f in fields(cls)}
        for key, value in overrides.items():
            name = cls._ALIASES.get(key, key)
            if name in known and value is not None:
                setattr(options, name, str(value))
        return options

    def to_dict(self) -> Dict[str, str]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class Template:
    """A named HTML skeleton available for rendering."""

    id: str
    name: str
    description: str = ""
    path: Optional[Path] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {"id": self.id, "name": self.name, "description": self.description}
        if self.path is not None:
            data["path"] = str(self.path)
        return data


@dataclass
class EnhancementSuggestion:
    """
    One AI-suggested structural change.

    ``position`` is a free-text locator from the model and is not guaranteed
    to match the current text. Type-specific fields (heading level, list
    style, chart type and data, diagram kind and description) live in
    ``payload``.
    """

    type: str
    position: str = ""
    current: str = ""
    suggested: str = ""
    reasoning: str = ""
    payload: Dict[str, Any] = field(default_factory=dict)

    _CORE_KEYS = ("type", "position", "current", "suggested", "reasoning")

    @property
    def is_known_type(self) -> bool:
        return self.type in SUGGESTION_TYPES

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EnhancementSuggestion":
        if not isinstance(data, dict):
            raise ValidationError(f"Suggestion must be an object, got {type(data).__name__}")
        suggestion_type = data.get("type")
        if not suggestion_type:
            raise ValidationError("Suggestion is missing its 'type' field")

        payload = {k: v for k, v in data.items() if k not in cls._CORE_KEYS}
        return cls(
            type=str(suggestion_type),
            position=str(data.get("position", "") or ""),
            current=str(data.get("current", "") or ""),
            suggested=str(data.get("suggested", "") or ""),
            reasoning=str(data.get("reasoning", "") or ""),
            payload=payload,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {key: getattr(self, key) for key in self._CORE_KEYS}
        data.update(self.payload)
        return data


@dataclass
class Analysis:
    """Parsed reply of a content analysis request."""

    suggestions: List[EnhancementSuggestion] = field(default_factory=list)
    overall_structure: Dict[str, Any] = field(default_factory=dict)
    typography: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "suggestions": [s.to_dict() for s in self.suggestions],
            "overall_structure": self.overall_structure,
            "typography": self.typography,
        }


@dataclass
class ExtractedDatum:
    """A label/value pair harvested from free text."""

    label: str
    value: float

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "value": self.value}


@dataclass
class ExtractedData:
    """Results of the three independent pattern passes, each in match order."""

    key_value: List[ExtractedDatum] = field(default_factory=list)
    tables: List[str] = field(default_factory=list)
    bullets: List[ExtractedDatum] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key_value": [d.to_dict() for d in self.key_value],
            "tables": list(self.tables),
            "bullets": [d.to_dict() for d in self.bullets],
        }


@dataclass
class Dataset:
    """A named numeric series of a chart."""

    label: str
    data: List[float]
    background_color: Any = None
    border_color: Any = None
    fill: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Dataset":
        values = data.get("data")
        if not isinstance(values, (list, tuple)):
            raise ValidationError("Dataset 'data' must be a list of numbers")
        try:
            numbers = [float(v) for v in values]
        except (TypeError, ValueError):
            raise ValidationError("Dataset 'data' must contain only numbers")
        return cls(
            label=str(data.get("label", "") or ""),
            data=numbers,
            background_color=data.get("backgroundColor", data.get("background_color")),
            border_color=data.get("borderColor", data.get("border_color")),
            fill=bool(data.get("fill", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"label": self.label, "data": list(self.data)}
        if self.background_color is not None:
            data["backgroundColor"] = self.background_color
        if self.border_color is not None:
            data["borderColor"] = self.border_color
        if self.fill:
            data["fill"] = True
        return data


@dataclass
class ChartSpecification:
    """Labels, one or more datasets and rendering hints for a chart."""

    labels: List[str]
    datasets: List[Dataset]
    chart_type: str = "bar"
    title: str = "Chart"

    @classmethod
    def from_dict(cls, data: Dict[str, Any], chart_type: str = "bar",
                  title: Optional[str] = None) -> "ChartSpecification":
        """Build from a ``{"labels": [...], "datasets": [...]}`` mapping."""
        if not isinstance(data, dict):
            raise ValidationError("Chart data must be an object with labels and datasets")
        labels = data.get("labels")
        datasets = data.get("datasets")
        if not isinstance(labels, (list, tuple)):
            raise ValidationError("Chart data is missing a 'labels' list")
        if not isinstance(datasets, (list, tuple)) or not datasets:
            raise ValidationError("Chart data needs at least one dataset")
        return cls(
            labels=[str(label) for label in labels],
            datasets=[Dataset.from_dict(d) for d in datasets],
            chart_type=chart_type,
            title=title or "Chart",
        )

    def validate(self) -> None:
        """Raise ``ValidationError`` unless every dataset matches the labels length."""
        if not self.datasets:
            raise ValidationError("Chart needs at least one dataset")
        expected = len(self.labels)
        for dataset in self.datasets:
            if len(dataset.data) != expected:
                raise ValidationError(
                    f"Dataset '{dataset.label}' has {len(dataset.data)} values "
                    f"but there are {expected} labels"
                )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "labels": list(self.labels),
            "datasets": [d.to_dict() for d in self.datasets],
        }


@dataclass
class GeneratedArtifact:
    """A generated file (PDF, chart image or diagram page) and where it is served."""

    filename: str
    path: Path
    url: str
    size: int
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.metadata is None:
            self.metadata = {}

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "filename": self.filename,
            "path": str(self.path),
            "url": self.url,
            "size": self.size,
        }
        data.update(self.metadata)
        return data


@dataclass
class RenderedTemplate:
    """A complete HTML document ready for PDF rasterization."""

    html_content: str
    template_name: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.metadata is None:
            self.metadata = {}
