"""
Chart and diagram artifacts for papyrus-core.

Charts are rasterized to PNG with matplotlib's object-oriented API (no
pyplot global state, safe to run in worker threads). Diagrams are written
as standalone mermaid.js pages.
"""

import asyncio
import io
import logging
import re
from abc import ABC, abstractmethod
from typing import Dict, Any, Optional, List, Sequence, Union

from jinja2 import Environment
from matplotlib.figure import Figure
from PIL import Image

from .content_types import ChartSpecification, GeneratedArtifact
from ..exceptions import ChartGenerationError, ValidationError
from ..services.storage_abstraction import ArtifactStorage

logger = logging.getLogger(__name__)


SUPPORTED_CHART_TYPES = ("bar", "line", "pie", "doughnut", "scatter")

DEFAULT_COLORS = [
    '#2563eb', '#dc2626', '#059669', '#d97706',
    '#7c3aed', '#db2777', '#0891b2', '#65a30d',
]

_RGBA_PATTERN = re.compile(
    r"rgba?\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)\s*(?:,\s*([\d.]+)\s*)?\)"
)

DIAGRAM_PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <title>{{ title }}</title>
  <script src="https://cdn.jsdelivr.net/npm/mermaid/dist/mermaid.min.js"></script>
  <script>mermaid.initialize({startOnLoad:true});</script>
</head>
<body>
  <div class="mermaid">
{{ code }}
  </div>
</body>
</html>
"""


def default_colors(count: int) -> List[str]:
    """Cycle the fixed palette to ``count`` colours."""
    return [DEFAULT_COLORS[i % len(DEFAULT_COLORS)] for i in range(count)]


def default_border_colors(count: int) -> List[str]:
    """Palette colours with a half-transparent alpha suffix."""
    return [color + '80' for color in default_colors(count)]


def create_bar_chart(labels: Sequence[str], datasets: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "labels": list(labels),
        "datasets": [
            {
                "label": dataset.get("label", ""),
                "data": list(dataset["data"]),
                "backgroundColor": dataset.get("backgroundColor") or default_colors(len(dataset["data"])),
                "borderColor": dataset.get("borderColor") or default_border_colors(len(dataset["data"])),
                "borderWidth": 1,
            }
            for dataset in datasets
        ],
    }


def create_line_chart(labels: Sequence[str], datasets: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "labels": list(labels),
        "datasets": [
            {
                "label": dataset.get("label", ""),
                "data": list(dataset["data"]),
                "fill": dataset.get("fill", False),
                "borderColor": dataset.get("borderColor") or '#2563eb',
                "backgroundColor": dataset.get("backgroundColor") or 'rgba(37, 99, 235, 0.1)',
                "tension": 0.1,
            }
            for dataset in datasets
        ],
    }


def create_pie_chart(labels: Sequence[str], data: Sequence[float]) -> Dict[str, Any]:
    return {
        "labels": list(labels),
        "datasets": [{
            "data": list(data),
            "backgroundColor": default_colors(len(data)),
            "borderColor": default_border_colors(len(data)),
            "borderWidth": 1,
        }],
    }


def to_matplotlib_color(value: Any) -> Any:
    """Translate CSS ``rgb()``/``rgba()`` strings; hex and named colours pass through."""
    if isinstance(value, str):
        match = _RGBA_PATTERN.fullmatch(value.strip())
        if match:
            red, green, blue = (int(match.group(i)) / 255 for i in (1, 2, 3))
            alpha = float(match.group(4)) if match.group(4) is not None else 1.0
            return (red, green, blue, alpha)
    return value


def _colors(value: Union[str, List, None], count: int) -> List[Any]:
    if value is None:
        return default_colors(count)
    if isinstance(value, (list, tuple)):
        values = list(value) or DEFAULT_COLORS
        return [to_matplotlib_color(values[i % len(values)]) for i in range(count)]
    return [to_matplotlib_color(value)] * count


def _single_color(value: Union[str, List, None], fallback: str) -> Any:
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    return to_matplotlib_color(value or fallback)


class ChartRasterizer(ABC):
    """Produces a raster image from a chart specification."""

    @abstractmethod
    def render_to_image(self, spec: ChartSpecification) -> bytes:
        pass


class MatplotlibChartRasterizer(ChartRasterizer):
    """
    Renders charts to PNG with matplotlib.

    Output is ``width`` x ``height`` pixels on a white background with the
    chart title and a legend above the plot. Axes start at zero except for
    pie and doughnut charts.
    """

    def __init__(self, width: int = 800, height: int = 600, dpi: int = 100,
                 background: str = "white"):
        self.width = width
        self.height = height
        self.dpi = dpi
        self.background = background

    def render_to_image(self, spec: ChartSpecification) -> bytes:
        figure = Figure(
            figsize=(self.width / self.dpi, self.height / self.dpi),
            dpi=self.dpi,
            facecolor=self.background,
        )
        axes = figure.add_subplot()
        positions = list(range(len(spec.labels)))

        if spec.chart_type in ("pie", "doughnut"):
            self._draw_pie(axes, spec)
        elif spec.chart_type == "bar":
            self._draw_bars(axes, spec, positions)
        elif spec.chart_type == "line":
            self._draw_lines(axes, spec, positions)
        else:
            self._draw_scatter(axes, spec, positions)

        if spec.chart_type not in ("pie", "doughnut"):
            axes.set_xticks(positions, spec.labels)
            axes.set_ylim(bottom=min(0, *(min(d.data, default=0) for d in spec.datasets)))
            axes.grid(True, alpha=0.3)
            axes.set_axisbelow(True)

        axes.set_title(spec.title, pad=28)
        handles, labels = axes.get_legend_handles_labels()
        if handles:
            axes.legend(handles, labels, loc="lower center", bbox_to_anchor=(0.5, 1.0),
                        ncol=min(len(handles), 4), frameon=False, fontsize="small")

        figure.tight_layout()
        buffer = io.BytesIO()
        figure.savefig(buffer, format="png", dpi=self.dpi, facecolor=self.background)
        return buffer.getvalue()

    def _draw_pie(self, axes, spec: ChartSpecification) -> None:
        dataset = spec.datasets[0]
        wedge_props = {"width": 0.5} if spec.chart_type == "doughnut" else None
        # labeldistance=None keeps labels for the legend only
        axes.pie(
            dataset.data,
            labels=spec.labels,
            labeldistance=None,
            colors=_colors(dataset.background_color, len(dataset.data)),
            wedgeprops=wedge_props,
            startangle=90,
            counterclock=False,
        )
        axes.axis("equal")

    def _draw_bars(self, axes, spec: ChartSpecification, positions: List[int]) -> None:
        group_width = 0.8
        bar_width = group_width / len(spec.datasets)
        for i, dataset in enumerate(spec.datasets):
            offset = -group_width / 2 + bar_width * (i + 0.5)
            axes.bar(
                [p + offset for p in positions],
                dataset.data,
                bar_width,
                label=dataset.label or None,
                color=_colors(dataset.background_color, len(dataset.data)),
                edgecolor=_colors(dataset.border_color, len(dataset.data)),
                linewidth=1,
            )

    def _draw_lines(self, axes, spec: ChartSpecification, positions: List[int]) -> None:
        for i, dataset in enumerate(spec.datasets):
            line_color = _single_color(dataset.border_color, DEFAULT_COLORS[i % len(DEFAULT_COLORS)])
            axes.plot(positions, dataset.data, color=line_color, marker="o",
                      label=dataset.label or None)
            if dataset.fill:
                axes.fill_between(
                    positions, dataset.data,
                    color=_single_color(dataset.background_color, 'rgba(37, 99, 235, 0.1)'),
                )

    def _draw_scatter(self, axes, spec: ChartSpecification, positions: List[int]) -> None:
        for i, dataset in enumerate(spec.datasets):
            axes.scatter(
                positions, dataset.data,
                color=_single_color(dataset.background_color, DEFAULT_COLORS[i % len(DEFAULT_COLORS)]),
                label=dataset.label or None,
            )


class ChartService:
    """
    Generates chart images and diagram pages as artifacts.

    Rendering runs in a worker thread so the event loop stays free while
    matplotlib works.
    """

    def __init__(self, storage: ArtifactStorage, rasterizer: Optional[ChartRasterizer] = None):
        self.storage = storage
        self.rasterizer = rasterizer or MatplotlibChartRasterizer()
        self.diagram_template = Environment(autoescape=True).from_string(DIAGRAM_PAGE_TEMPLATE)

    def build_specification(
        self,
        data: Union[ChartSpecification, Dict[str, Any]],
        chart_type: str = "bar",
        options: Optional[Dict[str, Any]] = None,
    ) -> ChartSpecification:
        """
        Turn caller input into a validated chart specification.

        Raises:
            ValidationError: For unknown chart types or mismatched datasets
        """
        options = options or {}
        if chart_type not in SUPPORTED_CHART_TYPES:
            raise ValidationError(
                f"Unsupported chart type: {chart_type}. Supported: {list(SUPPORTED_CHART_TYPES)}"
            )

        if isinstance(data, ChartSpecification):
            spec = data
            spec.chart_type = chart_type
            if options.get("title"):
                spec.title = options["title"]
        else:
            spec = ChartSpecification.from_dict(data, chart_type, options.get("title"))

        spec.validate()
        return spec

    async def generate_chart(
        self,
        data: Union[ChartSpecification, Dict[str, Any]],
        chart_type: str = "bar",
        options: Optional[Dict[str, Any]] = None,
    ) -> GeneratedArtifact:
        """
        Render a chart to a PNG artifact.

        Args:
            data: Chart specification or ``{"labels", "datasets"}`` mapping
            chart_type: bar, line, pie, doughnut or scatter
            options: ``title`` for the chart

        Returns:
            GeneratedArtifact with ``width``/``height`` read from the image

        Raises:
            ValidationError: If the chart input is invalid
            ChartGenerationError: If rendering or writing fails
        """
        spec = self.build_specification(data, chart_type, options)

        try:
            image_bytes = await asyncio.to_thread(self.rasterizer.render_to_image, spec)
            artifact = await self.storage.save_bytes(
                image_bytes, prefix="chart", extension="png",
                metadata={"type": spec.chart_type, "title": spec.title},
            )
            with Image.open(artifact.path) as image:
                artifact.metadata["width"], artifact.metadata["height"] = image.size
        except Exception as e:
            logger.error(f"Error generating chart: {e}")
            raise ChartGenerationError("Failed to generate chart") from None

        logger.info(f"Chart generated: {artifact.filename}")
        return artifact

    async def generate_multiple_charts(self, charts: List[Dict[str, Any]]) -> List[GeneratedArtifact]:
        """
        Render several charts in order.

        Each item carries ``data``, ``type`` and optional ``options``,
        ``title`` and ``description``.
        """
        results = []
        for chart in charts:
            options = dict(chart.get("options") or {})
            options.setdefault("title", chart.get("title") or "Chart")
            artifact = await self.generate_chart(chart.get("data"), chart.get("type", "bar"), options)
            artifact.metadata["description"] = chart.get("description", "")
            results.append(artifact)
        return results

    async def generate_diagram(self, mermaid_code: str,
                               options: Optional[Dict[str, Any]] = None) -> GeneratedArtifact:
        """
        Write a standalone mermaid.js page for a diagram.

        Raises:
            ValidationError: If the diagram code is empty
            ChartGenerationError: If the page cannot be written
        """
        if not mermaid_code or not mermaid_code.strip():
            raise ValidationError("Diagram code is required")

        options = options or {}
        page = self.diagram_template.render(
            title=options.get("title") or "Diagram",
            code=mermaid_code.strip(),
        )

        try:
            artifact = await self.storage.save_bytes(
                page.encode("utf-8"), prefix="diagram", extension="html",
                metadata={"type": "diagram"},
            )
        except OSError as e:
            logger.error(f"Error generating diagram: {e}")
            raise ChartGenerationError("Failed to generate diagram") from None

        logger.info(f"Diagram generated: {artifact.filename}")
        return artifact
