"""
Expansion of inline chart and diagram markers.

Markers look like ``[CHART: quarterly revenue by region]`` or
``[DIAGRAM: order fulfilment flow]``. Each marker is replaced by an HTML
fragment from a generator keyed to the marker kind. The default generators
emit a labelled placeholder panel; pass other generators to render real
charts or diagrams.
"""

import logging
import re
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


# Keyword, colon, free text up to the first closing bracket
MARKER_PATTERN = re.compile(r"\[(CHART|DIAGRAM):\s*([^\]]+)\]")

FragmentGenerator = Callable[[str], Awaitable[str]]


@dataclass(frozen=True)
class Marker:
    """One marker occurrence in a piece of HTML."""

    kind: str
    description: str
    start: int
    end: int


def find_markers(html: str) -> List[Marker]:
    """Return every marker in ``html``, first to last."""
    return [
        Marker(
            kind=match.group(1).lower(),
            description=match.group(2).strip(),
            start=match.start(),
            end=match.end(),
        )
        for match in MARKER_PATTERN.finditer(html)
    ]


async def chart_placeholder(description: str) -> str:
    return (
        '<div class="chart-container">'
        '<div class="chart-placeholder">'
        f"<p><strong>Chart:</strong> {description}</p>"
        "<p><em>Chart generation in progress...</em></p>"
        "</div></div>"
    )


async def diagram_placeholder(description: str) -> str:
    return (
        '<div class="diagram-container">'
        '<div class="diagram-placeholder">'
        f"<p><strong>Diagram:</strong> {description}</p>"
        "<p><em>Diagram generation in progress...</em></p>"
        "</div></div>"
    )


class SpecialElementExpander:
    """
    Replaces chart and diagram markers with HTML fragments.

    If any fragment fails to generate, the whole document is returned
    unexpanded rather than failing the render.
    """

    def __init__(self, generators: Optional[Dict[str, FragmentGenerator]] = None):
        """
        Initialize the expander.

        Args:
            generators: Overrides keyed by marker kind (``"chart"`` or
                        ``"diagram"``); kinds not given keep the placeholder
        """
        self.generators: Dict[str, FragmentGenerator] = {
            "chart": chart_placeholder,
            "diagram": diagram_placeholder,
        }
        if generators:
            self.generators.update(generators)

    async def expand(self, html: str) -> str:
        """
        Expand every marker in ``html``.

        Returns:
            HTML with markers replaced, or the input unchanged if it has no
            markers or any fragment generation fails
        """
        markers = find_markers(html)
        if not markers:
            return html

        try:
            parts = []
            position = 0
            for marker in markers:
                fragment = await self.generators[marker.kind](marker.description)
                parts.append(html[position:marker.start])
                parts.append(fragment)
                position = marker.end
            parts.append(html[position:])
        except Exception as e:
            logger.warning(f"Error processing special elements, leaving document unexpanded: {e}")
            return html

        logger.debug(f"Expanded {len(markers)} special element marker(s)")
        return "".join(parts)
