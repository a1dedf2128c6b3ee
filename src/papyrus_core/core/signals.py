"""
Local signal extraction from free text.

Three independent regex passes harvest chart-worthy data. Each pass is a
pure function returning its matches in order; overlapping matches across
passes are not deduplicated.
"""

import re
from typing import List, Sequence

from .content_types import ExtractedData, ExtractedDatum

# "Sales: 100" - word token, colon, non-negative integer or decimal
KEY_VALUE_PATTERN = re.compile(r"(\w+):\s*(\d+(?:\.\d+)?)")

# "| cell |" fragments of markdown-style tables
TABLE_PATTERN = re.compile(r"\|[^|]+\|")

# "- Revenue growth: 12.5" / "* Costs: 4"
BULLET_PATTERN = re.compile(r"[-*]\s*([^:]+):\s*(\d+(?:\.\d+)?)")


def extract_key_values(text: str) -> List[ExtractedDatum]:
    return [
        ExtractedDatum(label=m.group(1).strip(), value=float(m.group(2)))
        for m in KEY_VALUE_PATTERN.finditer(text)
    ]


def extract_table_fragments(text: str) -> List[str]:
    return [m.group(0) for m in TABLE_PATTERN.finditer(text)]


def extract_bullets(text: str) -> List[ExtractedDatum]:
    return [
        ExtractedDatum(label=m.group(1).strip(), value=float(m.group(2)))
        for m in BULLET_PATTERN.finditer(text)
    ]


def extract_signals(text: str) -> ExtractedData:
    """
    Run every pattern pass over ``text``.

    Example:
        >>> [d.to_dict() for d in extract_signals("Sales: 100, Marketing: 50").key_value]
        [{'label': 'Sales', 'value': 100.0}, {'label': 'Marketing', 'value': 50.0}]
    """
    return ExtractedData(
        key_value=extract_key_values(text),
        tables=extract_table_fragments(text),
        bullets=extract_bullets(text),
    )


def suggest_chart_type(values: Sequence) -> str:
    """
    Pick a chart type from the length of a series.

    0 -> bar, 1-5 -> pie, 6-10 -> bar, more than 10 -> line.
    """
    size = len(values)
    if size <= 0:
        return "bar"
    if size <= 5:
        return "pie"
    if size <= 10:
        return "bar"
    return "line"
