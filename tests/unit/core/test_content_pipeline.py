"""
Tests for the AI-assisted content pipeline, using a stubbed language model.
"""

import json

import pytest

from papyrus_core.core.content_pipeline import (
    ContentPipeline, parse_json_reply, strip_code_fence, style_suggestions, STYLE_SUGGESTIONS
)
from papyrus_core.core.content_types import EnhancementSuggestion
from papyrus_core.exceptions import AIServiceError, ValidationError
from tests.utils.helpers import StubCompletionClient


ANALYSIS_REPLY = {
    "suggestions": [
        {
            "type": "heading",
            "position": "line 1",
            "current": "intro",
            "suggested": "Introduction",
            "level": 1,
            "reasoning": "Opens the document",
        },
        {"position": "no type, skipped"},
        {
            "type": "chart",
            "position": "paragraph 2",
            "current": "Sales: 100, Marketing: 50",
            "chartType": "bar",
            "data": "Sales 100, Marketing 50",
            "reasoning": "Comparable figures",
        },
    ],
    "overall_structure": {"title": "Budget", "sections": ["Intro"], "document_type": "report"},
    "typography": {"font_suggestions": ["Lato"]},
}


def make_pipeline(*replies):
    client = StubCompletionClient(replies)
    return ContentPipeline(client, analysis_model="gpt-4", extraction_model="gpt-3.5-turbo"), client


class TestReplyParsing:
    """Test fence stripping and JSON parsing."""

    def test_strip_code_fence(self):
        assert strip_code_fence("```json\n{\"a\": 1}\n```") == '{"a": 1}'
        assert strip_code_fence("```mermaid\ngraph TD\n  A-->B\n```") == "graph TD\n  A-->B"
        assert strip_code_fence("  graph LR  ") == "graph LR"

    def test_parse_json_reply(self):
        assert parse_json_reply('```json\n{"charts": []}\n```') == {"charts": []}

    def test_parse_failure_is_service_error(self):
        with pytest.raises(AIServiceError):
            parse_json_reply("Sure! Here are my suggestions: ...")


class TestAnalyze:
    """Test content analysis."""

    @pytest.mark.asyncio
    async def test_analyze(self):
        pipeline, client = make_pipeline(json.dumps(ANALYSIS_REPLY))

        analysis = await pipeline.analyze("intro\nSales: 100, Marketing: 50", "plain")

        assert [s.type for s in analysis.suggestions] == ["heading", "chart"]
        assert analysis.suggestions[0].payload == {"level": 1}
        assert analysis.suggestions[1].payload["chartType"] == "bar"
        assert analysis.overall_structure["title"] == "Budget"
        assert analysis.typography == {"font_suggestions": ["Lato"]}

        call = client.calls[0]
        assert call["temperature"] == 0.3
        assert call["max_tokens"] == 2000
        assert call["model"] == "gpt-4"
        assert "Sales: 100, Marketing: 50" in call["prompt"]
        assert "plain text" in call["prompt"]

    @pytest.mark.asyncio
    async def test_malformed_reply_is_hard_error(self):
        """Test unparseable output fails without a retry."""
        pipeline, client = make_pipeline("not json", json.dumps(ANALYSIS_REPLY))

        with pytest.raises(AIServiceError):
            await pipeline.analyze("some text")

        assert len(client.calls) == 1

    @pytest.mark.asyncio
    async def test_non_object_reply_is_hard_error(self):
        pipeline, _ = make_pipeline("[1, 2, 3]")

        with pytest.raises(AIServiceError):
            await pipeline.analyze("some text")

    @pytest.mark.asyncio
    async def test_collaborator_failure_is_opaque(self):
        pipeline, _ = make_pipeline(ConnectionError("api.openai.com unreachable"))

        with pytest.raises(AIServiceError) as exc_info:
            await pipeline.analyze("some text")

        assert str(exc_info.value) == "Failed to analyze content with AI"
        assert "unreachable" not in str(exc_info.value)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text,text_format", [("", "plain"), ("   ", "plain"), ("ok", "pdf")])
    async def test_validation_before_any_call(self, text, text_format):
        pipeline, client = make_pipeline()

        with pytest.raises(ValidationError):
            await pipeline.analyze(text, text_format)

        assert client.calls == []


class TestEnhance:
    """Test content enhancement."""

    @pytest.mark.asyncio
    async def test_enhance(self):
        pipeline, client = make_pipeline("# Introduction\n\n[CHART: Sales vs Marketing]")
        suggestions = [
            EnhancementSuggestion(type="heading", suggested="Introduction"),
            {"type": "chart", "chartType": "bar"},
        ]

        enhanced = await pipeline.enhance("intro", suggestions, "markdown")

        assert enhanced.startswith("# Introduction")
        call = client.calls[0]
        assert call["temperature"] == 0.2
        assert call["max_tokens"] == 3000
        assert '"chartType": "bar"' in call["prompt"]
        assert "[CHART: chart_description]" in call["prompt"]

    @pytest.mark.asyncio
    async def test_suggestions_must_be_a_list(self):
        pipeline, client = make_pipeline()

        with pytest.raises(ValidationError):
            await pipeline.enhance("text", {"type": "heading"})

        assert client.calls == []

    @pytest.mark.asyncio
    async def test_failure_is_opaque(self):
        pipeline, _ = make_pipeline(RuntimeError("rate limited"))

        with pytest.raises(AIServiceError) as exc_info:
            await pipeline.enhance("text", [])

        assert str(exc_info.value) == "Failed to enhance content with AI"


class TestChartSuggestions:
    """Test chart data extraction and suggestions."""

    @pytest.mark.asyncio
    async def test_extract_chart_data(self):
        reply = {"charts": [{"title": "Spend", "type": "pie", "data": {"labels": ["a"], "datasets": []}}]}
        pipeline, client = make_pipeline("```json\n" + json.dumps(reply) + "\n```")

        data = await pipeline.extract_chart_data("a: 1")

        assert data == reply
        assert client.calls[0]["temperature"] == 0.1
        assert client.calls[0]["max_tokens"] == 1500
        assert client.calls[0]["model"] == "gpt-3.5-turbo"

    @pytest.mark.asyncio
    async def test_extract_chart_data_defaults_charts(self):
        pipeline, _ = make_pipeline("{}")

        assert await pipeline.extract_chart_data("a: 1") == {"charts": []}

    @pytest.mark.asyncio
    async def test_suggest_charts_combines_sources(self):
        reply = {"charts": [{"title": "AI chart", "type": "line", "data": {}, "position": "end"}]}
        pipeline, _ = make_pipeline(json.dumps(reply))

        result = await pipeline.suggest_charts("Sales: 100, Marketing: 50, Support: 25")

        charts = result["suggested_charts"]
        assert charts[0]["title"] == "AI chart"
        assert charts[1]["title"] == "Extracted Data"
        assert charts[1]["type"] == "pie"
        assert charts[1]["source"] == "simple_extraction"
        assert charts[1]["data"]["labels"] == ["Sales", "Marketing", "Support"]
        assert charts[1]["data"]["datasets"][0]["data"] == [100, 50, 25]
        assert len(result["simple_extraction"]["key_value"]) == 3
        assert result["ai_extraction"] == reply

    @pytest.mark.asyncio
    async def test_suggest_charts_without_local_data(self):
        pipeline, _ = make_pipeline('{"charts": []}')

        result = await pipeline.suggest_charts("No numbers in here.")

        assert result["suggested_charts"] == []

    def test_extract_signals_needs_no_model(self):
        pipeline, client = make_pipeline()

        data = pipeline.extract_signals("Sales: 100, Marketing: 50")

        assert [d.label for d in data.key_value] == ["Sales", "Marketing"]
        assert client.calls == []


class TestDiagramCode:
    """Test mermaid code generation."""

    @pytest.mark.asyncio
    async def test_generate_diagram_code(self):
        pipeline, client = make_pipeline("```mermaid\nsequenceDiagram\n  A->>B: hi\n```")

        code = await pipeline.generate_diagram_code("A greets B", "sequence")

        assert code == "sequenceDiagram\n  A->>B: hi"
        assert client.calls[0]["temperature"] == 0.3
        assert client.calls[0]["max_tokens"] == 1000
        assert "sequence diagram" in client.calls[0]["prompt"]

    @pytest.mark.asyncio
    async def test_unknown_diagram_type(self):
        pipeline, client = make_pipeline()

        with pytest.raises(ValidationError):
            await pipeline.generate_diagram_code("flow", "mindmap")

        assert client.calls == []


class TestStyleSuggestions:
    """Test the style catalogue."""

    def test_known_kinds(self):
        assert "Arial" in style_suggestions("typography")["fonts"]
        assert "#3498db" in style_suggestions("colors")["accent"]
        assert [layout["id"] for layout in style_suggestions("layouts")] == [
            "default", "modern", "classic", "minimal"
        ]
        assert set(STYLE_SUGGESTIONS) == {"typography", "colors", "layouts"}

    def test_unknown_kind(self):
        with pytest.raises(ValidationError):
            style_suggestions("animations")
