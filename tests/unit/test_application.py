"""
Tests for the composition root.
"""

import json

import pytest

from papyrus_core import build_application, PapyrusSettings
from papyrus_core.core.pdf_generator import AsyncPDFGenerator
from papyrus_core.services import OpenAICompletionClient
from tests.utils.helpers import StubCompletionClient, FakePDFRenderer, assert_pdf_valid


@pytest.fixture
def settings(temp_dir, test_templates_dir):
    return PapyrusSettings(
        output_dir=temp_dir / "generated",
        template_dirs=[test_templates_dir],
        chart_width=320,
        chart_height=240,
        pdf_timeout_ms=10000,
    )


class TestBuildApplication:
    """Test wiring and the public operations."""

    def test_default_collaborators(self, settings):
        app = build_application(settings)

        assert isinstance(app.compiler.pdf_renderer, AsyncPDFGenerator)
        assert isinstance(app.pipeline.client, OpenAICompletionClient)
        assert app.compiler.pdf_defaults == {"timeout": 10000}
        assert app.chart_service.storage.base_path == settings.charts_dir
        assert app.chart_service.storage.url_prefix == "/generated/charts"

    def test_components_are_shared(self, settings):
        app = build_application(settings, StubCompletionClient(), FakePDFRenderer())

        assert app.compiler.template_engine is app.template_engine

    @pytest.mark.asyncio
    async def test_compile_to_pdf(self, settings):
        renderer = FakePDFRenderer()
        app = build_application(settings, StubCompletionClient(), renderer)

        artifact = await app.compile_to_pdf("# Hello\n\nSales: 100", "report", {"title": "Greeting"})

        assert artifact.path.parent == settings.output_dir.absolute()
        assert artifact.url == f"/generated/{artifact.filename}"
        assert_pdf_valid(artifact.path)
        assert renderer.rendered[0][1].timeout == 10000

    @pytest.mark.asyncio
    async def test_compile_to_html_and_templates(self, settings):
        app = build_application(settings, StubCompletionClient(), FakePDFRenderer())

        html = await app.compile_to_html("Body", "minimal")

        assert "<p>Body</p>" in html
        assert app.list_templates()[0].id == "default"
        assert app.get_template("report").description == "Custom template"

    @pytest.mark.asyncio
    async def test_analyze_and_signals(self, settings):
        client = StubCompletionClient([json.dumps({"suggestions": [{"type": "list"}]})])
        app = build_application(settings, client, FakePDFRenderer())

        analysis = await app.analyze("a: 1", "plain")

        assert analysis.to_dict()["suggestions"][0]["type"] == "list"
        assert app.extract_signals("a: 1").key_value[0].value == 1
        assert app.style_suggestions("layouts")[0]["id"] == "default"

    @pytest.mark.asyncio
    async def test_generate_chart(self, settings, sample_chart_data):
        app = build_application(settings, StubCompletionClient(), FakePDFRenderer())

        artifact = await app.generate_chart(sample_chart_data, "bar")

        assert artifact.url == f"/generated/charts/{artifact.filename}"
        assert (artifact.metadata["width"], artifact.metadata["height"]) == (320, 240)

    @pytest.mark.asyncio
    async def test_generate_diagram(self, settings):
        client = StubCompletionClient(["```mermaid\ngraph TD\n  A-->B\n```"])
        app = build_application(settings, client, FakePDFRenderer())

        artifact = await app.generate_diagram("A leads to B")

        assert artifact.metadata["mermaid_code"] == "graph TD\n  A-->B"
        assert artifact.path.parent == settings.charts_dir.absolute()

    def test_extract_file(self, settings, temp_dir):
        app = build_application(settings, StubCompletionClient(), FakePDFRenderer())
        path = temp_dir / "notes.txt"
        path.write_text("hello world", encoding="utf-8")

        assert app.extract_file(path).text == "hello world"
        assert app.extract_batch([path]).to_dict()["processed_count"] == 1
