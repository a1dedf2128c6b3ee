"""
Tests for DocumentCompiler HTML and PDF compilation.
"""

import asyncio

import pytest
from unittest.mock import AsyncMock

from papyrus_core.core.document_compiler import DocumentCompiler
from papyrus_core.core.special_elements import SpecialElementExpander
from papyrus_core.core.template_engine import TemplateEngine
from papyrus_core.exceptions import PDFGenerationError, ValidationError
from tests.utils.helpers import assert_pdf_valid


class TestCompileToHTML:
    """Test HTML preview compilation."""

    @pytest.mark.asyncio
    async def test_compile_to_html(self, document_compiler, sample_markdown_content):
        html = await document_compiler.compile_to_html(sample_markdown_content, "report")

        assert html.startswith("<!DOCTYPE html>")
        assert '<h1 class="report-title">Quarterly Report</h1>' in html
        assert "Finance Team" in html
        assert "<strong>test document</strong>" in html
        assert "<strong>Chart:</strong> revenue versus costs" in html

    @pytest.mark.asyncio
    async def test_options_win_over_frontmatter(self, document_compiler, sample_markdown_content):
        html = await document_compiler.compile_to_html(
            sample_markdown_content, "report", {"title": "Override", "date": "2024-05-01"}
        )

        assert '<h1 class="report-title">Override</h1>' in html
        assert "2024-05-01" in html

    @pytest.mark.asyncio
    async def test_unknown_template_uses_default(self, document_compiler):
        html = await document_compiler.compile_to_html("Hello", "nope")

        assert "<h1>Document</h1>" in html
        assert "<p>Hello</p>" in html

    @pytest.mark.asyncio
    async def test_leading_rule_block_is_not_frontmatter(self, document_compiler):
        html = await document_compiler.compile_to_html("---\nIntro paragraph here\n---\n\nBody text")

        assert "Intro paragraph here" in html
        assert "Body text" in html

    @pytest.mark.asyncio
    async def test_empty_content_rejected(self, document_compiler):
        with pytest.raises(ValidationError):
            await document_compiler.compile_to_html("   ")

    @pytest.mark.asyncio
    async def test_styles_applied(self, document_compiler):
        html = await document_compiler.compile_to_html("x", options={"styles": {"fontFamily": "Georgia"}})

        assert "font-family: Georgia;" in html


class TestCompileToPDF:
    """Test PDF artifact compilation."""

    @pytest.mark.asyncio
    async def test_compile_to_pdf_artifact(self, document_compiler, fake_pdf_renderer,
                                           sample_markdown_content):
        artifact = await document_compiler.compile_to_pdf(sample_markdown_content, "report")

        assert artifact.filename.startswith("document_")
        assert artifact.filename.endswith(".pdf")
        assert artifact.url == f"/generated/{artifact.filename}"
        assert artifact.path.is_absolute()
        assert artifact.size == artifact.path.stat().st_size
        assert artifact.metadata["template"] == "report"
        assert "generation_time" in artifact.metadata
        assert_pdf_valid(artifact.path)

        html, config = fake_pdf_renderer.rendered[0]
        assert "Quarterly Report" in html
        assert config.format == "A4"

    @pytest.mark.asyncio
    async def test_pdf_options_and_defaults(self, template_engine, test_storage, fake_pdf_renderer):
        compiler = DocumentCompiler(
            template_engine, SpecialElementExpander(), fake_pdf_renderer, test_storage,
            pdf_defaults={"timeout": 5000},
        )

        await compiler.compile_to_pdf("x", options={"pdfOptions": {"landscape": True}})

        _, config = fake_pdf_renderer.rendered[0]
        assert config.landscape is True
        assert config.timeout == 5000

    @pytest.mark.asyncio
    async def test_invalid_pdf_options_rejected_before_rendering(self, document_compiler,
                                                                 fake_pdf_renderer):
        with pytest.raises(ValidationError):
            await document_compiler.compile_to_pdf("x", options={"pdf_options": {"format": "Poster"}})

        assert fake_pdf_renderer.rendered == []

    @pytest.mark.asyncio
    async def test_string_pdf_options_are_coerced(self, document_compiler, fake_pdf_renderer):
        await document_compiler.compile_to_pdf(
            "x", options={"pdfOptions": {"scale": "0.8", "landscape": "false", "timeout": "15000"}}
        )

        _, config = fake_pdf_renderer.rendered[0]
        assert config.scale == 0.8
        assert config.landscape is False
        assert config.timeout == 15000

    @pytest.mark.asyncio
    async def test_uncoercible_pdf_option_rejected_before_rendering(self, document_compiler,
                                                                    fake_pdf_renderer):
        with pytest.raises(ValidationError):
            await document_compiler.compile_to_pdf("x", options={"pdfOptions": {"scale": "big"}})

        assert fake_pdf_renderer.rendered == []

    @pytest.mark.asyncio
    async def test_leading_rule_block_kept_in_pdf(self, document_compiler, fake_pdf_renderer):
        artifact = await document_compiler.compile_to_pdf("---\nNote: ratio: 3 to 1\n---\n\nBody text")

        html, _ = fake_pdf_renderer.rendered[0]
        assert "ratio: 3 to 1" in html
        assert "Body text" in html
        assert_pdf_valid(artifact.path)

    @pytest.mark.asyncio
    async def test_concurrent_compiles_do_not_collide(self, document_compiler):
        first, second = await asyncio.gather(
            document_compiler.compile_to_pdf("# First document"),
            document_compiler.compile_to_pdf("# Second document, a little longer"),
        )

        assert first.filename != second.filename
        assert first.path != second.path
        assert first.path.read_bytes() != second.path.read_bytes()
        assert first.size == first.path.stat().st_size
        assert second.size == second.path.stat().st_size

    @pytest.mark.asyncio
    async def test_renderer_failure_propagates(self, template_engine, test_storage):
        renderer = AsyncMock()
        renderer.render_pdf = AsyncMock(side_effect=PDFGenerationError())
        compiler = DocumentCompiler(template_engine, SpecialElementExpander(), renderer, test_storage)

        with pytest.raises(PDFGenerationError):
            await compiler.compile_to_pdf("content")

        assert list(test_storage.base_path.iterdir()) == []

    @pytest.mark.asyncio
    async def test_write_failure_is_opaque(self, document_compiler, test_storage):
        test_storage.save_bytes = AsyncMock(side_effect=OSError("disk full"))

        with pytest.raises(PDFGenerationError) as exc_info:
            await document_compiler.compile_to_pdf("content")

        assert str(exc_info.value) == "PDF generation failed"
