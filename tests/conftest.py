"""
Shared test configuration and fixtures for papyrus-core.
"""

import pytest
import tempfile
import shutil
from pathlib import Path

from papyrus_core import TemplateEngine, DocumentCompiler, SpecialElementExpander
from papyrus_core.services import LocalArtifactStorage
from tests.utils.helpers import create_test_template, StubCompletionClient, FakePDFRenderer


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path)


@pytest.fixture
def test_templates_dir(temp_dir):
    """Create a custom templates directory with one template."""
    templates_dir = temp_dir / "templates"
    templates_dir.mkdir(parents=True)
    create_test_template(templates_dir, "report")
    return templates_dir


@pytest.fixture
def template_engine(test_templates_dir):
    """Create a TemplateEngine instance searching the test templates."""
    return TemplateEngine([test_templates_dir])


@pytest.fixture
def test_storage(temp_dir):
    """Create a test storage instance."""
    return LocalArtifactStorage(base_path=temp_dir / "generated", url_prefix="/generated")


@pytest.fixture
def fake_pdf_renderer():
    return FakePDFRenderer()


@pytest.fixture
def stub_client():
    return StubCompletionClient()


@pytest.fixture
def document_compiler(template_engine, test_storage, fake_pdf_renderer):
    """Create a DocumentCompiler wired to fakes."""
    return DocumentCompiler(
        template_engine=template_engine,
        expander=SpecialElementExpander(),
        pdf_renderer=fake_pdf_renderer,
        storage=test_storage,
    )


@pytest.fixture
def sample_markdown_content():
    """Sample markdown content for testing."""
    return """---
title: "Quarterly Report"
author: "Finance Team"
---

# Quarterly Report

This is a **test document** with some content.

## Figures

- Revenue: 120
- Costs: 80

[CHART: revenue versus costs]

## Conclusion

This document demonstrates the compilation pipeline.
"""


@pytest.fixture
def sample_chart_data():
    return {
        "labels": ["Q1", "Q2", "Q3"],
        "datasets": [
            {"label": "Revenue", "data": [10, 20, 30]},
            {"label": "Costs", "data": [5, 15, 12]},
        ],
    }
