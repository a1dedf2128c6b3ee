"""
Application settings for papyrus-core.

Settings are a plain dataclass with documented defaults. ``from_env`` reads
``PAPYRUS_*`` variables (and ``OPENAI_API_KEY``) the same way logging is
configured from the environment in ``papyrus_core.logging``.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Mapping


def _env_bool(value: Optional[str], default: bool) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class PapyrusSettings:
    """Process-wide settings, constructed once and passed to each component."""

    # Generated artifacts
    output_dir: Path = Path("generated")
    url_prefix: str = "/generated"

    # Custom template directories, searched before the built-in templates
    template_dirs: List[Path] = field(default_factory=lambda: [Path("templates")])

    # Language model
    openai_api_key: str = ""
    analysis_model: str = "gpt-4"
    extraction_model: str = "gpt-3.5-turbo"

    # Browser rendering
    headless: bool = True
    pdf_timeout_ms: int = 30000

    # Chart rasterization (pixels)
    chart_width: int = 800
    chart_height: int = 600

    def __post_init__(self):
        self.output_dir = Path(self.output_dir)
        self.template_dirs = [Path(d) for d in self.template_dirs]

    @property
    def charts_dir(self) -> Path:
        """Directory for chart and diagram artifacts."""
        return self.output_dir / "charts"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "PapyrusSettings":
        """Build settings from environment variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        defaults = cls()

        template_dirs = defaults.template_dirs
        raw_dirs = env.get("PAPYRUS_TEMPLATE_DIRS")
        if raw_dirs:
            template_dirs = [Path(d) for d in raw_dirs.split(os.pathsep) if d]

        return cls(
            output_dir=Path(env.get("PAPYRUS_OUTPUT_DIR", str(defaults.output_dir))),
            url_prefix=env.get("PAPYRUS_URL_PREFIX", defaults.url_prefix),
            template_dirs=template_dirs,
            openai_api_key=env.get("OPENAI_API_KEY", defaults.openai_api_key),
            analysis_model=env.get("PAPYRUS_ANALYSIS_MODEL", defaults.analysis_model),
            extraction_model=env.get("PAPYRUS_EXTRACTION_MODEL", defaults.extraction_model),
            headless=_env_bool(env.get("PAPYRUS_HEADLESS"), defaults.headless),
            pdf_timeout_ms=int(env.get("PAPYRUS_PDF_TIMEOUT_MS", defaults.pdf_timeout_ms)),
            chart_width=int(env.get("PAPYRUS_CHART_WIDTH", defaults.chart_width)),
            chart_height=int(env.get("PAPYRUS_CHART_HEIGHT", defaults.chart_height)),
        )
