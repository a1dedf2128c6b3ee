"""
PDF rasterization for papyrus-core.

Handles Playwright browser integration and HTML to PDF conversion using the
async API. Any failure is logged and surfaced as a single opaque
``PDFGenerationError``.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, asdict
from typing import Dict, Any, Optional, List

from playwright.async_api import async_playwright, Page

from ..exceptions import PDFGenerationError, ValidationError

logger = logging.getLogger(__name__)


VALID_FORMATS = ['Letter', 'Legal', 'Tabloid', 'Ledger', 'A0', 'A1', 'A2', 'A3', 'A4', 'A5', 'A6']


_TRUE_STRINGS = {"true", "1", "yes", "on"}
_FALSE_STRINGS = {"false", "0", "no", "off", ""}
_BOOL_FIELDS = {"landscape", "print_background"}


def _coerce_option(name: str, value: Any) -> Any:
    """Coerce a caller-supplied page option to the type of its field."""
    try:
        if name in _BOOL_FIELDS:
            if isinstance(value, str):
                lowered = value.strip().lower()
                if lowered in _TRUE_STRINGS:
                    return True
                if lowered in _FALSE_STRINGS:
                    return False
                raise ValueError(f"not a boolean: {value!r}")
            return bool(value)
        if name == "scale":
            return float(value)
        if name == "timeout":
            return int(float(value))
        return str(value)
    except (TypeError, ValueError, OverflowError) as e:
        raise ValidationError(f"Invalid value for page option '{name}': {value!r}") from e


@dataclass
class PDFConfig:
    """Configuration for PDF generation settings."""

    # Page format and layout
    format: str = "A4"
    landscape: bool = False
    scale: float = 1.0  # 0.1 to 2.0

    # Margins
    margin_top: str = "20mm"
    margin_right: str = "15mm"
    margin_bottom: str = "20mm"
    margin_left: str = "15mm"

    # Print settings
    print_background: bool = True

    # Content readiness
    wait_until: str = "networkidle"
    timeout: int = 30000  # milliseconds

    # Caller-facing option names (JSON callers send camelCase)
    _ALIASES = {
        "printBackground": "print_background",
        "waitUntil": "wait_until",
    }

    @classmethod
    def from_options(cls, options: Optional[Dict[str, Any]] = None, **defaults) -> "PDFConfig":
        """
        Build a config from defaults plus caller overrides.

        ``options`` may carry a ``margin`` mapping with ``top``/``right``/
        ``bottom``/``left`` keys; unknown keys are ignored. Values are
        coerced to the field types, so ``"1.5"`` or ``"false"`` from a form
        or query string behave like their typed counterparts.

        Raises:
            ValidationError: If a value cannot be coerced to its field type
        """
        config = cls(**defaults)
        for key, value in (options or {}).items():
            if key == "margin" and isinstance(value, dict):
                for side in ("top", "right", "bottom", "left"):
                    if side in value:
                        setattr(config, f"margin_{side}", str(value[side]))
                continue
            name = cls._ALIASES.get(key, key)
            if name in config.__dataclass_fields__ and value is not None:
                setattr(config, name, _coerce_option(name, value))
        return config

    def validate(self) -> List[str]:
        """
        Validate PDF configuration for common issues.

        Returns:
            List of validation errors
        """
        errors = []

        if self.format not in VALID_FORMATS:
            errors.append(f"Invalid page format: {self.format}. Valid formats: {VALID_FORMATS}")

        if not (0.1 <= self.scale <= 2.0):
            errors.append(f"Scale should be between 0.1 and 2.0, got: {self.scale}")

        if self.timeout <= 0:
            errors.append(f"Timeout must be positive, got: {self.timeout}ms")

        return errors

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class PDFRenderer(ABC):
    """Headless-browser collaborator turning an HTML string into PDF bytes."""

    @abstractmethod
    async def render_pdf(self, html: str, config: Optional[PDFConfig] = None) -> bytes:
        pass


class AsyncPDFGenerator(PDFRenderer):
    """
    Generates PDFs from HTML using Playwright and Chromium.

    Used as an async context manager the browser is shared across calls;
    otherwise each call launches and closes its own browser.
    """

    def __init__(self, headless: bool = True, browser_args: Optional[list] = None):
        """
        Initialize the AsyncPDFGenerator.

        Args:
            headless: Whether to run browser in headless mode
            browser_args: Additional browser launch arguments
        """
        self.headless = headless
        self.browser_args = browser_args or []
        self.playwright = None
        self.browser = None

    async def __aenter__(self):
        """Async context manager entry - start browser."""
        await self._start_browser()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit - stop browser."""
        await self._stop_browser()

    async def _start_browser(self) -> None:
        """Start Playwright browser instance."""
        self.playwright = await async_playwright().start()

        launch_options = {
            'headless': self.headless,
            'args': [
                '--no-sandbox',
                '--disable-setuid-sandbox',
                '--disable-dev-shm-usage',
                '--font-render-hinting=none',
            ] + self.browser_args
        }

        self.browser = await self.playwright.chromium.launch(**launch_options)
        logger.info("Async browser started successfully")

    async def _stop_browser(self) -> None:
        """Stop Playwright browser instance."""
        try:
            if self.browser:
                await self.browser.close()
                logger.debug("Async browser stopped")
        except Exception as e:
            logger.warning(f"Error stopping async browser: {e}")
        finally:
            self.browser = None

        try:
            if self.playwright:
                await self.playwright.stop()
                logger.debug("Async playwright stopped")
        except Exception as e:
            logger.warning(f"Error stopping async playwright: {e}")
        finally:
            self.playwright = None

    async def render_pdf(self, html: str, config: Optional[PDFConfig] = None) -> bytes:
        """
        Render an HTML document to PDF bytes.

        Args:
            html: Complete HTML document
            config: PDF generation configuration

        Returns:
            The PDF as bytes

        Raises:
            PDFGenerationError: On any browser, timeout or rendering failure
        """
        config = config or PDFConfig()
        owns_browser = self.browser is None

        try:
            if owns_browser:
                await self._start_browser()

            page = await self.browser.new_page()
            try:
                await self._configure_page_for_pdf(page)

                logger.info("Loading HTML content into async browser")
                await page.set_content(html, wait_until=config.wait_until, timeout=config.timeout)

                pdf_bytes = await page.pdf(**self._build_pdf_options(config))
            finally:
                await page.close()

            logger.info(f"PDF rendered: {len(pdf_bytes)} bytes")
            return pdf_bytes

        except Exception as e:
            logger.error(f"Async PDF generation failed: {e}")
            raise PDFGenerationError() from None
        finally:
            if owns_browser:
                await self._stop_browser()

    async def _configure_page_for_pdf(self, page: Page) -> None:
        """
        Configure page settings optimized for PDF generation.

        Args:
            page: Playwright page instance
        """
        # Set media type to print for CSS @media print rules
        await page.emulate_media(media="print")

    def _build_pdf_options(self, config: PDFConfig) -> Dict[str, Any]:
        """
        Build PDF options dictionary from config.

        Args:
            config: PDF configuration

        Returns:
            Dictionary of PDF options for Playwright
        """
        options = {
            'format': config.format,
            'print_background': config.print_background,
            'landscape': config.landscape,
            'scale': config.scale,
            'margin': {
                'top': config.margin_top,
                'right': config.margin_right,
                'bottom': config.margin_bottom,
                'left': config.margin_left,
            }
        }

        logger.debug(f"Async PDF options: {options}")
        return options
