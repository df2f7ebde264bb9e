"""HTML to PDF rendering with headless Chromium driven by Playwright.

Locating the Chromium binary differs per deployment: a developer machine
points at an installed browser, hosted runtimes ship one in a bundle
directory. A resolver strategy is picked once at startup from config.
"""
from __future__ import annotations

import glob
import io
import logging
import os
from contextlib import contextmanager
from typing import Iterator, List, Optional, Sequence

from PyPDF2 import PdfReader
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import sync_playwright

from book_formatter.errors import RenderError, RendererUnavailableError

logger = logging.getLogger(__name__)

LAUNCH_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]
PAGE_FORMAT = "A4"
PAGE_MARGIN = {"top": "2cm", "right": "2cm", "bottom": "2cm", "left": "2cm"}

# Layouts used by serverless Chromium bundles and the Playwright browser cache
BUNDLED_PATTERNS = (
    "chromium",
    "chrome-linux/chrome",
    "chromium-*/chrome-linux/chrome",
    "chromium_headless_shell-*/chrome-linux/headless_shell",
    "chromium_headless_shell-*/chrome-headless-shell-linux64/chrome-headless-shell",
)


def _is_executable(path: str) -> bool:
    return os.path.isfile(path) and os.access(path, os.X_OK)


class ChromiumResolver:
    """Returns the path of a Chromium executable or raises RendererUnavailableError."""

    def resolve(self) -> str:
        raise NotImplementedError


class LocalChromiumResolver(ChromiumResolver):
    def __init__(self, executable_path: str):
        self.executable_path = executable_path

    def resolve(self) -> str:
        path = (self.executable_path or "").strip()
        if not path:
            raise RendererUnavailableError("CHROMIUM_EXECUTABLE_PATH is not set")
        if not _is_executable(path):
            raise RendererUnavailableError(f"Chromium not accessible at {path}")
        return path


class HostedChromiumResolver(ChromiumResolver):
    def __init__(self, search_roots: Sequence[str], explicit_path: Optional[str] = None,
                 patterns: Sequence[str] = BUNDLED_PATTERNS):
        self.search_roots = list(search_roots)
        self.explicit_path = explicit_path
        self.patterns = list(patterns)

    def candidates(self) -> List[str]:
        found = []
        if self.explicit_path:
            found.append(self.explicit_path)
        for root in self.search_roots:
            for pattern in self.patterns:
                # newest browser revision first
                found.extend(sorted(glob.glob(os.path.join(root, pattern)), reverse=True))
        return found

    def resolve(self) -> str:
        for path in self.candidates():
            if _is_executable(path):
                return path
        raise RendererUnavailableError(
            f"No bundled Chromium found under {', '.join(self.search_roots) or '(no search paths)'}"
        )


def select_resolver(settings) -> ChromiumResolver:
    environment = settings.get("RENDERER_ENVIRONMENT", "local")
    if environment == "hosted":
        return HostedChromiumResolver(
            settings.get("CHROMIUM_SEARCH_PATHS") or [],
            explicit_path=settings.get("HOSTED_CHROMIUM_PATH") or None,
        )
    if environment == "local":
        return LocalChromiumResolver(settings.get("CHROMIUM_EXECUTABLE_PATH", ""))
    raise ValueError(f"Unknown RENDERER_ENVIRONMENT: {environment}")


def pdf_page_count(pdf_bytes: bytes) -> Optional[int]:
    try:
        return len(PdfReader(io.BytesIO(pdf_bytes)).pages)
    except Exception as exc:
        logger.warning("Could not read rendered PDF: %s", exc)
        return None


class PdfRenderer:
    def __init__(self, resolver: ChromiumResolver, settle_timeout_ms: int = 30000, min_pdf_bytes: int = 100):
        self.resolver = resolver
        self.settle_timeout_ms = settle_timeout_ms
        self.min_pdf_bytes = min_pdf_bytes

    @contextmanager
    def session(self, playwright, executable_path: str) -> Iterator:
        """A fresh browser page. The browser is closed on every exit path."""
        try:
            browser = playwright.chromium.launch(
                executable_path=executable_path,
                headless=True,
                args=LAUNCH_ARGS,
            )
        except (PlaywrightError, OSError) as exc:
            raise RenderError(f"Could not launch Chromium: {exc}") from exc

        try:
            yield browser.new_page()
        finally:
            try:
                browser.close()
            except Exception:
                logger.warning("Closing Chromium failed", exc_info=True)

    def render(self, html: str) -> bytes:
        executable_path = self.resolver.resolve()
        logger.info("Launching Chromium from %s", executable_path)

        try:
            with sync_playwright() as playwright:
                with self.session(playwright, executable_path) as page:
                    page.set_content(html, wait_until="networkidle", timeout=self.settle_timeout_ms)
                    pdf_bytes = page.pdf(
                        format=PAGE_FORMAT,
                        print_background=True,
                        margin=PAGE_MARGIN,
                    )
        except (PlaywrightError, OSError) as exc:
            raise RenderError(f"PDF rendering failed: {exc}") from exc

        if not pdf_bytes or len(pdf_bytes) < self.min_pdf_bytes:
            logger.warning("Rendered PDF is unexpectedly small (%d bytes)", len(pdf_bytes or b""))
        logger.info("PDF generated, %d bytes, browser closed", len(pdf_bytes or b""))
        return pdf_bytes or b""
