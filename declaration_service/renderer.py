"""
Render engine - HTML to PDF via Playwright/Chromium.

Each render owns a private Chromium process. The process is acquired
through rendering_context(), which closes the browser and stops the
Playwright driver on every exit path, including timeouts and task
cancellation when a client disconnects.
"""

import asyncio
import logging
from contextlib import AsyncExitStack, asynccontextmanager
from enum import Enum
from typing import AsyncIterator, Optional, Union

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from .errors import RenderBackendUnavailable, RenderTimeout, ValidationError

logger = logging.getLogger(__name__)


class PageFormat(str, Enum):
    A4 = "A4"
    LETTER = "Letter"
    LEGAL = "Legal"


# Broken images also report complete=true, so a bad payload cannot stall the wait
IMAGES_READY_JS = "() => Array.from(document.images).every(img => img.complete)"
FONTS_READY_JS = "() => document.fonts.ready.then(() => true)"

VALIDATION_HTML = "<html><body><h1>Test</h1></body></html>"


class RenderEngine:
    """
    Converts HTML documents to paginated PDF bytes.

    Args:
        timeout_ms: Bound for page load plus PDF export
        headless: Launch Chromium headless
        max_concurrent: Simultaneous rendering contexts
        launch_attempts: Chromium launch attempts before RenderBackendUnavailable
        page_format: Default page format
        launch_backoff: Multiplier for exponential backoff between launch attempts
    """

    def __init__(
        self,
        timeout_ms: int = 30000,
        headless: bool = True,
        max_concurrent: int = 5,
        launch_attempts: int = 2,
        page_format: Union[PageFormat, str] = PageFormat.A4,
        launch_backoff: float = 0.5,
    ):
        self.timeout_ms = timeout_ms
        self.headless = headless
        self.max_concurrent = max_concurrent
        self.launch_attempts = launch_attempts
        self.page_format = PageFormat(page_format)
        self.launch_backoff = launch_backoff
        self._semaphore = asyncio.Semaphore(max_concurrent)

        self.contexts_acquired = 0
        self.contexts_released = 0

        # Readiness state reported by /health
        self.ready = False
        self.error: Optional[str] = None

    @property
    def active_contexts(self) -> int:
        return self.contexts_acquired - self.contexts_released

    async def _launch(self, playwright):
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.launch_attempts),
            wait=wait_exponential(multiplier=self.launch_backoff, max=5),
            retry=retry_if_exception_type(PlaywrightError),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    if attempt.retry_state.attempt_number > 1:
                        logger.warning(f"Retrying Chromium launch (attempt {attempt.retry_state.attempt_number})")
                    return await playwright.chromium.launch(
                        headless=self.headless,
                        timeout=self.timeout_ms,
                    )
        except PlaywrightError as e:
            logger.error(f"Chromium launch failed after {self.launch_attempts} attempts: {e}")
            raise RenderBackendUnavailable(f"Could not start Chromium: {e}")

    async def _release(self, browser) -> None:
        try:
            await browser.close()
        except PlaywrightError as e:
            logger.warning(f"Error while closing Chromium: {e}")
        finally:
            self.contexts_released += 1

    @asynccontextmanager
    async def rendering_context(self) -> AsyncIterator:
        """
        Acquire a fresh Chromium page.

        Yields:
            Playwright Page; its browser is closed when the block exits

        Raises:
            RenderBackendUnavailable: driver or browser failed to start
        """
        async with self._semaphore:
            async with AsyncExitStack() as stack:
                try:
                    playwright = await stack.enter_async_context(async_playwright())
                except (PlaywrightError, OSError) as e:
                    logger.error(f"Playwright driver failed to start: {e}")
                    raise RenderBackendUnavailable(f"Could not start Playwright: {e}")

                browser = await self._launch(playwright)
                self.contexts_acquired += 1
                stack.push_async_callback(self._release, browser)

                try:
                    page = await browser.new_page()
                except PlaywrightError as e:
                    raise RenderBackendUnavailable(f"Could not open a Chromium page: {e}")
                page.set_default_timeout(self.timeout_ms)
                yield page

    async def _export(self, page, html: str, page_format: PageFormat) -> bytes:
        await page.set_content(html, wait_until="load")
        await page.wait_for_function(IMAGES_READY_JS)
        await page.wait_for_function(FONTS_READY_JS)
        await page.emulate_media(media="print")
        return await page.pdf(format=page_format.value, print_background=True)

    async def render(self, html: str, page_format: Optional[Union[PageFormat, str]] = None) -> bytes:
        """
        Render an HTML document to PDF bytes.

        Args:
            html: Complete HTML document; embedded data-URI images are
                awaited before capture
            page_format: Override the engine's default page format

        Returns:
            PDF bytes

        Raises:
            ValidationError: empty HTML
            RenderTimeout: load/export exceeded timeout_ms
            RenderBackendUnavailable: Chromium could not start or crashed
        """
        if not html or not html.strip():
            raise ValidationError("HTML content is required")

        fmt = PageFormat(page_format) if page_format else self.page_format

        async with self.rendering_context() as page:
            logger.info(f"Starting PDF render (format={fmt.value}, html={len(html)} chars)")
            try:
                pdf_bytes = await asyncio.wait_for(
                    self._export(page, html, fmt),
                    timeout=self.timeout_ms / 1000,
                )
            except (asyncio.TimeoutError, PlaywrightTimeoutError):
                logger.error(f"PDF rendering timed out after {self.timeout_ms}ms")
                raise RenderTimeout(f"Rendering timed out after {self.timeout_ms}ms")
            except PlaywrightError as e:
                logger.error(f"PDF rendering failed: {e}")
                raise RenderBackendUnavailable(f"Rendering failed: {e}")

        logger.info(f"PDF render completed ({len(pdf_bytes)} bytes)")
        return pdf_bytes

    async def validate_backend(self) -> bool:
        """
        Render a test page to confirm Chromium works.

        Records the outcome in `ready` / `error` instead of raising, so the
        service can start and report itself unhealthy.
        """
        logger.info("Validating Playwright installation...")
        try:
            test_pdf = await self.render(VALIDATION_HTML)
        except Exception as e:
            self.ready = False
            self.error = str(e)
            logger.error(f"Playwright validation failed: {self.error}")
            logger.error("PDF generation will not work until this is resolved.")
            return False

        if not test_pdf:
            self.ready = False
            self.error = "Test PDF generation returned empty result"
            logger.error(f"Playwright validation failed: {self.error}")
            return False

        self.ready = True
        self.error = None
        logger.info(f"Playwright validation successful - generated {len(test_pdf)} byte test PDF")
        return True
