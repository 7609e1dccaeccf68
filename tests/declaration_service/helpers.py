"""
Shared test data and the Playwright stand-in used across declaration tests.
"""

from unittest.mock import AsyncMock, MagicMock

FAKE_PDF = b"%PDF-1.4 fake declaration pdf"

ALICE = {
    "directorName": "Alice",
    "companyName": "Acme",
    "mobileNumber": "1234567890",
    "declarationDate": "01/01/2025",
    "signatureImage": "data:image/png;base64,AAAA",
    "portraitImage": "data:image/png;base64,BBBB",
}


class FakePlaywright:
    """
    Stand-in for playwright.async_api.async_playwright.

    Every call returns a context manager whose chromium.launch yields the
    same mocked browser and page, so tests can inspect what was rendered.
    """

    def __init__(self, pdf_bytes: bytes = FAKE_PDF):
        self.page = AsyncMock()
        self.page.set_default_timeout = MagicMock()
        self.page.pdf = AsyncMock(return_value=pdf_bytes)

        self.browser = AsyncMock()
        self.browser.new_page = AsyncMock(return_value=self.page)
        self.browser.close = AsyncMock()

        self.chromium = MagicMock()
        self.chromium.launch = AsyncMock(return_value=self.browser)

        self.factory = MagicMock()
        self.factory.return_value.__aenter__ = AsyncMock(
            return_value=MagicMock(chromium=self.chromium)
        )
        self.factory.return_value.__aexit__ = AsyncMock(return_value=False)

    @property
    def rendered_html(self) -> str:
        return self.page.set_content.await_args.args[0]
