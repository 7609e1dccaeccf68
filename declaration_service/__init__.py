"""
Declaration Service - HTML to PDF rendering for director declarations.

Binds submitted declaration and resolution data into fixed HTML layouts
and renders them to A4 PDFs using Playwright/Chromium.
"""

__version__ = "0.1.0"
