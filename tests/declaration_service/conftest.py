"""
Pytest fixtures for declaration service tests.
"""

import os
import tempfile
from unittest.mock import patch

# IMPORTANT: Set environment variables BEFORE any imports from declaration_service
# so DeclarationSettings is configured correctly when first loaded.
os.environ["ENVIRONMENT"] = "development"
os.environ["UPLOAD_ROOT"] = tempfile.mkdtemp(prefix="declaration-uploads-")
os.environ["MAX_UPLOAD_BYTES"] = "65536"
os.environ["MAX_IMAGE_BYTES"] = "4096"
os.environ["MAX_REQUEST_BYTES"] = "65536"
os.environ["MONGODB_URI"] = ""

import pytest
from fastapi.testclient import TestClient

from .helpers import ALICE, FakePlaywright


@pytest.fixture
def fake_playwright():
    """Patch Playwright inside the render engine."""
    fake = FakePlaywright()
    with patch("declaration_service.renderer.async_playwright", fake.factory):
        yield fake


@pytest.fixture
def engine():
    from declaration_service.renderer import RenderEngine
    return RenderEngine(timeout_ms=2000, max_concurrent=2, launch_attempts=2, launch_backoff=0)


@pytest.fixture
def sink(tmp_path):
    from declaration_service.sink import ArtifactSink
    return ArtifactSink(tmp_path / "uploads")


@pytest.fixture
def binder():
    from declaration_service.binder import DocumentBinder
    return DocumentBinder(max_image_bytes=4096)


@pytest.fixture
def client(engine, sink):
    """FastAPI test client with per-test engine and upload root."""
    from declaration_service.app import app, get_engine, get_sink

    engine.ready = True
    app.dependency_overrides[get_engine] = lambda: engine
    app.dependency_overrides[get_sink] = lambda: sink
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def alice():
    return dict(ALICE)
