"""
Declaration Service - FastAPI application.

Serves the declaration form, binds submissions into the declaration
layout and renders them to PDF using Playwright/Chromium.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse
from pydantic import ValidationError as PydanticValidationError

from .binder import DocumentBinder, TemplateName
from .config import get_settings, validate_config_on_startup
from .directors import DirectorStore, build_director_store
from .errors import DeclarationServiceError, RequestTooLarge, SinkWriteError, ValidationError
from .images import normalize_image
from .models import (
    DeclarationRequest,
    HealthResponse,
    SaveSignatureRequest,
    SaveSignatureResponse,
    SignatureSubmission,
    SubmitSignatureResponse,
    UploadResponse,
)
from .renderer import RenderEngine
from .sink import ArtifactSink

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)
logger = logging.getLogger(__name__)

FORM_DATA_MISSING = "Form data missing. Please fill the form and try again."
SIGNATURE_FIELDS_MISSING = "Image and directorID are required"

app = FastAPI(
    title="Declaration Service",
    version="0.1.0",
    description="Director declaration and resolution documents rendered to PDF with Playwright/Chromium"
)

settings = get_settings()

# Components are built once and handed to handlers through Depends
app.state.binder = DocumentBinder(max_image_bytes=settings.max_image_bytes)
app.state.engine = RenderEngine(
    timeout_ms=settings.render_timeout_ms,
    headless=settings.playwright_headless,
    max_concurrent=settings.max_concurrent_pdfs,
    launch_attempts=settings.browser_launch_attempts,
    page_format=settings.page_format,
)
app.state.sink = ArtifactSink(settings.upload_root)
app.state.directors = build_director_store(settings.mongodb_uri, settings.mongo_db_name)


def get_binder(request: Request) -> DocumentBinder:
    return request.app.state.binder


def get_engine(request: Request) -> RenderEngine:
    return request.app.state.engine


def get_sink(request: Request) -> ArtifactSink:
    return request.app.state.sink


def get_director_store(request: Request) -> DirectorStore:
    return request.app.state.directors


# ============================================================================
# Startup Event - Storage root and Playwright validation
# ============================================================================

@app.on_event("startup")
async def on_startup():
    """
    Validate configuration, create the upload root and check Chromium.

    A Chromium failure does not stop startup; /health reports 503 until
    the backend is available.
    """
    logger.info("Declaration Service starting...")
    validate_config_on_startup()
    app.state.sink.ensure_storage_root()
    await app.state.engine.validate_backend()


# ============================================================================
# Error Handling
# ============================================================================

@app.exception_handler(DeclarationServiceError)
async def handle_service_error(request: Request, exc: DeclarationServiceError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# ============================================================================
# Request Parsing
# ============================================================================

async def read_payload(request: Request) -> Dict[str, Any]:
    """
    Parse a JSON or form-encoded body into a dict.

    Raises:
        ValidationError: body missing, malformed or of another content type
        RequestTooLarge: body above MAX_REQUEST_BYTES
    """
    content_type = request.headers.get("content-type", "")
    limit = get_settings().max_request_bytes

    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > limit:
        raise RequestTooLarge(f"Request body exceeds the maximum size of {limit} bytes")

    # Chunked bodies carry no Content-Length; json() and form() reuse the cached body
    if len(await request.body()) > limit:
        raise RequestTooLarge(f"Request body exceeds the maximum size of {limit} bytes")

    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            raise ValidationError(FORM_DATA_MISSING)
        if not isinstance(body, dict):
            raise ValidationError(FORM_DATA_MISSING)
        return body

    if content_type.startswith(("application/x-www-form-urlencoded", "multipart/form-data")):
        form = await request.form()
        return {key: value for key, value in form.items() if isinstance(value, str)}

    raise ValidationError(FORM_DATA_MISSING)


async def declaration_payload(request: Request) -> DeclarationRequest:
    """Parse and completeness-check a declaration before any rendering work."""
    payload = await read_payload(request)
    try:
        declaration = DeclarationRequest.model_validate(payload)
    except PydanticValidationError as e:
        fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err.get("loc"))
        raise ValidationError(f"Invalid form fields: {fields}")
    return declaration.require_complete()


# ============================================================================
# Health Check Endpoint
# ============================================================================

@app.get("/health", response_model=HealthResponse)
async def health_check(engine: RenderEngine = Depends(get_engine)) -> HealthResponse:
    """
    Health check endpoint for container orchestration.

    Returns HTTP 503 if Playwright validation failed on startup.
    """
    if not engine.ready:
        raise HTTPException(
            status_code=503,
            detail={
                "status": "unhealthy",
                "timestamp": datetime.utcnow().isoformat(),
                "active_renders": engine.active_contexts,
                "max_concurrent": engine.max_concurrent,
                "playwright_ready": False,
                "playwright_error": engine.error,
                "message": "Declaration service is unhealthy - Playwright/Chromium not available"
            }
        )

    return HealthResponse(
        status="healthy",
        timestamp=datetime.utcnow(),
        active_renders=engine.active_contexts,
        max_concurrent=engine.max_concurrent,
        playwright_ready=True,
        playwright_error=None
    )


# ============================================================================
# Declaration Endpoints
# ============================================================================

@app.get("/", response_class=HTMLResponse)
async def declaration_form(binder: DocumentBinder = Depends(get_binder)):
    """Initial declaration form with placeholder values and today's date."""
    return HTMLResponse(binder.bind_initial_form())


@app.post("/preview", response_class=HTMLResponse)
async def preview(
    declaration: DeclarationRequest = Depends(declaration_payload),
    binder: DocumentBinder = Depends(get_binder),
):
    """Render the submitted declaration as an HTML preview page."""
    return HTMLResponse(binder.bind(TemplateName.PREVIEW, declaration))


@app.post("/download-pdf")
async def download_pdf(
    declaration: DeclarationRequest = Depends(declaration_payload),
    binder: DocumentBinder = Depends(get_binder),
    engine: RenderEngine = Depends(get_engine),
    sink: ArtifactSink = Depends(get_sink),
):
    """
    Render the declaration and return it as a PDF download.

    Raises:
        ValidationError: 400 for missing fields or oversized images
        RenderTimeout: 504 if Chromium does not finish in time
        RenderBackendUnavailable: 503 if Chromium cannot start
    """
    html = binder.bind(TemplateName.DECLARATION, declaration)
    pdf_bytes = await engine.render(html)
    logger.info(f"Declaration PDF generated for {declaration.companyName} ({len(pdf_bytes)} bytes)")
    return sink.attachment_response(pdf_bytes, "declaration.pdf")


@app.post("/submit-form", response_class=PlainTextResponse)
async def submit_form(
    declaration: DeclarationRequest = Depends(declaration_payload),
    binder: DocumentBinder = Depends(get_binder),
    engine: RenderEngine = Depends(get_engine),
    sink: ArtifactSink = Depends(get_sink),
):
    """Render the declaration and store the PDF under the upload root."""
    html = binder.bind(TemplateName.DECLARATION, declaration)
    pdf_bytes = await engine.render(html)
    stored = await sink.persist(pdf_bytes, "declaration.pdf")
    logger.info(f"Declaration PDF submitted: {stored.filename}")
    return PlainTextResponse("PDF Submitted Successfully!")


# ============================================================================
# Artifact Endpoints
# ============================================================================

@app.post("/save-signature", response_model=SaveSignatureResponse)
async def save_signature(request: Request, sink: ArtifactSink = Depends(get_sink)):
    """Decode a signature pad image and store it as a standalone file."""
    try:
        body = SaveSignatureRequest.model_validate(await read_payload(request))
    except PydanticValidationError:
        raise ValidationError("Signature image must be a base64 string")
    image = normalize_image(body.image, get_settings().max_image_bytes)
    if image is None:
        raise ValidationError("Signature image is required")
    if image.mime_type != "image/png":
        raise ValidationError("Signature image must be a PNG")

    stored = await sink.persist_image(image, "signature")
    return SaveSignatureResponse(filename=stored.filename)


@app.post("/uploads", response_model=UploadResponse)
async def upload_pdf(request: Request, sink: ArtifactSink = Depends(get_sink)):
    """
    Store a raw PDF body.

    Returns 415 for other content types, 413 above MAX_UPLOAD_BYTES and
    500 with {success: false, error} when the write fails.
    """
    limit = get_settings().max_upload_bytes

    if not request.headers.get("content-type", "").startswith("application/pdf"):
        raise HTTPException(status_code=415, detail="Content-Type must be application/pdf")

    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > limit:
        raise HTTPException(status_code=413, detail=f"PDF exceeds the maximum size of {limit} bytes")

    pdf_bytes = await request.body()
    if len(pdf_bytes) > limit:
        raise HTTPException(status_code=413, detail=f"PDF exceeds the maximum size of {limit} bytes")
    if not pdf_bytes.startswith(b"%PDF-"):
        raise ValidationError("Request body is not a PDF document")

    try:
        stored = await sink.persist(pdf_bytes, "form.pdf")
    except SinkWriteError as e:
        logger.error(f"Failed to save PDF: {e.message}")
        return JSONResponse(status_code=500, content={"success": False, "error": "Failed to save PDF"})

    return UploadResponse(success=True, filename=stored.filename)


# ============================================================================
# Resolution Endpoints
# ============================================================================

@app.get("/resolution/{resolution_id}", response_class=HTMLResponse)
async def resolution_view(
    resolution_id: str,
    binder: DocumentBinder = Depends(get_binder),
    store: DirectorStore = Depends(get_director_store),
):
    """Render the board resolution listing its directors."""
    loop = asyncio.get_running_loop()
    record = await loop.run_in_executor(None, store.get_resolution, resolution_id)
    return HTMLResponse(binder.bind(TemplateName.RESOLUTION, record))


@app.post("/submit-signature", response_model=SubmitSignatureResponse)
async def submit_signature(request: Request, sink: ArtifactSink = Depends(get_sink)):
    """
    Store one director's signature for a document.

    Every failure is reported as {success: false, message}: 400 for client
    errors, 413 for oversized bodies and 500 when the file cannot be written.
    """
    try:
        payload = await read_payload(request)
    except DeclarationServiceError as e:
        return signature_failure(e.status_code, e.message)

    if not payload.get("image") or not payload.get("directorID"):
        return signature_failure(400, SIGNATURE_FIELDS_MISSING)

    try:
        submission = SignatureSubmission.model_validate(payload)
        image = normalize_image(submission.imageData, get_settings().max_image_bytes)
    except PydanticValidationError:
        return signature_failure(400, "Invalid signature submission")
    except DeclarationServiceError as e:
        return signature_failure(e.status_code, e.message)

    if image is None:
        return signature_failure(400, SIGNATURE_FIELDS_MISSING)

    try:
        stored = await sink.persist_image(image, submission.directorId)
    except SinkWriteError as e:
        logger.error(f"Failed to save signature for director {submission.directorId}: {e.message}")
        return signature_failure(500, "Failed to save signature")

    logger.info(
        f"Signature saved for director {submission.directorId} "
        f"(document={submission.documentName or '-'}): {stored.filename}"
    )

    return SubmitSignatureResponse(
        success=True,
        message="Signature saved successfully",
        fileName=stored.filename,
        filePath=stored.url,
        directorID=submission.directorId,
        name=submission.name,
        email=submission.email,
        docname=submission.documentName,
    )


def signature_failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    uvicorn.run("declaration_service.app:app", host="0.0.0.0", port=8000)
