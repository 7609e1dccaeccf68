"""
Document binder for declaration and resolution layouts.

Merges request records into the fixed HTML templates shipped in
`templates/`. Rendering uses Jinja2 with autoescaping and StrictUndefined,
so every text value is HTML-escaped and a template that references a field
the record does not provide fails loudly instead of printing a blank.
"""

import logging
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    TemplateNotFound,
    TemplateSyntaxError,
    UndefinedError,
)

from .errors import BindingError, MissingTemplate
from .images import normalize_image
from .models import DeclarationRequest, ResolutionRequest

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"


class TemplateName(str, Enum):
    DECLARATION = "declaration"
    PREVIEW = "preview"
    RESOLUTION = "resolution"


TEMPLATE_FILES = {
    TemplateName.DECLARATION: "declaration.html",
    TemplateName.PREVIEW: "preview.html",
    TemplateName.RESOLUTION: "resolution.html",
}

# Placeholder values for the GET / form
DEFAULT_DIRECTOR_NAME = "John Doe"
DEFAULT_COMPANY_NAME = "Demo Pvt Ltd"
DEFAULT_MOBILE_NUMBER = "9876543210"

Record = Union[DeclarationRequest, ResolutionRequest, Mapping[str, Any]]


def format_declaration_date(value: date) -> str:
    return value.strftime("%d/%m/%Y")


class DocumentBinder:
    """
    Holds the template registry and binds records into HTML.

    Constructed once at startup and handed to route handlers; holds no
    per-request state.
    """

    def __init__(
        self,
        template_dir: Optional[Union[str, Path]] = None,
        max_image_bytes: Optional[int] = None,
        templates: Optional[Mapping[TemplateName, str]] = None,
    ):
        self.template_dir = Path(template_dir) if template_dir else TEMPLATE_DIR
        self.max_image_bytes = max_image_bytes
        self.templates = dict(templates or TEMPLATE_FILES)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=True,
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def resolve(self, template: Union[TemplateName, str]) -> str:
        """Map a template identifier to its file name."""
        try:
            name = TemplateName(template)
        except ValueError:
            raise MissingTemplate(f"Unknown template: {template!r}")
        if name not in self.templates:
            raise MissingTemplate(f"No template registered for {name.value!r}")
        return self.templates[name]

    def bind(self, template: Union[TemplateName, str], record: Record) -> str:
        """
        Bind a record into a template.

        Args:
            template: One of 'declaration', 'preview', 'resolution'
            record: DeclarationRequest, ResolutionRequest or a ready context mapping

        Returns:
            Complete HTML document

        Raises:
            MissingTemplate: unknown identifier or template file missing
            BindingError: template references a field the record lacks
            InvalidImageEncoding / ValidationError: bad declaration images
        """
        if isinstance(record, DeclarationRequest):
            context = self.declaration_context(record)
        elif isinstance(record, ResolutionRequest):
            context = self.resolution_context(record)
        else:
            context = dict(record)
        return self.render(template, context)

    def render(self, template: Union[TemplateName, str], context: Dict[str, Any]) -> str:
        filename = self.resolve(template)
        try:
            compiled = self.env.get_template(filename)
        except TemplateNotFound:
            raise MissingTemplate(f"Template file not found: {filename}")
        except TemplateSyntaxError as e:
            raise MissingTemplate(f"Template {filename} failed to compile: {e}")

        try:
            return compiled.render(context)
        except UndefinedError as e:
            logger.error(f"Binding {filename} failed: {e}")
            raise BindingError(f"Template {filename} references a missing field: {e}")

    def declaration_context(self, request: DeclarationRequest, form_mode: bool = False) -> Dict[str, Any]:
        """Template context for a declaration; images become canonical data URIs."""
        signature = normalize_image(request.signatureImage, self.max_image_bytes)
        portrait = normalize_image(request.portraitImage, self.max_image_bytes)
        return {
            "director_name": request.directorName,
            "company_name": request.companyName,
            "mobile_number": request.mobileNumber,
            "declaration_date": request.declarationDate,
            "signature_src": signature.data_uri if signature else "",
            "portrait_src": portrait.data_uri if portrait else "",
            "form_mode": form_mode,
        }

    def resolution_context(self, request: ResolutionRequest) -> Dict[str, Any]:
        # Directors keep input order; duplicates are rendered as given
        directors = [
            {
                "serial": index,
                "id": director.id,
                "name": director.name,
                "pan_number": director.panNumber,
                "email": director.email,
            }
            for index, director in enumerate(request.directors, start=1)
        ]
        return {
            "resolution_id": request.resolutionId,
            "company_name": request.companyName,
            "meeting_date": request.date,
            "meeting_time": request.time,
            "meeting_address": request.address,
            "directors": directors,
        }

    def bind_initial_form(self, today: Optional[date] = None) -> str:
        """Blank declaration form pre-filled with placeholder values."""
        request = DeclarationRequest(
            directorName=DEFAULT_DIRECTOR_NAME,
            companyName=DEFAULT_COMPANY_NAME,
            mobileNumber=DEFAULT_MOBILE_NUMBER,
            declarationDate=format_declaration_date(today or date.today()),
        )
        return self.render(TemplateName.DECLARATION, self.declaration_context(request, form_mode=True))
