"""
Shared Pydantic models for the declaration service.

These models define the structure for API requests, responses, and the
records bound into document templates.
"""

import re
from datetime import datetime
from typing import ClassVar, List, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .errors import ValidationError

PAN_PATTERN = re.compile(r"^[A-Z]{5}[0-9]{4}[A-Z]$")


class DeclarationRequest(BaseModel):
    """
    Declaration form submission.

    Fields default to empty strings so that missing values are reported by
    require_complete() with a readable message instead of a 422.
    The legacy form names `signature` and `imageBase64` are accepted.
    """

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True, coerce_numbers_to_str=True)

    directorName: str = ""
    companyName: str = ""
    mobileNumber: str = ""
    declarationDate: str = ""
    signatureImage: str = Field(
        "", validation_alias=AliasChoices("signatureImage", "signature")
    )
    portraitImage: str = Field(
        "", validation_alias=AliasChoices("portraitImage", "imageBase64")
    )

    IDENTITY_FIELDS: ClassVar[Tuple[str, ...]] = ("directorName", "companyName", "mobileNumber", "declarationDate")
    IMAGE_FIELDS: ClassVar[Tuple[str, ...]] = ("signatureImage", "portraitImage")

    def missing_fields(self, include_images: bool = True) -> List[str]:
        """Names of required fields that are empty, in declaration order."""
        names = list(self.IDENTITY_FIELDS)
        if include_images:
            names.extend(self.IMAGE_FIELDS)
        return [name for name in names if not getattr(self, name)]

    def require_complete(self, include_images: bool = True) -> "DeclarationRequest":
        """Raise ValidationError unless every required field is present."""
        missing = self.missing_fields(include_images)
        if missing:
            raise ValidationError(
                "Some required fields are missing. Please fill the form and try again. "
                f"Missing: {', '.join(missing)}"
            )
        return self


class DirectorRecord(BaseModel):
    """One director listed on a resolution."""

    id: str
    name: str
    panNumber: str
    email: str

    @field_validator("panNumber")
    @classmethod
    def validate_pan(cls, v: str) -> str:
        """PAN is five letters, four digits, one letter (e.g. ABCDE1234F)."""
        v = v.strip().upper()
        if not PAN_PATTERN.match(v):
            raise ValueError(f"Invalid PAN number: {v}")
        return v


class ResolutionRequest(BaseModel):
    """Board resolution with its meeting metadata and ordered directors."""

    resolutionId: str
    companyName: str
    date: str
    time: str
    address: str
    directors: List[DirectorRecord] = Field(default_factory=list)


class SignatureSubmission(BaseModel):
    """One director signing one document. Immutable once built."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    directorId: str = Field(..., validation_alias=AliasChoices("directorId", "directorID"))
    imageData: str = Field(..., validation_alias=AliasChoices("imageData", "image"))
    name: str = ""
    email: str = ""
    documentName: str = Field("", validation_alias=AliasChoices("documentName", "docname"))


class SaveSignatureRequest(BaseModel):
    """Body of POST /save-signature."""

    image: str = ""


class SaveSignatureResponse(BaseModel):
    filename: str


class UploadResponse(BaseModel):
    success: bool
    filename: str


class SubmitSignatureResponse(BaseModel):
    """Response after persisting a director's signature."""

    success: bool
    message: str
    fileName: str
    filePath: str
    directorID: str
    name: str
    email: str
    docname: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "healthy"
    timestamp: datetime
    active_renders: int
    max_concurrent: int
    playwright_ready: bool = True
    playwright_error: Optional[str] = None
