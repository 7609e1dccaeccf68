"""
Unit tests for request models.
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from declaration_service.errors import ValidationError
from declaration_service.models import DeclarationRequest, DirectorRecord, SignatureSubmission


class TestDeclarationRequest:

    def test_legacy_field_names(self):
        request = DeclarationRequest.model_validate({
            "directorName": "Alice",
            "signature": "data:image/png;base64,AAAA",
            "imageBase64": "data:image/png;base64,BBBB",
        })
        assert request.signatureImage == "data:image/png;base64,AAAA"
        assert request.portraitImage == "data:image/png;base64,BBBB"

    def test_numbers_coerced_to_strings(self):
        request = DeclarationRequest.model_validate({"mobileNumber": 1234567890})
        assert request.mobileNumber == "1234567890"

    def test_missing_fields_in_order(self, alice):
        alice["companyName"] = ""
        alice["portraitImage"] = "   "
        request = DeclarationRequest(**alice)
        assert request.missing_fields() == ["companyName", "portraitImage"]
        assert request.missing_fields(include_images=False) == ["companyName"]

    def test_require_complete_raises_readable_message(self):
        with pytest.raises(ValidationError, match="Missing: directorName, companyName"):
            DeclarationRequest().require_complete()

    def test_require_complete_returns_self(self, alice):
        request = DeclarationRequest(**alice)
        assert request.require_complete() is request


class TestDirectorRecord:

    def test_pan_uppercased(self):
        director = DirectorRecord(id="1", name="A", panNumber=" abcde1234f ", email="a@example.com")
        assert director.panNumber == "ABCDE1234F"

    @pytest.mark.parametrize("pan", ["ABCDE1234", "1BCDE1234F", "ABCDE12345", ""])
    def test_invalid_pan_rejected(self, pan):
        with pytest.raises(PydanticValidationError):
            DirectorRecord(id="1", name="A", panNumber=pan, email="a@example.com")


class TestSignatureSubmission:

    def test_form_field_aliases(self):
        submission = SignatureSubmission.model_validate({
            "directorID": "D1",
            "image": "data:image/png;base64,AAAA",
            "docname": "resolution-BR-1",
        })
        assert submission.directorId == "D1"
        assert submission.imageData == "data:image/png;base64,AAAA"
        assert submission.documentName == "resolution-BR-1"

    def test_is_immutable(self):
        submission = SignatureSubmission(directorId="D1", imageData="AAAA")
        with pytest.raises(PydanticValidationError):
            submission.directorId = "D2"
