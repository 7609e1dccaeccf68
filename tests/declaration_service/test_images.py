"""
Unit tests for image normalization.
"""

import base64

import pytest

from declaration_service.errors import InvalidImageEncoding, ValidationError
from declaration_service.images import DecodedImage, normalize_image, split_data_uri

PNG_1X1 = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


class TestEmptyInput:

    @pytest.mark.parametrize("value", [None, "", "   ", "\n"])
    def test_empty_values_return_none(self, value):
        assert normalize_image(value) is None


class TestDecoding:

    def test_png_data_uri(self):
        image = normalize_image(f"data:image/png;base64,{PNG_1X1}")
        assert image.mime_type == "image/png"
        assert image.extension == "png"
        assert image.data.startswith(b"\x89PNG")

    def test_short_payload_without_image_header(self):
        """Payloads are not sniffed for a real image header."""
        image = normalize_image("data:image/png;base64,AAAA")
        assert image.data == b"\x00\x00\x00"

    def test_jpeg_extension(self):
        image = normalize_image("data:image/jpeg;base64,/9j/4AAQ")
        assert image.extension == "jpg"

    def test_svg_extension_and_parameters(self):
        image = normalize_image("data:image/svg+xml;charset=utf-8;base64,PHN2Zy8+")
        assert image.extension == "svg"
        assert image.data == b"<svg/>"

    def test_bare_payload_is_png(self):
        image = normalize_image(PNG_1X1)
        assert image.mime_type == "image/png"

    def test_whitespace_inside_payload_is_ignored(self):
        image = normalize_image("data:image/png;base64,AA\nAA")
        assert image.data == b"\x00\x00\x00"

    def test_mime_type_is_lowercased(self):
        assert split_data_uri("data:IMAGE/PNG;base64,AAAA") == ("image/png", "AAAA")


class TestRoundTrip:

    def test_data_uri_round_trip_preserves_bytes(self):
        image = normalize_image(f"data:image/png;base64,{PNG_1X1}")
        again = normalize_image(image.data_uri)
        assert again == image

    def test_reencoding_payload_is_idempotent(self):
        image = normalize_image(f"data:image/png;base64,{PNG_1X1}")
        assert base64.b64decode(base64.b64encode(image.data)) == image.data
        assert image.data_uri == f"data:image/png;base64,{PNG_1X1}"

    def test_len_is_decoded_size(self):
        assert len(DecodedImage(data=b"abc", mime_type="image/png")) == 3


class TestInvalidInput:

    @pytest.mark.parametrize("value", [
        "data:image/png;base64,@@@@",
        "data:image/png;base64,AAA",
        'data:image/png;base64,AAAA" onerror="alert(1)',
    ])
    def test_invalid_base64_raises(self, value):
        with pytest.raises(InvalidImageEncoding):
            normalize_image(value)

    def test_empty_payload_raises(self):
        with pytest.raises(InvalidImageEncoding, match="empty payload"):
            normalize_image("data:image/png;base64,")

    def test_missing_base64_marker_raises(self):
        with pytest.raises(InvalidImageEncoding):
            normalize_image("data:image/png,AAAA")

    def test_non_image_mime_type_raises(self):
        with pytest.raises(InvalidImageEncoding, match="Unsupported image type"):
            normalize_image("data:text/html;base64,PGI+")


class TestSizeLimit:

    def test_image_over_limit_raises_validation_error(self):
        with pytest.raises(ValidationError, match="maximum size of 2 bytes"):
            normalize_image("data:image/png;base64,AAAA", max_bytes=2)

    def test_large_payload_rejected_before_decoding(self):
        with pytest.raises(ValidationError):
            normalize_image("data:image/png;base64," + "A" * 4000, max_bytes=10)

    def test_image_at_limit_is_accepted(self):
        assert len(normalize_image("data:image/png;base64,AAAA", max_bytes=3)) == 3
