"""
Tests for turning uploads and data URIs into ImageData
"""
import base64

import pytest

from agrodetect.imaging import from_bytes, from_data_uri

PNG_HEADER = b"\x89PNG\r\n\x1a\n"


class TestFromBytes:
    def test_encodes_base64(self):
        image = from_bytes(PNG_HEADER, "image/png")
        assert base64.b64decode(image.data) == PNG_HEADER
        assert image.mime_type == "image/png"

    def test_declared_type_wins_over_filename(self):
        assert from_bytes(b"x", "image/webp", "leaf.png").mime_type == "image/webp"

    @pytest.mark.parametrize("filename, expected", [
        ("leaf.png", "image/png"),
        ("leaf.JPG", "image/jpeg"),
        ("leaf", "image/jpeg"),
        (None, "image/jpeg"),
    ])
    def test_mime_fallbacks(self, filename, expected):
        assert from_bytes(b"x", None, filename).mime_type == expected

    @pytest.mark.parametrize("declared, filename, expected", [
        ("application/octet-stream", "leaf.png", "image/png"),
        ("application/octet-stream", None, "image/jpeg"),
        ("text/plain", "leaf.gif", "image/gif"),
        ("", "leaf.png", "image/png"),
    ])
    def test_generic_declared_type_counts_as_missing(self, declared, filename, expected):
        assert from_bytes(b"x", declared, filename).mime_type == expected

    def test_non_image_filename_guess_is_ignored(self):
        assert from_bytes(b"x", None, "notes.txt").mime_type == "image/jpeg"

    def test_empty_bytes_are_not_rejected(self):
        assert from_bytes(b"").data == ""


class TestFromDataUri:
    def test_splits_header_and_payload(self):
        image = from_data_uri("data:image/png;base64,aGVsbG8=")
        assert image.data == "aGVsbG8="
        assert image.mime_type == "image/png"
        assert image.data_uri == "data:image/png;base64,aGVsbG8="

    def test_uri_type_wins_over_fallback(self):
        assert from_data_uri("data:image/webp;base64,AAAA", "image/png").mime_type == "image/webp"

    def test_uri_without_type_uses_fallback(self):
        assert from_data_uri("data:;base64,AAAA", "image/png").mime_type == "image/png"

    def test_bare_base64(self):
        image = from_data_uri("  aGVsbG8=  ", "image/png")
        assert image.data == "aGVsbG8="
        assert image.mime_type == "image/png"

    def test_non_image_uri_type_is_ignored(self):
        assert from_data_uri("data:application/octet-stream;base64,AAAA", "image/png").mime_type == "image/png"
        assert from_data_uri("AAAA", "application/octet-stream").mime_type == "image/jpeg"

    def test_bare_base64_defaults_to_jpeg(self):
        assert from_data_uri("aGVsbG8=").mime_type == "image/jpeg"

    def test_missing_separator_raises(self):
        with pytest.raises(ValueError):
            from_data_uri("data:image/png;base64")
