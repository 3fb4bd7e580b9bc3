"""
Tests for TXT ingest
====================
"""

import pytest
from pathlib import Path

# Add parent to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from contradiction_engine.errors import InputError
from contradiction_engine.ingest import decode_bytes, decode_text, read_document


SAMPLE = "The contract was signed on March 3, 2024. The purchase price was $120,000."


class TestDecodeBytes:

    def test_utf8(self):
        decoded = decode_bytes(SAMPLE.encode("utf-8"))
        assert decoded.text == SAMPLE
        assert decoded.encoding == "utf-8"
        assert decoded.confidence == 1.0

    def test_utf8_bom_stripped(self):
        assert decode_text(b"\xef\xbb\xbf" + SAMPLE.encode("utf-8")) == SAMPLE

    def test_utf16_detected(self):
        assert decode_text(SAMPLE.encode("utf-16")) == SAMPLE

    def test_empty(self):
        with pytest.raises(InputError):
            decode_bytes(b"")


class TestReadDocument:

    def test_reads_file(self, tmp_path):
        path = tmp_path / "doc.txt"
        path.write_text(SAMPLE, encoding="utf-8")
        assert read_document(path) == SAMPLE

    def test_accepts_string_path(self, tmp_path):
        path = tmp_path / "doc.txt"
        path.write_text(SAMPLE, encoding="utf-8")
        assert read_document(str(path)) == SAMPLE

    def test_missing_file(self, tmp_path):
        with pytest.raises(InputError, match="File not found"):
            read_document(tmp_path / "missing.txt")

    def test_directory_rejected(self, tmp_path):
        with pytest.raises(InputError):
            read_document(tmp_path)

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.txt"
        path.write_bytes(b"")
        with pytest.raises(InputError):
            read_document(path)
