"""
Ingest
======

Byte-to-text decoding for the outer boundary. The analysis core itself
never touches the filesystem.
"""

from .txt import DecodedText, decode_bytes, decode_text, read_document

__all__ = [
    "DecodedText",
    "decode_bytes",
    "decode_text",
    "read_document",
]
