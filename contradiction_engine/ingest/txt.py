"""
TXT Decoder
===========

Turns raw bytes from the outer boundary (CLI files, uploads) into text.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Union

import chardet

from ..errors import InputError

logger = logging.getLogger(__name__)

# chardet guesses below this are ignored in favour of UTF-8
MIN_DETECTION_CONFIDENCE = 0.5


@dataclass(frozen=True)
class DecodedText:
    text: str
    encoding: str
    confidence: float


def decode_bytes(data: bytes) -> DecodedText:
    """
    Decode document bytes with encoding detection.

    UTF-8 (with or without BOM) is tried first; otherwise the chardet guess
    is used.

    Raises:
        InputError: empty data, or bytes that decode to nothing readable
    """
    if not data:
        raise InputError("Document is empty")

    try:
        return DecodedText(text=data.decode("utf-8-sig"), encoding="utf-8", confidence=1.0)
    except UnicodeDecodeError:
        pass

    detected = chardet.detect(data)
    encoding = detected.get("encoding")
    confidence = detected.get("confidence") or 0.0

    if not encoding or confidence < MIN_DETECTION_CONFIDENCE:
        raise InputError(
            f"Document is not readable text (encoding guess {encoding!r}, confidence {confidence:.2f})"
        )

    try:
        text = data.decode(encoding)
    except (UnicodeDecodeError, LookupError) as e:
        raise InputError(f"Document could not be decoded as {encoding}: {e}") from e

    logger.debug(f"Decoded document as {encoding} (confidence {confidence:.2f})")
    return DecodedText(text=text, encoding=encoding, confidence=confidence)


def decode_text(data: bytes) -> str:
    """Decode bytes to text, raising InputError when unreadable."""
    return decode_bytes(data).text


def read_document(path: Union[str, Path]) -> str:
    """
    Read a text document from disk.

    Raises:
        InputError: missing file, unreadable file, or undecodable content
    """
    path = Path(path)
    if not path.is_file():
        raise InputError(f"File not found: {path}")

    try:
        data = path.read_bytes()
    except OSError as e:
        raise InputError(f"Could not read {path}: {e}") from e

    return decode_text(data)
