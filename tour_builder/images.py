"""
Image loading for logos and day photos.

Sources may be `data:` URLs (what the form's upload widget produces), http(s)
URLs or local file paths. Loading never raises: on any failure a warning is
logged and None is returned so the caller can fall back.
"""

from __future__ import annotations

import base64
import binascii
from io import BytesIO
from pathlib import Path
from typing import Optional

import requests
from reportlab.lib.utils import ImageReader

from .logging_utils import get_logger

logger = get_logger(__name__)


def _describe(source: str) -> str:
    return source[:40] + "..." if len(source) > 40 else source


def _read_bytes(source: str, timeout: float) -> bytes:
    if source.startswith("data:"):
        header, _, payload = source.partition(",")
        if ";base64" not in header:
            raise ValueError("only base64 data URLs are supported")
        return base64.b64decode(payload, validate=False)
    if source.startswith(("http://", "https://")):
        r = requests.get(source, timeout=timeout)
        r.raise_for_status()
        return r.content
    return Path(source).read_bytes()


def load_image(source: Optional[str], timeout: float = 10.0) -> Optional[ImageReader]:
    """
    Decode `source` into a reportlab ImageReader, or None if it can't be used.
    """
    if not source:
        return None
    try:
        raw = _read_bytes(source, timeout)
    except (requests.exceptions.RequestException, OSError, ValueError, binascii.Error) as e:
        logger.warning("Could not fetch image %s: %s", _describe(source), e)
        return None
    try:
        reader = ImageReader(BytesIO(raw))
        reader.getSize()
    except Exception as e:
        # PIL raises a wide variety of errors for corrupt data
        logger.warning("Could not decode image %s: %s", _describe(source), e)
        return None
    return reader


__all__ = ["load_image"]
