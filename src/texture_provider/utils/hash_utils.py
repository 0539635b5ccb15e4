"""Utility functions for content digests and texture payload checks."""

import hashlib
import re
from urllib.parse import urlsplit

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"

MAX_DIGEST_LENGTH = 128
_DIGEST_PATTERN = re.compile(rf"[0-9a-f]{{1,{MAX_DIGEST_LENGTH}}}")


def compute_digest(data: bytes) -> str:
    """
    Calculate the content digest of a payload.

    Args:
        data: The bytes to hash.

    Returns:
        The SHA-256 digest as a lowercase hex string.

    """
    return hashlib.sha256(data).hexdigest()


def is_valid_digest(text: str | None) -> bool:
    """
    Check that a string can be used as a storage key.

    Digests relayed from the remote profile service are not always 64 characters
    long, so any non-empty lowercase hex string up to MAX_DIGEST_LENGTH is
    accepted. Anything else (separators, dots, upper case) is refused.
    """
    return bool(text) and _DIGEST_PATTERN.fullmatch(text) is not None


def extract_digest_from_url(url: str) -> str | None:
    """
    Take the digest out of a texture URL.

    ``http://textures.minecraft.net/texture/abc123?x=1`` gives ``abc123``; an
    extension on the last segment is dropped (``.../abc123.png`` gives ``abc123``).

    Returns:
        The digest, or None when the URL has no usable last path segment.

    """
    path = urlsplit(url).path
    last_segment = path.rsplit("/", 1)[-1]
    digest = last_segment.split(".", 1)[0]
    return digest or None


def is_png(data: bytes) -> bool:
    """Check for the 8-byte PNG signature. The rest of the image is not inspected."""
    return data[: len(PNG_SIGNATURE)] == PNG_SIGNATURE
