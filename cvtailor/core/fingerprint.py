"""
Content fingerprinting.

Deterministic SHA-256 fingerprint over (CV text, job text, language), used
both as the dedup key for jobs and as the result cache key.

Dependencies: hashlib (stdlib)
System role: Content addressing for dedup and caching
"""

import hashlib


def normalize_text(text: str) -> str:
    """Trim and lower-case a text before hashing."""
    return text.strip().lower()


def fingerprint(primary_text: str, secondary_text: str, language: str) -> str:
    """
    Compute the content fingerprint for an analysis request.

    Every part is normalized and framed with its length, so the whole of each
    text participates and no two different part splits share a digest.

    Args:
        primary_text: CV text
        secondary_text: Job description text
        language: Output language code

    Returns:
        str: 64-character hex digest
    """
    digest = hashlib.sha256()
    for part in (primary_text, secondary_text, language):
        encoded = normalize_text(part).encode("utf-8")
        digest.update(f"{len(encoded)}:".encode("ascii"))
        digest.update(encoded)
    return digest.hexdigest()


def text_hash(text: str) -> str:
    """Hash a single normalized text (cache analytics columns)."""
    return hashlib.sha256(normalize_text(text).encode("utf-8")).hexdigest()
