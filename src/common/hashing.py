"""Hashing utilities."""

import hashlib


def generate_article_id(feed_url: str, link: str) -> str:
    """Generate a unique article ID from the feed URL and article link."""
    return hashlib.sha256(f"{feed_url}:{link}".encode()).hexdigest()[:16]


def stable_seed(*parts: object) -> int:
    """Derive a 64-bit seed from parts, stable across processes and runs."""
    digest = hashlib.sha256("\x1f".join(str(part) for part in parts).encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big")
