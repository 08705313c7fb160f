from __future__ import annotations

import hashlib

DIGEST_LENGTH = 16


def generate_etag(svg_path: str, width: int, height: int) -> str:
    """Cache validator over the request parameters.

    The rendered bytes are not hashed, so a changed SVG at the same path keeps
    its old tag until the client cache expires.
    """
    payload = f"{svg_path}-{width}x{height}".encode("utf-8")
    return hashlib.sha256(payload).hexdigest()[:DIGEST_LENGTH]


def quote_etag(digest: str) -> str:
    return f'"{digest}"'
