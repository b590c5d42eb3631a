"""One-time email verification tokens.

The plain token only ever exists in the mailed link; the database stores its
SHA-256 digest, so a leaked table cannot be replayed.
"""

import hashlib
import secrets

_TOKEN_BYTES = 32


def generate_verification_token() -> str:
    return secrets.token_urlsafe(_TOKEN_BYTES)


def hash_verification_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
