"""
Utility functions for the auth module.
"""

import hashlib
import hmac


def hash_password(password: str) -> str:
    """
    Return a SHA256 hash of the given password.

    Note:
        Demo only. Use a slow hash (passlib[bcrypt], argon2) in production.
    """
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def verify_password(stored: str, supplied: str) -> bool:
    """
    Accept either the plain stored value or its SHA-256 digest.

    Both sides are compared as UTF-8 bytes in constant time; ``compare_digest``
    rejects non-ASCII ``str`` arguments with a TypeError.
    """
    expected = stored.encode("utf-8")
    return hmac.compare_digest(expected, supplied.encode("utf-8")) or hmac.compare_digest(
        expected, hash_password(supplied).encode("utf-8")
    )
