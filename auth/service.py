"""
Core authentication logic.

Validates credentials against the demo user table and returns the owner id.
"""

import logging

from fastapi import HTTPException, status

from .config import USERS
from .utils import verify_password

log = logging.getLogger(__name__)


def authenticate_user(username: str, password: str) -> str:
    """
    Authenticate a user by validating their username and password.

    Returns:
        str: The owner id (the username).

    Raises:
        HTTPException: If authentication fails (401 Unauthorized).
    """
    stored_password = USERS.get(username)

    if stored_password is None or not verify_password(stored_password, password):
        log.info("Rejected credentials for %r", username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )

    return username
