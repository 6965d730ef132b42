"""
FastAPI dependency functions for authentication.

- get_current_user:  routes that need an owner (listing, deletion)
- get_optional_user: routes that also serve anonymous callers (creation)
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from .service import authenticate_user

security = HTTPBasic()
optional_security = HTTPBasic(auto_error=False)


def get_current_user(credentials: HTTPBasicCredentials = Depends(security)) -> str:
    """
    Dependency that retrieves and validates the current user.

    Returns:
        str: The authenticated owner id.
    """
    return authenticate_user(credentials.username, credentials.password)


def get_optional_user(
    credentials: Optional[HTTPBasicCredentials] = Depends(optional_security),
) -> Optional[str]:
    """Owner id when credentials were sent, None for anonymous callers. Bad credentials still fail."""
    if credentials is None:
        return None
    return authenticate_user(credentials.username, credentials.password)
