"""
Who may sign in with HTTP Basic.

Maps a username to its password, stored either as-is or as a SHA-256 hex
digest (see ``auth.utils.verify_password``). A signed-in username becomes the
owner id of every short URL created under it, so renaming an entry orphans
that user's links.

Passwords come from DEMO_USER_PASSWORD / ADMIN_USER_PASSWORD when set.
"""

from typing import Dict
import os

USERS: Dict[str, str] = {
    "shortener_demo": os.getenv("DEMO_USER_PASSWORD", "shortener_demo"),
    "shortener_admin": os.getenv("ADMIN_USER_PASSWORD", "shortener_admin"),
}
