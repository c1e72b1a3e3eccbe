"""
User model.

Authentication is out of scope; the API resolves every request to a fixed
development user.
"""

from typing import Optional

from pydantic import BaseModel


class User(BaseModel):
    """Authenticated user as seen by API handlers."""

    id: str
    email: Optional[str] = None
    display_name: Optional[str] = None
