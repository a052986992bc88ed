"""Authentication module."""

from landbook.auth.context import RequestContext
from landbook.auth.jwt import create_access_token, verify_token

__all__ = [
    "RequestContext",
    "create_access_token",
    "verify_token",
]
