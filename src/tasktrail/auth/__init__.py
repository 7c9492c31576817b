"""Authentication for write endpoints (shared X-API-KEY secret)."""

from tasktrail.auth.context import AuthContext

API_KEY_HEADER = "X-API-KEY"

__all__ = ["API_KEY_HEADER", "AuthContext"]
