"""Authentication context helpers."""

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True)
class AuthContext:
    """Authentication context for the current request."""

    auth_type: Literal["api_key", "insecure_dev"]
    authenticated: bool
