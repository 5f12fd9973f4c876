"""
vPLC session state

A session holds the bearer token obtained from a vPLC login. Each instance
collector owns exactly one session and is the only writer.

Author: uldyssian-sh
License: MIT
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


@dataclass
class VPLCSession:
    """Authentication state for one vPLC instance"""
    instance: str
    token: Optional[str] = field(default=None, repr=False)
    authenticated: bool = False
    established_at: Optional[datetime] = None
    invalidated_reason: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        """True when a token is held and has not been invalidated"""
        return self.authenticated and bool(self.token)

    def establish(self, token: str) -> None:
        """Store a freshly issued token"""
        self.token = token
        self.authenticated = True
        self.established_at = datetime.now(timezone.utc)
        self.invalidated_reason = None

    def invalidate(self, reason: str = "") -> None:
        """Drop the token so the next cycle logs in again"""
        self.token = None
        self.authenticated = False
        self.established_at = None
        self.invalidated_reason = reason or None
