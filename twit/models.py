"""Request, response and token types passed between the client layers."""

import time
from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional, Tuple

Param = Tuple[str, str]


@dataclass
class ApiRequest:
    """An API call before signing. Built fresh for every call."""

    method: str
    path: str
    params: List[Param] = field(default_factory=list)
    headers: List[Param] = field(default_factory=list)


@dataclass
class SignedRequest:
    """A fully determined HTTP request, ready for the transport."""

    method: str
    url: str
    headers: List[Param] = field(default_factory=list)
    body: Optional[str] = None


@dataclass
class RawResponse:
    """What the transport saw. Status 0 means no response was received."""

    status: int
    headers: object = None
    body: Optional[str] = None


@dataclass
class RateLimitStatus:
    """API usage stats reported by the X-Ratelimit-* and X-Runtime headers."""

    limit: int = 1
    remaining: int = 1
    reset: int = field(default_factory=lambda: int(time.time()))
    runtime: float = 0.0


class AuthTokens(NamedTuple):
    """Authorized token pair, for the application to save."""
    oauth_token: str
    oauth_token_secret: str


class AccessTokenResult(NamedTuple):
    """Identity returned with a freshly exchanged access token."""
    user_id: Optional[str]
    screen_name: Optional[str]
