"""
twit-client - Twitter REST API Client
An asyncio client for the classic Twitter REST API with OAuth 1.0a signing.
"""

__version__ = "0.1.0"
__author__ = "Developer"

from .auth import AuthState, Credentials, Signer
from .client import TwitClient
from .config import ClientOptions
from .errors import ErrorCode
from .transport import AiohttpTransport, RequestsTransport, Transport

__all__ = [
    "TwitClient",
    "ClientOptions",
    "Credentials",
    "AuthState",
    "Signer",
    "ErrorCode",
    "Transport",
    "AiohttpTransport",
    "RequestsTransport",
]
