"""
Authentication Module
Credential storage, authorization state and OAuth 1.0a request signing.
"""

import enum
import re
from dataclasses import dataclass, replace
from typing import Any, Iterable, Optional, Tuple
from urllib.parse import quote, urlencode

from oauthlib import oauth1

from .config import Config
from .models import SignedRequest
from .utils import filter_oauth_params, normalize_headers, normalize_params, stringify

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
SIGNABLE_METHODS = ("GET", "POST", "DELETE")

# Access tokens are prefixed with the numeric id of the user they belong to.
ACCESS_TOKEN_PATTERN = re.compile(r"^[0-9]+-")


class AuthState(enum.IntEnum):
    UNREQUESTED = 0  # no token yet
    PENDING = 1  # holding a request token
    AUTHORIZED = 2  # holding an access token


@dataclass(frozen=True)
class Credentials:
    """Consumer key pair plus the token pair, once one has been obtained."""

    consumer_key: str
    consumer_secret: str
    token: Optional[str] = None
    token_secret: Optional[str] = None

    def __post_init__(self):
        if not self.consumer_key or not self.consumer_secret:
            raise ValueError("Missing required consumer key or consumer secret")

    @classmethod
    def from_env(cls, consumer_key: Optional[str] = None,
                 consumer_secret: Optional[str] = None) -> "Credentials":
        """
        Build credentials, falling back to the environment.

        Args:
            consumer_key: Consumer key (or from env TWIT_CONSUMER_KEY)
            consumer_secret: Consumer secret (or from env TWIT_CONSUMER_SECRET)

        The saved token pair is restored from TWIT_ACCESS_TOKEN and
        TWIT_ACCESS_SECRET when both are set.
        """
        token, token_secret = Config.TWIT_ACCESS_TOKEN, Config.TWIT_ACCESS_SECRET
        if not (token and token_secret):
            token = token_secret = None
        return cls(
            consumer_key=consumer_key or Config.TWIT_CONSUMER_KEY,
            consumer_secret=consumer_secret or Config.TWIT_CONSUMER_SECRET,
            token=token,
            token_secret=token_secret,
        )

    def with_token(self, token: Optional[str], token_secret: Optional[str]) -> "Credentials":
        return replace(self, token=token, token_secret=token_secret)

    def without_token(self) -> "Credentials":
        return replace(self, token=None, token_secret=None)

    @property
    def auth_state(self) -> AuthState:
        if self.token is None:
            return AuthState.UNREQUESTED
        if not ACCESS_TOKEN_PATTERN.match(self.token):
            return AuthState.PENDING
        return AuthState.AUTHORIZED


class Signer:
    """Signs requests with HMAC-SHA1 through oauthlib.

    The OAuth parameters always travel in the Authorization header. Other
    parameters go to the query string for GET and to a form-encoded body
    for POST and DELETE.
    """

    def __init__(self, credentials: Credentials):
        self.credentials = credentials

    def _oauth_client(self, callback_uri: Optional[str] = None,
                      verifier: Optional[str] = None) -> oauth1.Client:
        creds = self.credentials
        return oauth1.Client(
            creds.consumer_key,
            client_secret=creds.consumer_secret,
            resource_owner_key=creds.token,
            resource_owner_secret=creds.token_secret,
            callback_uri=callback_uri,
            verifier=verifier,
            signature_method=oauth1.SIGNATURE_HMAC_SHA1,
            signature_type=oauth1.SIGNATURE_TYPE_AUTH_HEADER,
        )

    def sign(self, method: str, url: str, params: Iterable[Tuple[str, Any]] = (),
             headers: Any = ()) -> SignedRequest:
        """
        Sign a request.

        Args:
            method: GET, POST or DELETE
            url: Absolute endpoint URL without a query string
            params: (name, value) request parameters. oauth_callback and
                oauth_verifier are moved into the Authorization header, other
                oauth_* names are dropped.
            headers: Extra request headers

        Returns:
            The signed request

        Raises:
            ValueError: for methods other than GET, POST and DELETE
        """
        method = method.upper()
        if method not in SIGNABLE_METHODS:
            raise ValueError(f"Cannot sign a {method} request")

        params = normalize_params(params)
        oauth_params = {str(name): stringify(value) for name, value in params
                        if str(name).startswith("oauth_")}
        plain_params = filter_oauth_params(params)
        client = self._oauth_client(
            callback_uri=oauth_params.get("oauth_callback"),
            verifier=oauth_params.get("oauth_verifier"),
        )

        extra_headers = dict(normalize_headers(headers))
        encoded = urlencode(plain_params, quote_via=quote)
        if method == "GET":
            uri = f"{url}?{encoded}" if encoded else url
            uri, signed_headers, body = client.sign(uri, http_method=method,
                                                    headers=extra_headers)
        else:
            extra_headers["Content-Type"] = FORM_CONTENT_TYPE
            uri, signed_headers, body = client.sign(url, http_method=method,
                                                    body=encoded, headers=extra_headers)
        return SignedRequest(
            method=method,
            url=uri,
            headers=list(signed_headers.items()),
            body=body if method != "GET" else None,
        )
