"""
Twitter API Client
Main client for the Twitter REST API: authorization flow and endpoints.
"""

import asyncio
import re
from typing import Any, Mapping, Optional, Union
from urllib.parse import urlencode

from oauthlib.common import urldecode

from .auth import SIGNABLE_METHODS, AuthState, Credentials, Signer
from .config import ClientOptions
from .errors import ErrorCode, coerce_error_code, error_for_status
from .logger import logger
from .models import (AccessTokenResult, ApiRequest, AuthTokens, RateLimitStatus,
                     RawResponse, SignedRequest)
from .transport import AiohttpTransport, Transport
from .utils import normalize_headers, normalize_params, update_rate_limit

# Response body, True for an empty successful response, False on failure.
ApiResult = Union[str, bool]

OOB_CALLBACK = "oob"
PIN_PATTERN = re.compile(r"[0-9]+")


class TwitClient:
    """Twitter API client.

    Every API method is a coroutine returning the raw response body on
    success and False on failure. After a failure, get_last_error() tells
    what went wrong.
    """

    def __init__(self, consumer_key: str, consumer_secret: str,
                 options: Union[ClientOptions, Mapping[str, Any], None] = None, *,
                 transport: Optional[Transport] = None, **overrides):
        """
        Initialize the client.

        Args:
            consumer_key: OAuth application consumer key
            consumer_secret: OAuth application consumer secret
            options: ClientOptions or a mapping of option overrides
            transport: HTTP transport; an AiohttpTransport by default
            **overrides: Individual option overrides

        Raises:
            ValueError: if the consumer key or secret is missing
        """
        self.credentials = Credentials(consumer_key, consumer_secret)
        self.opts = ClientOptions.build(options, **overrides)
        self.transport = transport if transport is not None else AiohttpTransport()

        protocol = "https" if self.opts.use_ssl else "http"
        self.api_url = f"{protocol}://{self.opts.api_base}/"

        self.rate_limit = RateLimitStatus()
        self._last_error = ErrorCode.NONE
        self._last_error_message = ""

    @classmethod
    def from_env(cls, transport: Optional[Transport] = None, **overrides) -> "TwitClient":
        """Build a client from TWIT_* environment settings."""
        credentials = Credentials.from_env()
        client = cls(credentials.consumer_key, credentials.consumer_secret,
                     ClientOptions.from_env(), transport=transport, **overrides)
        if credentials.token:
            client.restore_auth_tokens(credentials.token, credentials.token_secret)
        return client

    async def close(self):
        await self.transport.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    def log(self, message: Any):
        """Debug log. Silent unless the client was created with debug=True."""
        if not self.opts.debug:
            return
        if self.opts.logging_function is not None:
            self.opts.logging_function(message)
        else:
            logger.info(message)

    def api_method_url(self, endpoint: str) -> str:
        """Full URL of an API method, e.g. 'oauth/authenticate'."""
        return self.api_url + endpoint

    def _versioned(self, path: str) -> str:
        return f"{self.opts.api_version}/{path}"

    # Errors

    def _set_error(self, err: Any, message: Optional[str] = None):
        code = coerce_error_code(err)
        if code is None:
            self.log(f"Tried to set an error code that was invalid: {err!r}")
            code, message = ErrorCode.ERRONEOUS_ERROR, None
        self._last_error = code
        self._last_error_message = message or ""

    def get_last_error(self) -> ErrorCode:
        """Error code of the last failed call. Advisory under concurrency."""
        return self._last_error

    def get_last_error_message(self) -> str:
        """Raw description of the last error, usually the response body."""
        return self._last_error_message

    def _assert_auth(self) -> bool:
        if self.is_authed():
            return True
        self._set_error(ErrorCode.AUTH_REQUIRED)
        return False

    # HTTP

    async def http_request(self, url: str, method: str, headers: Any, body: Optional[str],
                           *, cancel: Optional[asyncio.Event] = None) -> ApiResult:
        """
        Make an HTTP request and dispatch its response.

        Override this, or pass a custom transport, to use another HTTP
        primitive.

        Args:
            url: Absolute URL
            method: HTTP method
            headers: (name, value) pairs or a mapping
            body: Request body, if any
            cancel: Optional event that aborts the request when set

        Returns:
            Response body, True for an empty 200 response, False on failure
        """
        request_headers = [("User-Agent", self.opts.user_agent)]
        request_headers.extend(normalize_headers(headers, log=self.log))
        request = SignedRequest(method=method, url=url, headers=request_headers, body=body)
        self.log(f"{method} {url}")
        raw = await self.transport.send(request, cancel=cancel)
        return self._handle_http_response(raw)

    def _handle_http_response(self, raw: RawResponse) -> ApiResult:
        update_rate_limit(self.rate_limit, raw.headers)
        body = raw.body if raw.body is not None else ""

        if raw.status == 200:
            return body if body != "" else True
        self.log(f"HTTP {raw.status}: {body}")
        self._set_error(error_for_status(raw.status), body)
        return False

    async def _oauth_request(self, request: ApiRequest,
                             cancel: Optional[asyncio.Event] = None,
                             credentials: Optional[Credentials] = None) -> ApiResult:
        method = request.method.upper()
        if method not in SIGNABLE_METHODS:
            self._set_error(ErrorCode.INVALID_METHOD, f"Unsupported HTTP method {request.method}")
            return False
        signed = Signer(credentials or self.credentials).sign(
            method,
            self.api_method_url(request.path),
            request.params,
            request.headers,
        )
        return await self.http_request(signed.url, signed.method, signed.headers,
                                       signed.body, cancel=cancel)

    async def _endpoint(self, method: str, path: str, opts: Any = None,
                        extra: Any = None, cancel: Optional[asyncio.Event] = None) -> ApiResult:
        if not self._assert_auth():
            return False
        params = normalize_params(opts, log=self.log) + normalize_params(extra, log=self.log)
        return await self._oauth_request(
            ApiRequest(method=method, path=self._versioned(path), params=params),
            cancel=cancel,
        )

    # Authorization

    def auth_state(self) -> AuthState:
        return self.credentials.auth_state

    def is_authed(self) -> bool:
        """Are access tokens in place so we can act on the user's behalf?"""
        return self.auth_state() == AuthState.AUTHORIZED

    def _store_tokens(self, rsp: str) -> Optional[Mapping[str, str]]:
        try:
            values = dict(urldecode(rsp))
        except ValueError:
            values = {}
        if not values.get("oauth_token") or not values.get("oauth_token_secret"):
            self._set_error(ErrorCode.HTTP_UNKNOWN, f"Malformed token response: {rsp}")
            return None
        self.credentials = self.credentials.with_token(values["oauth_token"],
                                                       values["oauth_token_secret"])
        return values

    async def _request_token(self, cancel: Optional[asyncio.Event] = None) -> bool:
        # A request token is asked for with the consumer keys alone.
        rsp = await self._oauth_request(
            ApiRequest(
                method="POST",
                path="oauth/request_token",
                params=[("oauth_callback", self.opts.callback_url)],
            ),
            cancel=cancel,
            credentials=self.credentials.without_token(),
        )
        if rsp is False or rsp is True:
            if rsp is True:
                self._set_error(ErrorCode.HTTP_UNKNOWN, "Empty token response")
            return False
        return self._store_tokens(rsp) is not None

    def _token_url(self, endpoint: str) -> str:
        return self.api_method_url(endpoint) + "?" + urlencode({"oauth_token": self.credentials.token})

    async def get_authorization_url(self, *, cancel: Optional[asyncio.Event] = None):
        """
        Obtain a request token and build the URL where the user authorizes it.

        Returns:
            The oauth/authorize URL to send the user to, or False
        """
        if not await self._request_token(cancel=cancel):
            return False
        return self._token_url("oauth/authorize")

    async def get_authentication_url(self, *, cancel: Optional[asyncio.Event] = None):
        """
        Like get_authorization_url(), for 'Sign in with Twitter'.

        Only web applications can authenticate, so this fails with
        DESKTOP_CANNOT_AUTHENTICATE for out-of-band clients.
        """
        if self.opts.callback_url == OOB_CALLBACK:
            self._set_error(ErrorCode.DESKTOP_CANNOT_AUTHENTICATE)
            return False
        if not await self._request_token(cancel=cancel):
            return False
        return self._token_url("oauth/authenticate")

    async def auth_access_token(self, oauth_verifier: Any, *,
                                cancel: Optional[asyncio.Event] = None):
        """
        Exchange the request token for an access token.

        Args:
            oauth_verifier: oauth_verifier from the authorize callback, or
                the PIN for out-of-band clients

        Returns:
            AccessTokenResult for the authorized user, or False
        """
        verifier = str(oauth_verifier).strip() if oauth_verifier is not None else ""
        if self.opts.callback_url == OOB_CALLBACK and not PIN_PATTERN.fullmatch(verifier):
            self._set_error(ErrorCode.OOB_PIN_NAN, f"Not a numeric PIN: {oauth_verifier!r}")
            return False

        rsp = await self._oauth_request(
            ApiRequest(
                method="POST",
                path="oauth/access_token",
                params=[("oauth_verifier", verifier)],
            ),
            cancel=cancel,
        )
        if rsp is False or rsp is True:
            if rsp is True:
                self._set_error(ErrorCode.HTTP_UNKNOWN, "Empty token response")
            return False
        values = self._store_tokens(rsp)
        if values is None:
            return False
        return AccessTokenResult(user_id=values.get("user_id"),
                                 screen_name=values.get("screen_name"))

    def get_auth_tokens(self):
        """The authorized token pair for saving, or False if not authorized."""
        if not self._assert_auth():
            return False
        return AuthTokens(oauth_token=self.credentials.token,
                          oauth_token_secret=self.credentials.token_secret)

    def restore_auth_tokens(self, oauth_token: str, oauth_token_secret: str):
        """Restore a previously authorized user from saved tokens."""
        self.credentials = self.credentials.with_token(oauth_token, oauth_token_secret)

    def clear_auth_tokens(self):
        """Sign out: forget the token pair."""
        self.credentials = self.credentials.without_token()

    # Timelines

    async def statuses_home_timeline(self, opts=None, *, cancel=None) -> ApiResult:
        """
        statuses/home_timeline: the authorized user's main timeline.

        Options: since_id, max_id, count, page, trim_user, include_rts,
        include_entities.
        """
        return await self._endpoint("GET", "statuses/home_timeline.json", opts, cancel=cancel)

    async def statuses_friends_timeline(self, opts=None, *, cancel=None) -> ApiResult:
        """
        statuses/friends_timeline: like the home timeline, but only includes
        retweets when include_rts is set.
        """
        return await self._endpoint("GET", "statuses/friends_timeline.json", opts, cancel=cancel)

    async def statuses_user_timeline(self, opts=None, *, cancel=None) -> ApiResult:
        """
        statuses/user_timeline: a user's timeline.

        Options: user_id, screen_name, since_id, max_id, count, page,
        trim_user, include_rts, include_entities.
        """
        return await self._endpoint("GET", "statuses/user_timeline.json", opts, cancel=cancel)

    async def statuses_mentions(self, opts=None, *, cancel=None) -> ApiResult:
        """statuses/mentions: tweets mentioning the authorized user."""
        return await self._endpoint("GET", "statuses/mentions.json", opts, cancel=cancel)

    async def statuses_retweeted_by_user(self, opts=None, *, cancel=None) -> ApiResult:
        """statuses/retweeted_by_me: the authorized user's retweets."""
        return await self._endpoint("GET", "statuses/retweeted_by_me.json", opts, cancel=cancel)

    async def statuses_retweeted_to_user(self, opts=None, *, cancel=None) -> ApiResult:
        """statuses/retweeted_to_me: retweets by users the authorized user follows."""
        return await self._endpoint("GET", "statuses/retweeted_to_me.json", opts, cancel=cancel)

    async def statuses_retweets_of_user(self, opts=None, *, cancel=None) -> ApiResult:
        """statuses/retweets_of_me: the authorized user's tweets that others retweeted."""
        return await self._endpoint("GET", "statuses/retweets_of_me.json", opts, cancel=cancel)

    # Statuses

    async def statuses_update(self, message: str, opts=None, *, cancel=None) -> ApiResult:
        """
        statuses/update: post a tweet.

        Args:
            message: Tweet text
            opts: in_reply_to_status_id, lat, long, place_id,
                display_coordinates, trim_user, include_entities
        """
        return await self._endpoint("POST", "statuses/update.json", opts,
                                    [("status", message)], cancel=cancel)

    async def statuses_show(self, status_id, opts=None, *, cancel=None) -> ApiResult:
        """statuses/show: a single tweet."""
        return await self._endpoint("GET", f"statuses/show/{status_id}.json", opts,
                                    [("id", status_id)], cancel=cancel)

    async def statuses_destroy(self, status_id, opts=None, *, cancel=None) -> ApiResult:
        """statuses/destroy: delete a tweet of the authorized user."""
        return await self._endpoint("POST", f"statuses/destroy/{status_id}.json", opts,
                                    [("id", status_id)], cancel=cancel)

    async def statuses_retweet(self, status_id, opts=None, *, cancel=None) -> ApiResult:
        """statuses/retweet: retweet a tweet."""
        return await self._endpoint("POST", f"statuses/retweet/{status_id}.json", opts,
                                    [("id", status_id)], cancel=cancel)

    async def statuses_retweets(self, status_id, opts=None, *, cancel=None) -> ApiResult:
        """statuses/retweets: up to count (max 100) retweets of a tweet."""
        return await self._endpoint("GET", f"statuses/retweets/{status_id}.json", opts,
                                    [("id", status_id)], cancel=cancel)

    async def statuses_retweeted_by(self, status_id, opts=None, *, cancel=None) -> ApiResult:
        """statuses/:id/retweeted_by: up to 100 users who retweeted a tweet."""
        return await self._endpoint("GET", f"statuses/{status_id}/retweeted_by.json", opts,
                                    [("id", status_id)], cancel=cancel)

    async def statuses_retweeted_by_ids(self, status_id, opts=None, *, cancel=None) -> ApiResult:
        """statuses/:id/retweeted_by/ids: ids of up to 100 users who retweeted a tweet."""
        return await self._endpoint("GET", f"statuses/{status_id}/retweeted_by/ids.json", opts,
                                    [("id", status_id)], cancel=cancel)

    # Favorites

    async def favorites_create(self, status_id, opts=None, *, cancel=None) -> ApiResult:
        """favorites/create: favorite a tweet."""
        return await self._endpoint("POST", f"favorites/create/{status_id}.json", opts,
                                    [("status_id", status_id)], cancel=cancel)
