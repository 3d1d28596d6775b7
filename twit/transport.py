"""
HTTP Transport
Issues one HTTP request per call and reports exactly one RawResponse.
"""

import asyncio
from functools import partial
from typing import Optional

import aiohttp
import requests

from .logger import logger
from .models import RawResponse, SignedRequest


class Transport:
    """Base transport. Subclasses implement _send()."""

    async def send(self, request: SignedRequest,
                   cancel: Optional[asyncio.Event] = None) -> RawResponse:
        """
        Send a signed request.

        Args:
            request: Fully determined request
            cancel: Optional event; setting it aborts the request

        Returns:
            The raw response. Failures of the HTTP library come back as
            status 0 instead of raising.

        Raises:
            asyncio.CancelledError: if cancel was set before completion
        """
        if cancel is None:
            return await self._send(request)
        if cancel.is_set():
            raise asyncio.CancelledError("request cancelled before it was sent")

        request_task = asyncio.ensure_future(self._send(request))
        cancel_task = asyncio.ensure_future(cancel.wait())
        try:
            done, _ = await asyncio.wait({request_task, cancel_task},
                                         return_when=asyncio.FIRST_COMPLETED)
        finally:
            cancel_task.cancel()
            if not request_task.done():
                request_task.cancel()
        if request_task in done:
            return request_task.result()
        raise asyncio.CancelledError("request cancelled")

    async def _send(self, request: SignedRequest) -> RawResponse:
        raise NotImplementedError

    async def close(self):
        """Release any connection resources."""

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.close()


class AiohttpTransport(Transport):
    """Transport backed by an aiohttp ClientSession."""

    def __init__(self, session: Optional[aiohttp.ClientSession] = None):
        """Use the given session, or open one lazily and own it."""
        self.session = session
        self._owns_session = session is None

    def _get_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession()
            self._owns_session = True
        return self.session

    async def _send(self, request: SignedRequest) -> RawResponse:
        session = self._get_session()
        try:
            async with session.request(
                request.method,
                request.url,
                headers=request.headers,
                data=request.body or None,
            ) as resp:
                body = await resp.text(errors="replace")
                return RawResponse(status=resp.status, headers=resp.headers, body=body)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"{request.method} {request.url} failed: {e}")
            return RawResponse(status=0, headers={}, body=str(e))

    async def close(self):
        if self._owns_session and self.session is not None and not self.session.closed:
            await self.session.close()


class RequestsTransport(Transport):
    """Transport backed by a requests Session, run in the default executor."""

    def __init__(self, session: Optional[requests.Session] = None,
                 timeout: Optional[float] = None):
        self.session = session or requests.Session()
        self._owns_session = session is None
        self.timeout = timeout

    def _send_blocking(self, request: SignedRequest) -> RawResponse:
        try:
            response = self.session.request(
                request.method,
                request.url,
                headers=dict(request.headers),
                data=request.body or None,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning(f"{request.method} {request.url} failed: {e}")
            return RawResponse(status=0, headers={}, body=str(e))
        return RawResponse(status=response.status_code, headers=response.headers,
                           body=response.text)

    async def _send(self, request: SignedRequest) -> RawResponse:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(self._send_blocking, request))

    async def close(self):
        if self._owns_session:
            self.session.close()
