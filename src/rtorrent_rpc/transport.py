"""Transports carrying XML-RPC documents to the daemon."""

from __future__ import annotations

import http.client
import logging
import ssl
import urllib.error
import urllib.request
from typing import Protocol

from .errors import TransportError

logger = logging.getLogger(__name__)

USER_AGENT = "rtorrent-rpc"


class Transport(Protocol):
    def roundtrip(self, payload: bytes) -> bytes: ...

    def describe(self) -> str: ...


def insecure_ssl_context() -> ssl.SSLContext:
    """TLS context that accepts any certificate (test/trusted endpoints only)."""
    ctx = ssl.create_default_context()
    ctx.check_hostname = False
    ctx.verify_mode = ssl.CERT_NONE
    return ctx


class HTTPTransport:
    """POSTs request documents to an XML-RPC endpoint (e.g. `https://host/RPC2`).

    `insecure=True` disables certificate verification. A caller-built
    `opener` (proxies, auth handlers, custom TLS) replaces the default one;
    `insecure` is ignored in that case.
    """

    def __init__(
        self,
        url: str,
        *,
        insecure: bool = False,
        timeout: float | None = None,
        opener: urllib.request.OpenerDirector | None = None,
    ):
        if not url:
            raise ValueError("endpoint URL must be set")
        self._url = url
        self._timeout = timeout
        if opener is None:
            handlers = []
            if insecure:
                handlers.append(urllib.request.HTTPSHandler(context=insecure_ssl_context()))
            opener = urllib.request.build_opener(*handlers)
        self._opener = opener

    @property
    def url(self) -> str:
        return self._url

    def describe(self) -> str:
        return f"http:{self._url}"

    def roundtrip(self, payload: bytes) -> bytes:
        req = urllib.request.Request(
            self._url,
            data=payload,
            method="POST",
            headers={"Content-Type": "text/xml", "User-Agent": USER_AGENT},
        )
        kwargs = {} if self._timeout is None else {"timeout": self._timeout}
        try:
            with self._opener.open(req, **kwargs) as r:
                status = getattr(r, "status", 200)
                body = r.read()
        except urllib.error.HTTPError as e:
            raise TransportError(f"POST {self._url} failed: HTTP {e.code} {e.reason}", status=e.code) from e
        except urllib.error.URLError as e:
            raise TransportError(f"POST {self._url} failed: {e.reason}") from e
        except (OSError, http.client.HTTPException) as e:
            raise TransportError(f"POST {self._url} failed: {e}") from e

        logger.debug("POST %s -> HTTP %s (%d bytes)", self._url, status, len(body))
        if not 200 <= status < 300:
            raise TransportError(f"POST {self._url} failed: HTTP {status}", status=status)
        return body
