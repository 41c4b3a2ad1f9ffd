from __future__ import annotations

from typing import Any, Callable

import pytest

from rtorrent_rpc import codec
from rtorrent_rpc.client import Client
from rtorrent_rpc.value import Value

Handler = Callable[[str, list[Value]], Any]


class FakeTransport:
    """Answers each request through `handler(method, params)`.

    The handler returns a Python object (encoded as a normal response),
    `bytes` (sent verbatim) or a `codec.Fault` (encoded as a fault).
    """

    def __init__(self, handler: Handler):
        self.handler = handler
        self.calls: list[tuple[str, list[Value]]] = []

    def roundtrip(self, payload: bytes) -> bytes:
        method, params = codec.decode_call(payload)
        self.calls.append((method, params))
        out = self.handler(method, params)
        if isinstance(out, bytes):
            return out
        if isinstance(out, codec.Fault):
            return codec.encode_fault(out.code, out.message)
        return codec.encode_response(out)

    def describe(self) -> str:
        return "fake"


@pytest.fixture
def fake_client() -> Callable[[Handler], tuple[Client, FakeTransport]]:
    def make(handler: Handler) -> tuple[Client, FakeTransport]:
        transport = FakeTransport(handler)
        return Client(transport), transport

    return make
