"""Synchronous XML-RPC call pipeline: encode, exchange, decode."""

from __future__ import annotations

import logging
from typing import Any, Sequence, TypeVar

from . import codec
from .errors import DecodeError, FaultError
from .schema import FieldSchema
from .transport import HTTPTransport, Transport
from .value import Value

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Client:
    """XML-RPC client bound to one transport.

    Holds no state across calls; independent clients (different endpoints or
    TLS policies) can coexist in one process.
    """

    def __init__(self, transport: Transport):
        self._transport = transport

    @classmethod
    def from_url(cls, url: str, *, insecure: bool = False, timeout: float | None = None) -> "Client":
        return cls(HTTPTransport(url, insecure=insecure, timeout=timeout))

    @property
    def transport(self) -> Transport:
        return self._transport

    def call(self, method: str, *args: Any) -> Value:
        """Invoke `method` and return its result.

        Raises EncodeError before any I/O if the call cannot be serialized,
        TransportError if the exchange fails, DecodeError if the response is
        malformed, and FaultError if the daemon reports a fault.
        """
        payload = codec.encode_call(method, args)
        logger.debug("call %s (%d args) via %s", method, len(args), self._transport.describe())
        raw = self._transport.roundtrip(payload)
        resp = codec.decode_response(raw)
        if resp.fault is not None:
            logger.debug("call %s -> fault %d: %s", method, resp.fault.code, resp.fault.message)
            raise FaultError(resp.fault)
        if resp.value is None:
            raise DecodeError("missing value in successful response")
        logger.debug("call %s -> %s", method, resp.value.kind.value)
        return resp.value

    def multicall(
        self,
        method: str,
        target: Sequence[Any],
        schema: FieldSchema,
        record_type: type[T],
        *,
        index_field: str | None = None,
    ) -> list[T]:
        """Run a multicall and decode its rows into `record_type` records.

        `target` holds the leading arguments that select the entity set (for
        `d.multicall2`: `("", view)`); the schema's selectors follow them in
        schema order.
        """
        result = self.call(method, *target, *schema.selectors())
        return schema.decode(result, record_type, index_field=index_field)
