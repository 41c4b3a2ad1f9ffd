"""Domain-specific errors for rtorrent_rpc."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .codec import Fault


class RTorrentRPCError(Exception):
    """Base error for rtorrent_rpc."""


class EncodeError(RTorrentRPCError):
    """Raised when a call cannot be encoded to an XML-RPC request."""


class TransportError(RTorrentRPCError):
    """Raised when the request/response exchange with the daemon fails."""

    def __init__(self, message: str, *, status: int | None = None):
        super().__init__(message)
        self.status = status


class DecodeError(RTorrentRPCError):
    """Raised when a response cannot be decoded from XML-RPC."""

    def __init__(self, message: str, *, fragment: str | None = None):
        if fragment:
            message = f"{message}: {fragment}"
        super().__init__(message)
        self.fragment = fragment


class ValueKindError(DecodeError):
    """Raised when a Value is read through an accessor for another kind."""


class FaultError(RTorrentRPCError):
    """Raised when the daemon answers with a fault envelope."""

    def __init__(self, fault: "Fault"):
        super().__init__(f"fault {fault.code}: {fault.message}")
        self.fault = fault

    @property
    def code(self) -> int:
        return self.fault.code

    @property
    def message(self) -> str:
        return self.fault.message


class SchemaMismatchError(RTorrentRPCError):
    """Raised when a multicall response does not fit its field schema."""


class NotFoundError(RTorrentRPCError):
    """Raised when a lookup by key matches no decoded record."""
