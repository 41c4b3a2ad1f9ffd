"""rtorrent_rpc: XML-RPC codec and client for controlling rTorrent."""

from __future__ import annotations

from . import codec, errors
from .client import Client
from .codec import Fault, Response, decode_response, encode_call
from .config import ClientConfig
from .rtorrent import File, RTorrent, Torrent, View
from .schema import Field, FieldSchema, FieldType, find_record
from .transport import HTTPTransport, Transport
from .value import Kind, Value

__all__ = [
    "Client",
    "ClientConfig",
    "Fault",
    "Field",
    "FieldSchema",
    "FieldType",
    "File",
    "HTTPTransport",
    "Kind",
    "RTorrent",
    "Response",
    "Torrent",
    "Transport",
    "Value",
    "View",
    "codec",
    "decode_response",
    "encode_call",
    "errors",
    "find_record",
]
