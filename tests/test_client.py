from __future__ import annotations

import pytest

from rtorrent_rpc import codec
from rtorrent_rpc.client import Client
from rtorrent_rpc.errors import DecodeError, EncodeError, FaultError, TransportError
from rtorrent_rpc.rtorrent import Torrent
from rtorrent_rpc.schema import Field, FieldSchema, FieldType
from rtorrent_rpc.value import Value


def test_call_returns_decoded_value(fake_client):
    client, transport = fake_client(lambda method, params: "seedbox")

    out = client.call("system.hostname")
    assert out == Value.string("seedbox")
    assert transport.calls == [("system.hostname", [])]


def test_call_sends_arguments_in_order(fake_client):
    client, transport = fake_client(lambda method, params: 0)

    client.call("f.priority.set", "ABC:f2", 1)
    method, params = transport.calls[0]
    assert method == "f.priority.set"
    assert params == [Value.string("ABC:f2"), Value.integer(1)]


def test_fault_is_raised_with_code_and_message(fake_client):
    client, _ = fake_client(lambda method, params: codec.Fault(4, "method not found"))

    with pytest.raises(FaultError) as ei:
        client.call("no.such.method")
    assert ei.value.code == 4
    assert ei.value.message == "method not found"
    assert ei.value.fault == codec.Fault(4, "method not found")


def test_malformed_response_raises_decode_error(fake_client):
    client, _ = fake_client(lambda method, params: b"<html>502 Bad Gateway</html>")

    with pytest.raises(DecodeError):
        client.call("system.hostname")


def test_encode_error_happens_before_any_exchange(fake_client):
    client, transport = fake_client(lambda method, params: 0)

    with pytest.raises(EncodeError):
        client.call("d.start", object())
    assert transport.calls == []


def test_transport_error_propagates():
    class Down:
        def roundtrip(self, payload: bytes) -> bytes:
            raise TransportError("connection refused")

        def describe(self) -> str:
            return "down"

    with pytest.raises(TransportError, match=r"connection refused"):
        Client(Down()).call("system.hostname")


def test_multicall_appends_selectors_after_target(fake_client):
    schema = FieldSchema.of(
        Field("d.hash=", "hash"),
        Field("d.complete=", "completed", FieldType.BOOL),
    )
    client, transport = fake_client(lambda method, params: [["H1", 1], ["H2", 0]])

    out = client.multicall("d.multicall2", ("", "main"), schema, Torrent)
    assert out == [Torrent(hash="H1", completed=True), Torrent(hash="H2", completed=False)]

    method, params = transport.calls[0]
    assert method == "d.multicall2"
    assert [p.to_python() for p in params] == ["", "main", "d.hash=", "d.complete="]


def test_multicall_fault_is_not_decoded_as_rows(fake_client):
    schema = FieldSchema.of(Field("d.hash=", "hash"))
    client, _ = fake_client(lambda method, params: codec.Fault(-501, "Unsupported target type found."))

    with pytest.raises(FaultError, match=r"-501"):
        client.multicall("d.multicall2", ("", "nosuchview"), schema, Torrent)
