from __future__ import annotations

import pytest

from rtorrent_rpc.errors import NotFoundError, SchemaMismatchError, ValueKindError
from rtorrent_rpc.rtorrent import (
    FILE_FIELDS,
    TORRENT_DETAIL_FIELDS,
    TORRENT_LIST_FIELDS,
    File,
    RTorrent,
    Torrent,
    View,
)
from rtorrent_rpc.value import Kind


def _detail_row(info_hash: str, name: str, *, complete: int = 1, ratio: int = 2500) -> list:
    # Order matches TORRENT_DETAIL_FIELDS.
    return [
        info_hash, complete, 1024, 10, 20, ratio, 2048, 1, 3, name,
        f"/data/{name}", 0, 16384, 4, 5, 6, 1,
    ]


@pytest.fixture
def rt(fake_client):
    def make(handler):
        client, transport = fake_client(handler)
        return RTorrent(client), transport

    return make


def test_get_torrents_lists_view(rt):
    rows = [
        ["Ubuntu", 4096, "AAA", "linux", "/data/Ubuntu", 1, 1, 1500],
        ["Debian", 8192, "BBB", "", "/data/Debian", 0, 0, 0],
    ]
    r, transport = rt(lambda method, params: rows)

    torrents = r.get_torrents(View.SEEDING)
    assert torrents[0] == Torrent(
        hash="AAA",
        name="Ubuntu",
        path="/data/Ubuntu",
        label="linux",
        size=4096,
        completed=True,
        ratio=1.5,
        is_active=True,
    )
    assert torrents[1].completed is False
    assert torrents[1].ratio == 0.0

    method, params = transport.calls[0]
    assert method == "d.multicall2"
    assert [p.to_python() for p in params] == ["", "seeding", *TORRENT_LIST_FIELDS.selectors()]


def test_get_torrents_accepts_view_name(rt):
    r, transport = rt(lambda method, params: [])
    assert r.get_torrents("stopped") == []
    assert transport.calls[0][1][1].as_str() == "stopped"

    with pytest.raises(ValueError):
        r.get_torrents("bogus")


def test_get_torrent_scans_main_view(rt):
    rows = [_detail_row("AAA", "one"), _detail_row("BBB", "two", complete=0, ratio=500)]
    r, transport = rt(lambda method, params: rows)

    t = r.get_torrent("BBB")
    assert t.name == "two"
    assert t.completed is False
    assert t.ratio == 0.5
    assert t.path == "/data/two"
    assert t.chunk_size == 16384
    assert t.is_multi_file is True

    _, params = transport.calls[0]
    assert [p.to_python() for p in params] == ["", "main", *TORRENT_DETAIL_FIELDS.selectors()]


def test_get_torrent_unknown_hash_is_not_found(rt):
    r, _ = rt(lambda method, params: [_detail_row("AAA", "one")])
    with pytest.raises(NotFoundError):
        r.get_torrent("zzz")


def test_get_torrent_malformed_row_is_schema_mismatch(rt):
    r, _ = rt(lambda method, params: [_detail_row("AAA", "one")[:-1]])
    with pytest.raises(SchemaMismatchError):
        r.get_torrent("AAA")


def test_get_files_sets_index(rt):
    rows = [["a.mkv", 700, 1, 10, 10], ["a.nfo", 1, 0, 0, 1]]
    r, transport = rt(lambda method, params: rows)

    files = r.get_files("AAA")
    assert files == [
        File(path="a.mkv", size=700, priority=1, index=0, chunks_completed=10, total_chunks=10),
        File(path="a.nfo", size=1, priority=0, index=1, chunks_completed=0, total_chunks=1),
    ]
    method, params = transport.calls[0]
    assert method == "f.multicall"
    assert [p.to_python() for p in params] == ["AAA", 0, *FILE_FIELDS.selectors()]


def test_scalar_results_unwrap_single_element_arrays(rt):
    answers = {
        "network.bind_address": ["10.0.0.2"],
        "system.hostname": "seedbox",
        "throttle.global_down.total": [123],
        "throttle.global_up.total": 456,
        "throttle.global_down.rate": 7,
        "throttle.global_up.rate": [8],
    }
    r, _ = rt(lambda method, params: answers[method])

    assert r.ip() == "10.0.0.2"
    assert r.name() == "seedbox"
    assert r.down_total() == 123
    assert r.up_total() == 456
    assert r.down_rate() == 7
    assert r.up_rate() == 8


def test_scalar_of_wrong_kind_raises(rt):
    r, _ = rt(lambda method, params: 42)
    with pytest.raises(ValueKindError):
        r.ip()


def test_add_torrent_sends_binary_payload(rt):
    r, transport = rt(lambda method, params: 0)
    r.add_torrent(b"d8:announce")

    method, params = transport.calls[0]
    assert method == "load.raw"
    assert params[0].as_str() == ""
    assert params[1].kind is Kind.BINARY
    assert params[1].as_bytes() == b"d8:announce"


def test_simple_commands_send_expected_methods(rt):
    r, transport = rt(lambda method, params: 0)

    r.add_torrent_url("magnet:?xt=urn:btih:AAA")
    r.start("AAA")
    r.stop("AAA")
    r.close("AAA")
    r.delete("AAA")
    r.set_directory("AAA", "/data/new")
    r.set_session_directory("/var/session")
    r.shutdown()

    sent = [(m, [p.to_python() for p in params]) for m, params in transport.calls]
    assert sent == [
        ("load.normal", ["", "magnet:?xt=urn:btih:AAA"]),
        ("d.start", ["AAA"]),
        ("d.stop", ["AAA"]),
        ("d.close", ["AAA"]),
        ("d.erase", ["AAA"]),
        ("d.directory.set", ["AAA", "/data/new"]),
        ("session.path.set", ["/var/session"]),
        ("system.shutdown.normal", []),
    ]


def test_set_file_priority_addresses_file_by_index(rt):
    r, transport = rt(lambda method, params: 0)
    r.set_file_priority("AAA", 2, 1)
    assert [p.to_python() for p in transport.calls[0][1]] == ["AAA:f2", 1]

    with pytest.raises(ValueError):
        r.set_file_priority("AAA", -1, 1)


def test_skip_all_files_turns_every_file_off(rt):
    def handler(method, params):
        if method == "f.multicall":
            return [["a", 1, 1, 0, 1], ["b", 1, 2, 0, 1], ["c", 1, 1, 0, 1]]
        return 0

    r, transport = rt(handler)
    assert r.skip_all_files("AAA") == 3
    sent = [[p.to_python() for p in params] for m, params in transport.calls if m == "f.priority.set"]
    assert sent == [["AAA:f0", 0], ["AAA:f1", 0], ["AAA:f2", 0]]


def test_list_methods_and_method_help(rt):
    answers = {
        "system.listMethods": ["d.start", "d.stop"],
        "system.methodHelp": "Start a download.",
    }
    r, transport = rt(lambda method, params: answers[method])

    assert r.list_methods() == ["d.start", "d.stop"]
    assert r.method_help("d.start") == "Start a download."
    method, params = transport.calls[1]
    assert method == "system.methodHelp"
    assert [p.to_python() for p in params] == ["d.start"]
