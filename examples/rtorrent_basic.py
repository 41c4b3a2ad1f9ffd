from __future__ import annotations

from rtorrent_rpc import ClientConfig, RTorrent, View
from rtorrent_rpc.errors import FaultError, NotFoundError


def main() -> None:
    # Endpoint and TLS policy come from RTORRENT_RPC_ENDPOINT / RTORRENT_RPC_INSECURE
    # unless passed explicitly, e.g. ClientConfig.from_env(endpoint="https://host/RPC2").
    rt = RTorrent.from_config(ClientConfig.from_env())

    print("host ->", rt.name(), rt.ip())
    print("totals ->", rt.down_total(), rt.up_total())

    # --- Multicall listing (one row per torrent, decoded by position) ---
    torrents = rt.get_torrents(View.MAIN)
    for t in torrents:
        print(f"{t.hash} {t.name!r} ratio={t.ratio:.3f} complete={t.completed}")

    if not torrents:
        return

    # --- Lookup by hash (full listing + client-side scan) ---
    first = torrents[0].hash
    try:
        detail = rt.get_torrent(first)
        print("peers connected ->", detail.peers_connected)
    except NotFoundError:
        print("torrent vanished between calls")

    for f in rt.get_files(first):
        print(f"  [{f.index}] {f.path} ({f.chunks_completed}/{f.total_chunks} chunks)")

    # --- Faults are raised with the daemon's code and message ---
    try:
        rt.client.call("no.such.method")
    except FaultError as e:
        print("fault ->", e.code, e.message)


if __name__ == "__main__":
    main()
