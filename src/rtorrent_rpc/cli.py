from __future__ import annotations

import argparse
import dataclasses
import importlib.metadata
import json
import logging
import sys
from pathlib import Path
from typing import Any

from .config import ClientConfig
from .errors import RTorrentRPCError
from .rtorrent import RTorrent, View

logger = logging.getLogger(__name__)


def _pretty(record: Any) -> str:
    return json.dumps(dataclasses.asdict(record), indent=2)


def _connect(args: argparse.Namespace) -> RTorrent:
    config = ClientConfig.from_env(
        endpoint=args.endpoint,
        insecure=True if args.disable_cert_check else None,
        timeout=args.timeout,
    )
    logger.debug("connecting to %s (insecure=%s)", config.endpoint, config.insecure)
    return RTorrent.from_config(config)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="rtorrent-rpc", description="rTorrent XML-RPC client.")
    parser.add_argument(
        "--endpoint",
        default=None,
        help="rTorrent XML-RPC endpoint (default: RTORRENT_RPC_ENDPOINT or http://localhost/RPC2).",
    )
    parser.add_argument(
        "--disable-cert-check",
        action="store_true",
        help="Disable certificate checking on this endpoint, useful for testing.",
    )
    parser.add_argument("--timeout", type=float, default=None, help="Request timeout in seconds.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr.")

    sub = parser.add_subparsers(dest="cmd", required=True)
    sub.add_parser("version", help="Print rtorrent-rpc version.")
    sub.add_parser("get-ip", help="Print the IP this rTorrent instance binds to.")
    sub.add_parser("get-name", help="Print the hostname of this rTorrent instance.")
    sub.add_parser("get-totals", help="Print the down/up byte totals.")
    sub.add_parser("list-methods", help="List the XML-RPC methods the daemon exposes.")
    sub.add_parser("shutdown", help="Shut the daemon down.")

    p_torrents = sub.add_parser("get-torrents", help="List torrents in a view.")
    p_torrents.add_argument(
        "--view",
        default=View.MAIN.value,
        choices=[v.value for v in View],
        help="View to list (default: main).",
    )

    for cmd, help_text in (
        ("get-torrent", "Show one torrent."),
        ("get-files", "List the files of a torrent."),
        ("start-torrent", "Start a torrent."),
        ("stop-torrent", "Stop a torrent."),
        ("close-torrent", "Close a torrent."),
        ("delete-torrent", "Remove a torrent from the session."),
        ("skip-all-files", "Set every file of a torrent to priority off."),
    ):
        p = sub.add_parser(cmd, help=help_text)
        p.add_argument("--hash", required=True, help="Info-hash of the torrent.")

    p_add = sub.add_parser("add-torrent", help="Add a torrent from a .torrent file.")
    p_add.add_argument("--file", required=True, help="Path to the .torrent file.")

    p_add_url = sub.add_parser("add-torrent-url", help="Add a torrent from a URL.")
    p_add_url.add_argument("--url", required=True, help="URL of the torrent or magnet link.")

    p_prio = sub.add_parser("set-file-priority", help="Set the priority of one file.")
    p_prio.add_argument("--hash", required=True, help="Info-hash of the torrent.")
    p_prio.add_argument("--index", type=int, required=True, help="Index of the file in the torrent.")
    p_prio.add_argument("--priority", type=int, required=True, help="0 (off), 1 (normal) or 2 (high).")

    p_help = sub.add_parser("method-help", help="Print the daemon's help text for a method.")
    p_help.add_argument("--method", required=True, help="XML-RPC method name.")

    return parser


def _run(args: argparse.Namespace) -> None:
    conn = _connect(args)
    cmd = args.cmd

    if cmd == "get-ip":
        print(conn.ip())
    elif cmd == "get-name":
        print(conn.name())
    elif cmd == "get-totals":
        print(conn.down_total())
        print(conn.up_total())
    elif cmd == "list-methods":
        for m in conn.list_methods():
            print(m)
    elif cmd == "method-help":
        print(conn.method_help(args.method))
    elif cmd == "shutdown":
        conn.shutdown()
    elif cmd == "get-torrents":
        for t in conn.get_torrents(View(args.view)):
            print(_pretty(t))
    elif cmd == "get-torrent":
        print(_pretty(conn.get_torrent(args.hash)))
    elif cmd == "get-files":
        for f in conn.get_files(args.hash):
            print(_pretty(f))
    elif cmd == "start-torrent":
        conn.start(args.hash)
    elif cmd == "stop-torrent":
        conn.stop(args.hash)
    elif cmd == "close-torrent":
        conn.close(args.hash)
    elif cmd == "delete-torrent":
        conn.delete(args.hash)
    elif cmd == "skip-all-files":
        conn.skip_all_files(args.hash)
    elif cmd == "add-torrent":
        conn.add_torrent(Path(args.file).read_bytes())
    elif cmd == "add-torrent-url":
        conn.add_torrent_url(args.url)
    elif cmd == "set-file-priority":
        conn.set_file_priority(args.hash, args.index, args.priority)
    else:
        raise SystemExit(f"unknown command: {cmd}")


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.cmd == "version":
        try:
            print(importlib.metadata.version("rtorrent-rpc"))
        except importlib.metadata.PackageNotFoundError:
            # Source checkout without installed metadata.
            print("0.0.0")
        return

    try:
        _run(args)
    except (RTorrentRPCError, ValueError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        raise SystemExit(1) from None


if __name__ == "__main__":
    main()
