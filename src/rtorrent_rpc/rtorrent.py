"""rTorrent operations over XML-RPC."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, IntEnum

from .client import Client
from .config import ClientConfig
from .schema import Field, FieldSchema, FieldType, find_record
from .value import Kind, Value

logger = logging.getLogger(__name__)

# rTorrent reports d.ratio= as an integer scaled by 1000 (1.5 -> 1500). This is
# a fixed protocol convention; the decoder cannot detect a different scaling.
RATIO_SCALE = 1000


class View(str, Enum):
    MAIN = "main"
    STARTED = "started"
    STOPPED = "stopped"
    HASHING = "hashing"
    SEEDING = "seeding"


class FilePriority(IntEnum):
    OFF = 0
    NORMAL = 1
    HIGH = 2


@dataclass(frozen=True)
class Torrent:
    """A torrent as listed by d.multicall2. Fields not requested stay None."""

    hash: str
    name: str | None = None
    path: str | None = None
    label: str | None = None
    size: int | None = None
    completed: bool | None = None
    completed_bytes: int | None = None
    ratio: float | None = None
    state: int | None = None
    is_active: bool | None = None
    down_rate: int | None = None
    up_rate: int | None = None
    peers_connected: int | None = None
    peers_not_connected: int | None = None
    peers_complete: int | None = None
    peers_accounted: int | None = None
    hashing: int | None = None
    chunk_size: int | None = None
    is_multi_file: bool | None = None


@dataclass(frozen=True)
class File:
    """A file inside a torrent; `index` is its position in f.multicall output."""

    path: str
    size: int | None = None
    priority: int | None = None
    index: int | None = None
    chunks_completed: int | None = None
    total_chunks: int | None = None


TORRENT_LIST_FIELDS = FieldSchema.of(
    Field("d.name=", "name"),
    Field("d.size_bytes=", "size", FieldType.INT),
    Field("d.hash=", "hash"),
    Field("d.custom1=", "label"),
    Field("d.base_path=", "path"),
    Field("d.is_active=", "is_active", FieldType.BOOL),
    Field("d.complete=", "completed", FieldType.BOOL),
    Field("d.ratio=", "ratio", FieldType.FLOAT, scale=RATIO_SCALE),
)

TORRENT_DETAIL_FIELDS = FieldSchema.of(
    Field("d.hash=", "hash"),
    Field("d.complete=", "completed", FieldType.BOOL),
    Field("d.completed_bytes=", "completed_bytes", FieldType.INT),
    Field("d.down.rate=", "down_rate", FieldType.INT),
    Field("d.up.rate=", "up_rate", FieldType.INT),
    Field("d.ratio=", "ratio", FieldType.FLOAT, scale=RATIO_SCALE),
    Field("d.size_bytes=", "size", FieldType.INT),
    Field("d.state=", "state", FieldType.INT),
    Field("d.peers_connected=", "peers_connected", FieldType.INT),
    Field("d.name=", "name"),
    Field("d.base_path=", "path"),
    Field("d.hashing=", "hashing", FieldType.INT),
    Field("d.chunk_size=", "chunk_size", FieldType.INT),
    Field("d.peers_not_connected=", "peers_not_connected", FieldType.INT),
    Field("d.peers_accounted=", "peers_accounted", FieldType.INT),
    Field("d.peers_complete=", "peers_complete", FieldType.INT),
    Field("d.is_multi_file=", "is_multi_file", FieldType.BOOL),
)

FILE_FIELDS = FieldSchema.of(
    Field("f.path=", "path"),
    Field("f.size_bytes=", "size", FieldType.INT),
    Field("f.priority=", "priority", FieldType.INT),
    Field("f.completed_chunks=", "chunks_completed", FieldType.INT),
    Field("f.size_chunks=", "total_chunks", FieldType.INT),
)


def _scalar(v: Value) -> Value:
    # Some rTorrent builds wrap scalar results in a one-element array.
    if v.kind is Kind.ARRAY and len(v.data) == 1:
        return v.data[0]
    return v


class RTorrent:
    """Client for one rTorrent instance."""

    def __init__(self, client: Client):
        self._client = client

    @classmethod
    def from_config(cls, config: ClientConfig) -> "RTorrent":
        return cls(Client.from_url(config.endpoint, insecure=config.insecure, timeout=config.timeout))

    @property
    def client(self) -> Client:
        return self._client

    # Instance information.

    def ip(self) -> str:
        return _scalar(self._client.call("network.bind_address")).as_str()

    def name(self) -> str:
        return _scalar(self._client.call("system.hostname")).as_str()

    def down_total(self) -> int:
        """Total bytes downloaded."""
        return _scalar(self._client.call("throttle.global_down.total")).as_int()

    def up_total(self) -> int:
        """Total bytes uploaded."""
        return _scalar(self._client.call("throttle.global_up.total")).as_int()

    def down_rate(self) -> int:
        """Current download rate (bytes/s)."""
        return _scalar(self._client.call("throttle.global_down.rate")).as_int()

    def up_rate(self) -> int:
        """Current upload rate (bytes/s)."""
        return _scalar(self._client.call("throttle.global_up.rate")).as_int()

    def list_methods(self) -> list[str]:
        return [v.as_str() for v in self._client.call("system.listMethods").as_array()]

    def method_help(self, method: str) -> str:
        return _scalar(self._client.call("system.methodHelp", method)).as_str()

    def shutdown(self) -> None:
        self._client.call("system.shutdown.normal")

    def set_session_directory(self, path: str) -> None:
        self._client.call("session.path.set", path)

    # Torrents.

    def get_torrents(self, view: View | str = View.MAIN) -> list[Torrent]:
        return self._client.multicall(
            "d.multicall2", ("", View(view).value), TORRENT_LIST_FIELDS, Torrent
        )

    def get_torrent(self, info_hash: str) -> Torrent:
        """Return the torrent with the given info-hash.

        There is no multicall form that selects a single hash, so this lists
        the whole main view and scans it (O(n) in the number of torrents).
        Raises NotFoundError when no torrent matches.
        """
        torrents = self._client.multicall(
            "d.multicall2", ("", View.MAIN.value), TORRENT_DETAIL_FIELDS, Torrent
        )
        return find_record(torrents, "hash", info_hash)

    def add_torrent(self, data: bytes) -> None:
        """Load a torrent from the raw contents of a .torrent file."""
        self._client.call("load.raw", "", Value.binary(data))

    def add_torrent_url(self, url: str) -> None:
        self._client.call("load.normal", "", url)

    def start(self, info_hash: str) -> None:
        self._client.call("d.start", info_hash)

    def stop(self, info_hash: str) -> None:
        self._client.call("d.stop", info_hash)

    def close(self, info_hash: str) -> None:
        self._client.call("d.close", info_hash)

    def delete(self, info_hash: str) -> None:
        """Remove the torrent from the session (data on disk is kept)."""
        self._client.call("d.erase", info_hash)

    def set_directory(self, info_hash: str, path: str) -> None:
        self._client.call("d.directory.set", info_hash, path)

    # Files.

    def get_files(self, info_hash: str) -> list[File]:
        return self._client.multicall(
            "f.multicall", (info_hash, 0), FILE_FIELDS, File, index_field="index"
        )

    def set_file_priority(self, info_hash: str, index: int, priority: int) -> None:
        if index < 0:
            raise ValueError("file index must be non-negative")
        self._client.call("f.priority.set", f"{info_hash}:f{index}", int(priority))

    def skip_all_files(self, info_hash: str) -> int:
        """Set every file of the torrent to priority OFF; return the file count."""
        files = self.get_files(info_hash)
        for i in range(len(files)):
            self.set_file_priority(info_hash, i, FilePriority.OFF)
        logger.debug("set %d file(s) of %s to priority off", len(files), info_hash)
        return len(files)
