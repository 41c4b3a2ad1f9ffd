from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_ENDPOINT = "http://localhost/RPC2"
DEFAULT_TIMEOUT = 30.0

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class ClientConfig:
    endpoint: str = DEFAULT_ENDPOINT
    insecure: bool = False
    timeout: float | None = DEFAULT_TIMEOUT

    @classmethod
    def from_env(
        cls,
        *,
        endpoint: str | None = None,
        insecure: bool | None = None,
        timeout: float | None = None,
    ) -> "ClientConfig":
        """Resolve settings: explicit arguments, then environment, then defaults.

        Override with `RTORRENT_RPC_ENDPOINT`, `RTORRENT_RPC_INSECURE` and
        `RTORRENT_RPC_TIMEOUT` (seconds).
        """
        if endpoint is None:
            endpoint = os.environ.get("RTORRENT_RPC_ENDPOINT", DEFAULT_ENDPOINT)
        endpoint = endpoint.strip()
        if not endpoint:
            raise ValueError("endpoint must be specified")

        if insecure is None:
            raw = os.environ.get("RTORRENT_RPC_INSECURE", "").strip().lower()
            if raw in _TRUE:
                insecure = True
            elif raw in _FALSE:
                insecure = False
            else:
                raise ValueError(f"invalid RTORRENT_RPC_INSECURE value: {raw!r}")

        if timeout is None:
            raw_t = os.environ.get("RTORRENT_RPC_TIMEOUT")
            if raw_t:
                try:
                    timeout = float(raw_t)
                except ValueError:
                    raise ValueError(f"invalid RTORRENT_RPC_TIMEOUT value: {raw_t!r}") from None
            else:
                timeout = DEFAULT_TIMEOUT
        if timeout <= 0:
            raise ValueError("timeout must be positive")

        return cls(endpoint=endpoint, insecure=insecure, timeout=timeout)
