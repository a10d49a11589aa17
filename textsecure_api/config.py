"""Server connection settings.

The base URL is chosen per client instance. Staging is the default target;
production is opt-in, either through ``PRODUCTION`` or a YAML file.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml


@dataclass(frozen=True)
class ServerConfig:
    """Connection settings for one TextSecure deployment.

    Attributes:
        url_base: HTTP(S) base URL of the service.
        attachment_host: Hostname of the storage backend that attachment
            locations point at.
        relay: Relay name advertised for this deployment.
        request_timeout: Total timeout per HTTP exchange in seconds.
    """

    url_base: str
    attachment_host: str
    relay: str
    request_timeout: float = 30.0


STAGING = ServerConfig(
    url_base="https://textsecure-service-staging.whispersystems.org",
    attachment_host="whispersystems-textsecure-attachments-staging.s3.amazonaws.com",
    relay="textsecure-service-staging.whispersystems.org",
)

PRODUCTION = ServerConfig(
    url_base="https://textsecure-service.whispersystems.org",
    attachment_host="whispersystems-textsecure-attachments.s3.amazonaws.com",
    relay="textsecure-service.whispersystems.org",
)


def _load_yaml(path: Path) -> dict[str, Any]:
    """Load YAML mapping from file."""
    if not path.exists():
        raise FileNotFoundError(f"Server config not found: {path}")
    with path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Server config must be a mapping: {path}")
    return data


def load_server_config(path: Path | str, *, base: ServerConfig = STAGING) -> ServerConfig:
    """Load server settings from YAML, filling omitted keys from ``base``.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is not a mapping or has unknown keys.
    """
    data = _load_yaml(Path(path))
    known = {f.name for f in fields(ServerConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown server config keys: {', '.join(unknown)}")
    if "request_timeout" in data:
        try:
            data["request_timeout"] = float(data["request_timeout"])
        except (TypeError, ValueError) as err:
            raise ValueError(
                f"request_timeout must be a number, got {data['request_timeout']!r}"
            ) from err
    return replace(base, **data)
