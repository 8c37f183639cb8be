from __future__ import annotations

"""
Network Communication Infrastructure.

Facade over the HTTP transport used for manifests, remote documents,
mesh downloads and existence probes.
"""

from urdf_assembler.infra.network.common import DEFAULT_TIMEOUT, USER_AGENT
from urdf_assembler.infra.network.http_client import (
    fetch_bytes,
    fetch_json,
    fetch_text,
    probe_exists,
)

__all__ = [
    "DEFAULT_TIMEOUT",
    "USER_AGENT",
    "fetch_text",
    "fetch_bytes",
    "fetch_json",
    "probe_exists",
]
