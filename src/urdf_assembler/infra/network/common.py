from __future__ import annotations

from typing import Dict

USER_AGENT = "URDFAssembler-Client/1.0.0"
DEFAULT_TIMEOUT = 10
PROBE_TIMEOUT = 5


def default_headers() -> Dict[str, str]:
    """Headers attached to every outgoing request."""
    return {"User-Agent": USER_AGENT}
