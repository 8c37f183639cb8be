from __future__ import annotations

"""
Remote Resource Transport.

Thin wrappers over 'requests' for the four kinds of traffic the assembler
produces: document text, mesh bytes, JSON listings and existence probes.
None of these helpers raise on transport failure; they log and return a
sentinel so that callers can degrade per resource.
"""

import logging
from typing import Any, Optional

import requests

from urdf_assembler.infra.network.common import (
    DEFAULT_TIMEOUT,
    PROBE_TIMEOUT,
    default_headers,
)

logger = logging.getLogger(__name__)


def fetch_text(url: str, timeout: float = DEFAULT_TIMEOUT) -> Optional[str]:
    """Download a remote document as text, or None on any failure."""
    logger.debug(f"Network: GET {url}")
    try:
        response = requests.get(url, headers=default_headers(), timeout=timeout)
        response.raise_for_status()
        return response.text
    except requests.exceptions.Timeout:
        logger.warning(f"Network: Timed out after {timeout}s fetching {url}")
    except requests.exceptions.RequestException as e:
        logger.error(f"Network: Failed to fetch {url}: {e}")
    return None


def fetch_bytes(url: str, timeout: float = DEFAULT_TIMEOUT) -> Optional[bytes]:
    """Download a remote binary (mesh, texture), or None on any failure."""
    logger.debug(f"Network: GET (binary) {url}")
    try:
        response = requests.get(url, headers=default_headers(), timeout=timeout)
        response.raise_for_status()
        return response.content
    except requests.exceptions.Timeout:
        logger.warning(f"Network: Timed out after {timeout}s fetching {url}")
    except requests.exceptions.RequestException as e:
        logger.error(f"Network: Failed to fetch {url}: {e}")
    return None


def fetch_json(
        url: str,
        timeout: float = DEFAULT_TIMEOUT,
        require_json_content_type: bool = False,
) -> Optional[Any]:
    """
    Download and decode a JSON document.

    Args:
        url: Target URL.
        timeout: Request timeout in seconds.
        require_json_content_type: Reject responses whose Content-Type does
            not mention JSON. Static hosts commonly answer unknown paths with
            an HTML index page and status 200.

    Returns:
        Optional[Any]: Decoded payload, or None if unavailable or malformed.
    """
    logger.debug(f"Network: GET (json) {url}")
    try:
        response = requests.get(url, headers=default_headers(), timeout=timeout)
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        logger.debug(f"Network: JSON resource unavailable at {url}: {e}")
        return None

    if require_json_content_type:
        content_type = response.headers.get("content-type", "")
        if "json" not in content_type.lower():
            logger.debug(f"Network: {url} answered with non-JSON content type '{content_type}'")
            return None

    try:
        return response.json()
    except ValueError:
        logger.warning(f"Network: Malformed JSON received from {url}")
        return None


def probe_exists(url: str, timeout: float = PROBE_TIMEOUT) -> bool:
    """
    Issue a HEAD request to check that a remote resource is fetchable.

    Returns:
        bool: True for a 2xx/3xx answer, False on error statuses or transport failure.
    """
    try:
        response = requests.head(
            url, headers=default_headers(), timeout=timeout, allow_redirects=True
        )
    except requests.exceptions.RequestException as e:
        logger.warning(f"Network: Existence probe failed for {url}: {e}")
        return False

    if not response.ok:
        logger.warning(f"Network: Resource not found ({response.status_code}): {url}")
        return False
    return True
