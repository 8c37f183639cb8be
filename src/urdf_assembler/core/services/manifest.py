from __future__ import annotations

"""
Sample Manifest Service.

Discovers the robot samples offered by a host and produces the static
manifest that advertises them. Two hosting modes exist:
- STATIC: a 'files.json' array of relative entry paths next to the samples.
- API: a '/api/samples' JSON listing served by a backend.
Discovery prefers the static manifest and falls back to the API listing.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin

from urdf_assembler.core.resolution.entry import is_manifest_entry
from urdf_assembler.core.resolution.paths import join_url
from urdf_assembler.core.services.scanner import walk_directory_tree
from urdf_assembler.domain.config import get_default_config
from urdf_assembler.infra import network

logger = logging.getLogger(__name__)


class SampleMode(str, Enum):
    STATIC = "static"
    API = "api"
    NONE = "none"


@dataclass(frozen=True)
class SampleCatalog:
    """Samples advertised by a host and the mode they were discovered in."""
    mode: SampleMode
    base_url: str
    files: List[str] = field(default_factory=list)

    @property
    def static_mode(self) -> bool:
        return self.mode is SampleMode.STATIC

# -----------------------------------------------------------------------------
# DISCOVERY
# -----------------------------------------------------------------------------

def discover_samples(base_url: str, config: Optional[Dict[str, Any]] = None) -> SampleCatalog:
    """
    Ask a host which samples it offers.

    Args:
        base_url: Root URL the samples are hosted under.
        config: Runtime configuration (manifest name, API path, timeout).

    Returns:
        SampleCatalog: Discovered files; mode NONE and no files when neither
        the static manifest nor the API listing is available.
    """
    cfg = get_default_config()
    cfg.update(config or {})
    timeout = cfg["request_timeout"]

    manifest_url = join_url(base_url, cfg["manifest_filename"])
    payload = network.fetch_json(manifest_url, timeout=timeout, require_json_content_type=True)
    files = _as_file_list(payload)
    if files is not None:
        logger.info(f"Loaded static manifest with {len(files)} sample(s) from {manifest_url}")
        return SampleCatalog(SampleMode.STATIC, base_url, files)

    logger.info("Static manifest not found, trying samples API...")
    api_url = urljoin(base_url, cfg["samples_api_path"])
    files = _as_file_list(network.fetch_json(api_url, timeout=timeout))
    if files is not None:
        logger.info(f"Samples API listed {len(files)} sample(s) at {api_url}")
        return SampleCatalog(SampleMode.API, base_url, files)

    logger.warning(f"No sample listing available under {base_url}")
    return SampleCatalog(SampleMode.NONE, base_url)


def _as_file_list(payload: Any) -> Optional[List[str]]:
    if not isinstance(payload, list):
        return None
    return [p for p in payload if isinstance(p, str) and p.strip()]

# -----------------------------------------------------------------------------
# GENERATION
# -----------------------------------------------------------------------------

def collect_manifest_entries(public_dir: str, max_workers: int = 8) -> List[str]:
    """Relative paths under public_dir that qualify as selectable samples."""
    if not os.path.isdir(public_dir):
        raise NotADirectoryError(f"Invalid samples directory: {public_dir}")
    return [
        rel_path for rel_path, _ in walk_directory_tree(public_dir, max_workers=max_workers)
        if is_manifest_entry(rel_path)
    ]


def generate_manifest(
        public_dir: str,
        output_path: Optional[str] = None,
        manifest_filename: str = "files.json",
        max_workers: int = 8,
) -> List[str]:
    """
    Scan a samples directory and write its static manifest.

    Args:
        public_dir: Directory served to clients.
        output_path: Manifest location; defaults to '<public_dir>/<manifest_filename>'.
        manifest_filename: Name used when output_path is omitted.
        max_workers: Thread pool size for the directory walk.

    Returns:
        List[str]: The entries written.

    Raises:
        NotADirectoryError: If public_dir is not a directory.
        OSError: If the manifest cannot be written.
    """
    public_dir = os.path.abspath(public_dir)
    logger.info(f"Scanning directory: {public_dir}")
    entries = collect_manifest_entries(public_dir, max_workers=max_workers)

    target = output_path or os.path.join(public_dir, manifest_filename)
    with open(target, "w", encoding="utf-8") as f:
        json.dump(entries, f, indent=2)

    logger.info(f"Manifest created with {len(entries)} sample(s) at {target}")
    return entries
