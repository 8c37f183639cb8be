from __future__ import annotations

"""
Asset Resolution Hook.

Turns every asset reference met while parsing a description (mesh and
texture 'filename' attributes) into a concrete, fetchable location:
1. Content present in the local file index becomes a minted 'file://' handle.
2. ROS package references map under the static base or the asset API prefix.
3. Absolute paths and remote URLs pass through unchanged.
4. Anything else is resolved against the entry document's directory
   (urdf-sibling heuristic included) under the same base.
"""

import logging
from typing import Any, Dict, List, Optional

from urdf_assembler.core.resolution.index import VirtualFileIndex
from urdf_assembler.core.resolution.paths import (
    is_absolute,
    is_ephemeral,
    is_package_ref,
    is_passthrough,
    is_remote,
    join_url,
    package_root_of,
    package_to_index_key_or_url,
    resolve_relative,
    substitute_package_macros,
)
from urdf_assembler.domain.config import get_default_config
from urdf_assembler.domain.constants import PACKAGE_SCHEME

logger = logging.getLogger(__name__)


class AssetResolver:
    """
    Callable resolver bound to one loaded model.

    Args:
        index: File index of the load that produced the model.
        entry_path: Index key (or remote path) of the entry document.
        config: Runtime configuration; defaults are used for missing keys.
    """

    def __init__(
            self,
            index: VirtualFileIndex,
            entry_path: str,
            config: Optional[Dict[str, Any]] = None,
    ) -> None:
        cfg = get_default_config()
        cfg.update(config or {})

        self._index = index
        self._entry_path = entry_path
        self._package_root = package_root_of(entry_path)
        self._heuristic = bool(cfg["urdf_sibling_heuristic"])
        self._static_mode = bool(cfg["static_mode"])
        self._static_base = cfg["static_base_url"]
        self._api_prefix = cfg["asset_api_prefix"]
        self._resolved: Dict[str, str] = {}

    @property
    def index(self) -> VirtualFileIndex:
        return self._index

    @property
    def entry_path(self) -> str:
        return self._entry_path

    @property
    def asset_base(self) -> str:
        """URL prefix for assets not present locally."""
        if self._index.is_remote:
            return self._index.remote_base or ""
        return self._static_base if self._static_mode else self._api_prefix

    def resolved(self) -> Dict[str, str]:
        """Snapshot of every reference resolved so far."""
        return dict(self._resolved)

    def __call__(self, raw: str) -> str:
        return self.resolve(raw)

    def resolve(self, raw: str) -> str:
        """
        Map a raw asset reference onto a concrete location.

        Args:
            raw: Value of the 'filename' attribute as written in the description.

        Returns:
            str: A 'file://' handle, a URL or a base-relative path.
        """
        ref = substitute_package_macros(raw)

        location = self._resolve_local(ref)
        if location is None:
            location = self._resolve_hosted(ref)

        self._resolved[raw] = location
        logger.debug(f"Asset '{raw}' -> '{location}'")
        return location

    # --- Steps ---

    def _resolve_local(self, ref: str) -> Optional[str]:
        if self._index.is_remote or is_remote(ref) or is_ephemeral(ref):
            return None

        for candidate in self._local_candidates(ref):
            key = self._index.find(candidate)
            if key is None:
                continue
            try:
                return self._index.mint_handle(key)
            except OSError as e:
                logger.warning(f"Asset '{key}' is indexed but unreadable: {e}")
                return None
        return None

    def _local_candidates(self, ref: str) -> List[str]:
        if is_package_ref(ref):
            return [package_to_index_key_or_url(ref, self._package_root)]
        if is_absolute(ref):
            return [ref]

        candidates = [resolve_relative(self._entry_path, ref, self._heuristic)]
        plain = resolve_relative(self._entry_path, ref, urdf_sibling_heuristic=False)
        if plain not in candidates:
            candidates.append(plain)
        return candidates

    def _resolve_hosted(self, ref: str) -> str:
        base = self.asset_base
        if is_package_ref(ref):
            return join_url(base, ref[len(PACKAGE_SCHEME):])
        if is_passthrough(ref):
            return ref
        return join_url(base, resolve_relative(self._entry_path, ref, self._heuristic))
