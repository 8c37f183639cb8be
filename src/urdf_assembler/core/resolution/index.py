from __future__ import annotations

"""
Virtual File Index.

In-memory mapping from normalized relative path to a content source. The
same structure serves single uploaded files, directory trees, drag-and-drop
style hierarchies and remote sample manifests, so that downstream
resolution never needs to know where a file came from.

An index is immutable once built. The only mutable state it owns is the
HandleRegistry: local files materialised on demand as 'file://' URIs for
geometry loaders. Those handles are released together, exactly once, by
'teardown()'.
"""

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Dict, Iterator, List, Mapping, Optional, Union

from urdf_assembler.core.resolution.paths import (
    join_url,
    lookup_variants,
    normalize,
)
from urdf_assembler.domain.errors import IndexClosedError
from urdf_assembler.infra import network
from urdf_assembler.infra.fs import create_scratch_dir, write_scratch_file

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# CONTENT SOURCES
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class LocalContent:
    """
    Locally supplied file content.

    Exactly one of 'data' (in-memory buffer) or 'file_path' (on-disk file
    read lazily) is set.
    """
    key: str
    data: Optional[bytes] = None
    file_path: Optional[str] = None

    def read_bytes(self) -> bytes:
        if self.data is not None:
            return self.data
        if self.file_path is None:
            raise OSError(f"No content attached to '{self.key}'")
        with open(self.file_path, "rb") as f:
            return f.read()


@dataclass(frozen=True)
class RemoteContent:
    """Content served lazily from 'base_url + key'."""
    key: str
    url: str

    def read_bytes(self) -> bytes:
        data = network.fetch_bytes(self.url)
        if data is None:
            raise OSError(f"Unable to fetch '{self.url}'")
        return data


ContentSource = Union[LocalContent, RemoteContent]

# -----------------------------------------------------------------------------
# HANDLE OWNERSHIP
# -----------------------------------------------------------------------------

class HandleRegistry:
    """
    Owns every ephemeral handle minted for one index.

    Handles are files in a private scratch directory, exposed as 'file://'
    URIs. One key maps to one handle; 'release_all' deletes all of them and
    may be called any number of times, acting only on the first call.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._scratch = None
        self._handles: Dict[str, str] = {}
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def __len__(self) -> int:
        return len(self._handles)

    def acquire(self, key: str, provider: Callable[[], bytes]) -> str:
        """
        Return the handle for a key, materialising the content on first use.

        Raises:
            IndexClosedError: If the registry was already released.
        """
        with self._lock:
            if self._released:
                raise IndexClosedError(f"Cannot mint a handle for '{key}': index torn down")

            existing = self._handles.get(key)
            if existing:
                return existing

            if self._scratch is None:
                self._scratch = create_scratch_dir()
                logger.debug(f"HandleRegistry: scratch area created at {self._scratch.name}")

            target = write_scratch_file(self._scratch.name, key, provider())
            uri = Path(target).as_uri()
            self._handles[key] = uri
            return uri

    def release_all(self) -> int:
        """Delete every minted handle. Returns the number released by this call."""
        with self._lock:
            if self._released:
                return 0
            self._released = True
            count = len(self._handles)
            self._handles.clear()
            if self._scratch is not None:
                self._scratch.cleanup()
                self._scratch = None

        if count:
            logger.debug(f"HandleRegistry: released {count} handle(s)")
        return count

# -----------------------------------------------------------------------------
# INDEX
# -----------------------------------------------------------------------------

class VirtualFileIndex:
    """
    Path-keyed lookup over local or remote content.

    A local index holds an eager, sorted set of keys. A manifest-backed index
    has no keys; every lookup resolves lazily to 'remote_base + path'.
    """

    def __init__(
            self,
            entries: Optional[Mapping[str, LocalContent]] = None,
            remote_base: Optional[str] = None,
    ) -> None:
        ordered = {k: entries[k] for k in sorted(entries)} if entries else {}
        self._entries: Mapping[str, LocalContent] = MappingProxyType(ordered)
        self._remote_base = remote_base
        self._handles = HandleRegistry()

    # --- Introspection ---

    @property
    def is_remote(self) -> bool:
        return self._remote_base is not None

    @property
    def remote_base(self) -> Optional[str]:
        return self._remote_base

    @property
    def closed(self) -> bool:
        return self._handles.released

    @property
    def handle_count(self) -> int:
        return len(self._handles)

    def keys(self) -> List[str]:
        return list(self._entries)

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    # --- Lookup ---

    def lookup(self, path: str) -> Optional[ContentSource]:
        """
        Exact-match lookup. Callers normalize the path beforehand.

        Returns:
            Optional[ContentSource]: The source, or None when not found.
        """
        if self._remote_base is not None:
            return RemoteContent(key=path, url=join_url(self._remote_base, path))
        return self._entries.get(path)

    def find(self, reference: str) -> Optional[str]:
        """
        Tolerant lookup returning the matching key.

        Order: exact key; the reference with leading directories removed
        (down to two segments); keys ending with the reference when it has
        at least two segments. A bare base name never matches a file in
        another directory. Remote indices accept any normalized path.
        """
        ref = normalize(reference).lstrip("/")
        if not ref:
            return None
        if self._remote_base is not None:
            return ref

        for variant in lookup_variants(ref):
            if variant in self._entries:
                return variant

        if "/" not in ref:
            return None
        suffix_hits = [k for k in self._entries if k.endswith("/" + ref)]
        if suffix_hits:
            return min(suffix_hits, key=lambda k: (len(k), k))
        return None

    # --- Content access ---

    def read_bytes(self, path: str) -> bytes:
        """
        Read raw bytes for an exact key.

        Raises:
            OSError: If the key is unknown or the content cannot be read.
        """
        source = self.lookup(path)
        if source is None:
            raise OSError(f"'{path}' is not present in the file index")
        return source.read_bytes()

    def read_text(self, path: str) -> str:
        return self.read_bytes(path).decode("utf-8", errors="replace")

    # --- Handle lifecycle ---

    def mint_handle(self, path: str) -> str:
        """
        Return a tracked 'file://' URI for local content (remote sources return their URL).

        Raises:
            OSError: If the key is unknown.
            IndexClosedError: If the index was torn down.
        """
        source = self.lookup(path)
        if source is None:
            raise OSError(f"'{path}' is not present in the file index")
        if isinstance(source, RemoteContent):
            return source.url
        return self._handles.acquire(path, source.read_bytes)

    def teardown(self) -> int:
        """Release all minted handles. Safe to call more than once."""
        return self._handles.release_all()

    def __enter__(self) -> VirtualFileIndex:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.teardown()
