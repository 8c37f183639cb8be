from __future__ import annotations

"""
Model Load Orchestration.

Coordinates one load from any input channel:
1. Builds the file index for the origin.
2. Selects the entry document.
3. For a .xacro entry, flattens macro includes into one document and
   runs the macro expander; a .urdf entry is used as read.
4. Parses the description, dereferencing meshes through the asset resolver.
5. Commits the outcome as the current session, unless a newer load was
   requested meanwhile.

Each request is tagged with a generation number. Only the latest request
may commit; an older one finishing late is discarded and its index torn
down. Committing tears down the previous session's index.
"""

import logging
import threading
import time
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from urdf_assembler.core.pipeline.expander import MacroExpander, expand_xacro
from urdf_assembler.core.pipeline.flattener import MacroFlattener
from urdf_assembler.core.pipeline.scene import MeshFetcher, parse_description
from urdf_assembler.core.pipeline.validator import validate_config
from urdf_assembler.core.resolution.assets import AssetResolver
from urdf_assembler.core.resolution.entry import collect_candidates, select_entry_point
from urdf_assembler.core.resolution.index import VirtualFileIndex
from urdf_assembler.core.resolution.paths import normalize, package_root_of
from urdf_assembler.core.services.scanner import (
    SingleFileInput,
    build_from_directory,
    build_from_hierarchy,
    build_from_manifest,
    build_from_single_file,
)
from urdf_assembler.domain.constants import XACRO_EXTENSION
from urdf_assembler.domain.errors import (
    AssemblerError,
    Diagnostic,
    LoadErrorKind,
    UnreadableRoot,
    diagnostic_from,
)
from urdf_assembler.domain.pipeline_models import (
    LoadOrigin,
    LoadResult,
    create_error_result,
    create_success_result,
)
from urdf_assembler.domain.scene_models import RobotScene

logger = logging.getLogger(__name__)

DirectoryInput = Union[str, Mapping[str, Union[bytes, str]]]


@dataclass(frozen=True)
class LoadSession:
    """Committed outcome of the most recent successful load."""
    generation: int
    index: VirtualFileIndex
    result: LoadResult
    resolver: AssetResolver
    scene: Optional[RobotScene] = None


class ModelLoader:
    """
    Stateful entry point for loading robot models.

    Args:
        config: Runtime configuration (raw or partial); validated on creation.
        expander: Macro expander applied to flattened .xacro entries
            (defaults to the xacro processor).
        fetcher: Mesh fetcher used while parsing; built from config when omitted.
        parse_scene: Parse the description and fetch meshes after assembly.
    """

    def __init__(
            self,
            config: Optional[Dict[str, Any]] = None,
            expander: Optional[MacroExpander] = None,
            fetcher: Optional[MeshFetcher] = None,
            parse_scene: bool = True,
    ) -> None:
        cfg, warnings = validate_config(config, strict=False)
        for warning in warnings:
            logger.warning(f"Configuration Warning: {warning}")

        self._config = cfg
        self._expander = expander or expand_xacro
        self._fetcher = fetcher or MeshFetcher(cfg)
        self._parse_scene = parse_scene

        self._lock = threading.Lock()
        self._generation = 0
        self._session: Optional[LoadSession] = None

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    @property
    def config(self) -> Dict[str, Any]:
        return dict(self._config)

    @property
    def session(self) -> Optional[LoadSession]:
        with self._lock:
            return self._session

    def load_from_single_file(self, source: SingleFileInput) -> LoadResult:
        """Load a lone description file, given as a path or a (name, bytes) pair."""
        exts = self._config["description_extensions"]
        return self._run(
            LoadOrigin.SINGLE_FILE,
            lambda: build_from_single_file(source, extensions=exts),
        )

    def load_from_directory(self, source: DirectoryInput) -> LoadResult:
        """
        Load a model from a folder tree.

        Args:
            source: Directory path, or a mapping of relative paths to bytes
                or filesystem paths (drag-and-drop style hierarchy).
        """
        exts = self._config["description_extensions"]
        if isinstance(source, str):
            workers = self._config["max_workers"]
            return self._run(
                LoadOrigin.DIRECTORY,
                lambda: build_from_directory(source, max_workers=workers, extensions=exts),
            )
        return self._run(
            LoadOrigin.DIRECTORY,
            lambda: build_from_hierarchy(source, extensions=exts),
        )

    def load_from_manifest_entry(self, remote_path: str, base_url: Optional[str] = None) -> LoadResult:
        """
        Load a hosted sample listed in a manifest.

        Args:
            remote_path: Path of the entry document relative to the sample base.
            base_url: Sample base URL; defaults to 'samples_base_url', then the static base.
        """
        base = base_url or self._config["samples_base_url"] or self._config["static_base_url"]
        entry = normalize(remote_path).lstrip("/")
        return self._run(
            LoadOrigin.MANIFEST,
            lambda: build_from_manifest(base),
            entry_path=entry,
        )

    def get_asset_resolver(self) -> Optional[AssetResolver]:
        """Resolver of the most recent successful load, if any."""
        session = self.session
        return session.resolver if session else None

    def get_scene(self) -> Optional[RobotScene]:
        session = self.session
        return session.scene if session else None

    def close(self) -> None:
        """Invalidate in-flight loads and release the current session's handles."""
        with self._lock:
            self._generation += 1
            session, self._session = self._session, None
        if session is not None:
            session.index.teardown()
            logger.debug(f"ModelLoader closed; session {session.generation} torn down")

    def __enter__(self) -> ModelLoader:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Generation Tracking
    # -------------------------------------------------------------------------

    def _begin(self) -> int:
        with self._lock:
            self._generation += 1
            return self._generation

    def is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation

    # -------------------------------------------------------------------------
    # Load Execution
    # -------------------------------------------------------------------------

    def _run(
            self,
            origin: LoadOrigin,
            build_index: Callable[[], VirtualFileIndex],
            entry_path: str = "",
    ) -> LoadResult:
        generation = self._begin()
        started = time.perf_counter()
        logger.info(f"Load #{generation} started ({origin.value})")

        index: Optional[VirtualFileIndex] = None
        warnings: List[Diagnostic] = []

        try:
            index = build_index()

            candidates = [] if index.is_remote else collect_candidates(
                index, self._config["description_extensions"]
            )
            entry = entry_path or select_entry_point(candidates)
            logger.info(f"Entry document: '{entry}'")

            if entry.lower().endswith(XACRO_EXTENSION):
                flat = MacroFlattener(index, self._package_root_hint(entry)).flatten_path(entry)
                warnings.extend(flat.warnings)
                flat_text = flat.text
                urdf_text = self._expander(flat_text)
            else:
                flat_text = urdf_text = _read_entry(index, entry)

            resolver = AssetResolver(index, entry, self._config)

            scene = None
            if self._parse_scene:
                scene = parse_description(
                    urdf_text,
                    resolver,
                    self._fetcher,
                    load_collision=bool(self._config["load_collision"]),
                )
                warnings.extend(scene.warnings)

        except AssemblerError as e:
            logger.error(f"Load #{generation} failed: [{e.kind.value}] {e.message}")
            result = create_error_result(
                e.to_diagnostic(), origin, generation, entry_path, warnings,
                summary_extra=self._summary(index, started),
            )
            return self._discard(generation, index, result)

        except (NotADirectoryError, FileNotFoundError) as e:
            logger.error(f"Load #{generation} failed: {e}")
            diag = diagnostic_from(LoadErrorKind.UNREADABLE_ROOT, str(e), entry_path)
            result = create_error_result(
                diag, origin, generation, entry_path, warnings,
                summary_extra=self._summary(index, started),
            )
            return self._discard(generation, index, result)

        summary = self._summary(index, started)
        summary["candidates"] = len(candidates)
        if scene is not None:
            summary.update({
                "robot": scene.name,
                "links": len(scene.links),
                "joints": len(scene.joints),
                "meshes": len(scene.meshes()),
                "placeholders": len(scene.placeholders()),
            })

        result = create_success_result(
            origin, generation, entry, flat_text, urdf_text, warnings, summary_extra=summary,
        )
        session = LoadSession(generation, index, result, resolver, scene)
        return self._commit(session)

    def _commit(self, session: LoadSession) -> LoadResult:
        with self._lock:
            stale = session.generation != self._generation
            if not stale:
                previous, self._session = self._session, session

        if stale:
            logger.debug(f"Load #{session.generation} superseded; discarding its result")
            session.index.teardown()
            return _mark_superseded(session.result)

        if previous is not None:
            previous.index.teardown()
        logger.info(
            f"Load #{session.generation} committed: {session.result.status.value}, "
            f"{len(session.result.warnings)} warning(s)"
        )
        return session.result

    def _discard(self, generation: int, index: Optional[VirtualFileIndex], result: LoadResult) -> LoadResult:
        # Failed loads never replace the current session
        if index is not None:
            index.teardown()
        if not self.is_current(generation):
            return _mark_superseded(result)
        return result

    def _package_root_hint(self, entry: str) -> str:
        return package_root_of(entry) or self._config["static_base_url"]

    @staticmethod
    def _summary(index: Optional[VirtualFileIndex], started: float) -> Dict[str, Any]:
        return {
            "files_indexed": len(index) if index is not None else 0,
            "elapsed_seconds": round(time.perf_counter() - started, 4),
        }


def _mark_superseded(result: LoadResult) -> LoadResult:
    return replace(result, summary={**result.summary, "superseded": True})


def _read_entry(index: VirtualFileIndex, entry: str) -> str:
    try:
        return index.read_text(entry)
    except OSError as e:
        raise UnreadableRoot(f"Cannot read entry document: {e}", path=entry) from e
