from __future__ import annotations

"""
Description Parsing and Mesh Fetching.

Builds a RobotScene (links, joints, visual meshes) from a parse-ready
description. Mesh references are dereferenced through an asset resolver
and fetched one by one; a mesh that cannot be fetched becomes an empty
placeholder and an ASSET_NOT_FOUND warning, and the rest of the model
still loads.
"""

import logging
import os
import xml.etree.ElementTree as ET
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlparse
from urllib.request import url2pathname

from urdf_assembler.core.resolution.paths import is_remote
from urdf_assembler.domain.config import get_default_config
from urdf_assembler.domain.errors import LoadErrorKind, ParseFailure, diagnostic_from
from urdf_assembler.domain.scene_models import (
    Geometry,
    JointNode,
    LinkNode,
    MeshAsset,
    PlaceholderNode,
    RobotScene,
)
from urdf_assembler.infra import network

logger = logging.getLogger(__name__)

# Maps a raw asset reference onto a fetchable location
ResolveFn = Callable[[str], str]


def mesh_format(reference: str) -> str:
    """Lower-case extension of a mesh reference, without the dot."""
    path = urlparse(reference).path if "://" in reference else reference
    return os.path.splitext(path)[1].lstrip(".").lower()

# -----------------------------------------------------------------------------
# MESH FETCHER
# -----------------------------------------------------------------------------

class MeshFetcher:
    """
    Fetches mesh bytes for resolved locations.

    Remote locations are probed with HEAD before downloading, since static
    hosts often answer a missing file with an HTML page. Local handles and
    absolute filesystem paths are read directly.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None) -> None:
        cfg = get_default_config()
        cfg.update(config or {})
        self.supported_formats: List[str] = [e.lower().lstrip(".") for e in cfg["mesh_extensions"]]
        self.probe_remote = bool(cfg["probe_remote_assets"])
        self.timeout = cfg["request_timeout"]

    def fetch(self, location: str, fmt: str, reference: str = "") -> Geometry:
        """
        Load one mesh or return a placeholder explaining why it could not be.

        Args:
            location: Resolved location (URL, 'file://' handle or path).
            fmt: Mesh format, lower-case extension.
            reference: Raw reference from the description, for reporting.
        """
        reference = reference or location

        if fmt not in self.supported_formats:
            return PlaceholderNode(reference, location, f"unsupported mesh format '{fmt}'")

        if is_remote(location):
            data = self._fetch_remote(location)
        elif location.startswith("file://"):
            data = self._read_file(url2pathname(urlparse(location).path))
        elif os.path.isabs(location) and os.path.isfile(location):
            data = self._read_file(location)
        else:
            return PlaceholderNode(reference, location, "location is not reachable")

        if data is None:
            return PlaceholderNode(reference, location, "file not found")
        return MeshAsset(reference=reference, location=location, fmt=fmt, data=data)

    def _fetch_remote(self, url: str) -> Optional[bytes]:
        if self.probe_remote and not network.probe_exists(url):
            return None
        return network.fetch_bytes(url, timeout=self.timeout)

    @staticmethod
    def _read_file(path: str) -> Optional[bytes]:
        try:
            with open(path, "rb") as f:
                return f.read()
        except OSError as e:
            logger.debug(f"Mesh read failed for '{path}': {e}")
            return None

# -----------------------------------------------------------------------------
# PARSER
# -----------------------------------------------------------------------------

def parse_description(
        text: str,
        resolver: ResolveFn,
        fetcher: Optional[MeshFetcher] = None,
        load_collision: bool = False,
) -> RobotScene:
    """
    Parse a description into a scene, fetching every visual mesh.

    Args:
        text: Parse-ready description (macro expansion already applied).
        resolver: Asset resolution hook.
        fetcher: Mesh fetcher; a default one is created when omitted.
        load_collision: Also fetch collision meshes.

    Returns:
        RobotScene: Links, joints, geometry and per-asset warnings.

    Raises:
        ParseFailure: If the text is not well-formed or has no <robot> root.
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise ParseFailure(f"Failed to parse description: {e}") from e

    if _local_name(root.tag) != "robot":
        raise ParseFailure(f"Expected a <robot> root element, found <{root.tag}>")

    fetcher = fetcher or MeshFetcher()
    scene = RobotScene(name=root.get("name", ""))
    sections = ("visual", "collision") if load_collision else ("visual",)

    for link_el in root.findall("link"):
        link = LinkNode(name=link_el.get("name", ""))
        for section in sections:
            for mesh_el in link_el.findall(f"{section}/geometry/mesh"):
                link.visuals.append(_load_mesh(mesh_el, resolver, fetcher, scene))
        scene.links[link.name] = link

    for joint_el in root.findall("joint"):
        parent = joint_el.find("parent")
        child = joint_el.find("child")
        joint = JointNode(
            name=joint_el.get("name", ""),
            joint_type=joint_el.get("type", ""),
            parent=parent.get("link", "") if parent is not None else "",
            child=child.get("link", "") if child is not None else "",
        )
        scene.joints[joint.name] = joint

    logger.info(
        f"Parsed robot '{scene.name}': {len(scene.links)} link(s), "
        f"{len(scene.joints)} joint(s), {len(scene.placeholders())} placeholder(s)"
    )
    return scene


def _load_mesh(mesh_el: ET.Element, resolver: ResolveFn, fetcher: MeshFetcher, scene: RobotScene) -> Geometry:
    reference = mesh_el.get("filename", "")
    if not reference:
        geometry: Geometry = PlaceholderNode("", "", "mesh element without filename")
    else:
        location = resolver(reference)
        geometry = fetcher.fetch(location, mesh_format(reference), reference)

    if isinstance(geometry, PlaceholderNode):
        msg = f"Mesh '{geometry.reference}' replaced by a placeholder: {geometry.reason}"
        logger.warning(msg)
        scene.warnings.append(
            diagnostic_from(LoadErrorKind.ASSET_NOT_FOUND, msg, geometry.location or geometry.reference)
        )
    return geometry


def _local_name(tag: str) -> str:
    return tag.rpartition("}")[2]
