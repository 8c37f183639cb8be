from __future__ import annotations

"""
Robot Scene Data Models.

Lightweight structural view of a parsed robot description: links, joints
and the visual geometry attached to links. Mesh geometry is either loaded
bytes or an empty placeholder standing in for an asset that could not be
fetched.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from urdf_assembler.domain.errors import Diagnostic

# -----------------------------------------------------------------------------
# GEOMETRY
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class MeshAsset:
    """
    A successfully fetched mesh.

    Attributes:
        reference: Raw 'filename' attribute from the description.
        location: Concrete location the reference resolved to.
        fmt: Lower-case mesh format ('stl', 'dae', 'obj').
        data: Raw file bytes, handed untouched to a geometry loader.
    """
    reference: str
    location: str
    fmt: str
    data: bytes


@dataclass(frozen=True)
class PlaceholderNode:
    """Empty stand-in for a mesh that could not be fetched or decoded."""
    reference: str
    location: str
    reason: str


Geometry = Union[MeshAsset, PlaceholderNode]

# -----------------------------------------------------------------------------
# STRUCTURE
# -----------------------------------------------------------------------------

@dataclass
class LinkNode:
    name: str
    visuals: List[Geometry] = field(default_factory=list)


@dataclass(frozen=True)
class JointNode:
    name: str
    joint_type: str
    parent: str
    child: str


@dataclass
class RobotScene:
    """
    Parsed robot description.

    Attributes:
        name: Robot name attribute.
        links: Links keyed by name, in document order.
        joints: Joints keyed by name, in document order.
        warnings: Per-asset diagnostics raised while building the scene.
    """
    name: str
    links: Dict[str, LinkNode] = field(default_factory=dict)
    joints: Dict[str, JointNode] = field(default_factory=dict)
    warnings: List[Diagnostic] = field(default_factory=list)

    def placeholders(self) -> List[PlaceholderNode]:
        return [
            g for link in self.links.values() for g in link.visuals
            if isinstance(g, PlaceholderNode)
        ]

    def meshes(self) -> List[MeshAsset]:
        return [
            g for link in self.links.values() for g in link.visuals
            if isinstance(g, MeshAsset)
        ]

    def root_link(self) -> Optional[str]:
        """Return the link that is never a joint child, if there is exactly one."""
        children = {j.child for j in self.joints.values()}
        roots = [name for name in self.links if name not in children]
        return roots[0] if len(roots) == 1 else None
