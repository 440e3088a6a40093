"""OMI_physics_body: per-node motion, collider and trigger."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..errors import E_EXTENSION, ExtensionError
from ..graph import Graph, OtherEdge
from ..logging import get_logger
from .base import (
    ExportContext,
    ExtensionDescriptor,
    ExtensionPayload,
    ExtensionProperty,
    ImportContext,
)
from .omi_physics_shape import OmiPhysicsShape, PhysicsShape

__all__ = [
    "EXTENSION_NAME",
    "MOTION_TYPES",
    "PhysicsBodyWeight",
    "OmiPhysicsBody",
    "descriptor",
]

EXTENSION_NAME = "OMI_physics_body"

MOTION_TYPES = ("static", "kinematic", "dynamic")

_COLLIDER_EDGE = OtherEdge(f"{EXTENSION_NAME}/collider")
_TRIGGER_EDGE = OtherEdge(f"{EXTENSION_NAME}/trigger")

# payload field -> JSON key, zero vectors omitted
_VECTORS = {
    "linear_velocity": "linearVelocity",
    "angular_velocity": "angularVelocity",
    "center_of_mass": "centerOfMass",
    "inertia_diagonal": "inertiaDiagonal",
}
_IDENTITY_ROTATION = [0.0, 0.0, 0.0, 1.0]

_log = get_logger("extensions")


def _zeros() -> List[float]:
    return [0.0, 0.0, 0.0]


@dataclass
class PhysicsBodyWeight(ExtensionPayload):
    # None when the body has no motion (collider or trigger only)
    motion_type: Optional[str] = None
    mass: float = 1.0
    linear_velocity: List[float] = field(default_factory=_zeros)
    angular_velocity: List[float] = field(default_factory=_zeros)
    center_of_mass: List[float] = field(default_factory=_zeros)
    inertia_diagonal: List[float] = field(default_factory=_zeros)
    inertia_orientation: List[float] = field(
        default_factory=lambda: list(_IDENTITY_ROTATION)
    )

    def motion_json(self) -> Optional[Dict[str, Any]]:
        if self.motion_type is None:
            return None
        motion: Dict[str, Any] = {"type": self.motion_type}
        if self.mass != 1.0:
            motion["mass"] = float(self.mass)
        for attr, key in _VECTORS.items():
            value = [float(v) for v in getattr(self, attr)]
            if any(value):
                motion[key] = value
        orientation = [float(v) for v in self.inertia_orientation]
        if orientation != _IDENTITY_ROTATION:
            motion["inertiaOrientation"] = orientation
        return motion

    @classmethod
    def from_json(cls, body: Dict[str, Any]) -> "PhysicsBodyWeight":
        motion = body.get("motion")
        if motion is None:
            return cls()
        motion_type = motion.get("type")
        if motion_type not in MOTION_TYPES:
            raise ExtensionError(
                code=E_EXTENSION,
                message=f"unknown motion type {motion_type!r}",
                context={"type": motion_type},
            )
        weight = cls(motion_type=motion_type, mass=float(motion.get("mass", 1.0)))
        for attr, key in _VECTORS.items():
            if key in motion:
                setattr(weight, attr, [float(v) for v in motion[key]])
        if "inertiaOrientation" in motion:
            weight.inertia_orientation = [
                float(v) for v in motion["inertiaOrientation"]
            ]
        return weight


class OmiPhysicsBody(ExtensionProperty):
    name = EXTENSION_NAME
    payload_type = PhysicsBodyWeight

    def collider(self, graph: Graph) -> Optional[PhysicsShape]:
        return self.find_edge_target(graph, _COLLIDER_EDGE, PhysicsShape)

    def set_collider(self, graph: Graph, shape: Optional[PhysicsShape]) -> None:
        self.set_edge_target(graph, _COLLIDER_EDGE, shape)

    def trigger(self, graph: Graph) -> Optional[PhysicsShape]:
        return self.find_edge_target(graph, _TRIGGER_EDGE, PhysicsShape)

    def set_trigger(self, graph: Graph, shape: Optional[PhysicsShape]) -> None:
        self.set_edge_target(graph, _TRIGGER_EDGE, shape)


def _shape_list(ctx) -> List[PhysicsShape]:
    shapes_ext = ctx.doc.get_extension(ctx.graph, OmiPhysicsShape)
    return shapes_ext.shapes(ctx.graph) if shapes_ext is not None else []


def _shape_at(shapes: List[PhysicsShape], ref: Any, node: int) -> PhysicsShape:
    index = ref.get("shape") if isinstance(ref, dict) else None
    if not isinstance(index, int) or not 0 <= index < len(shapes):
        raise ExtensionError(
            code=E_EXTENSION,
            message=f"node {node} references missing physics shape {index}",
            context={"node": node, "shape": index},
        )
    return shapes[index]


def import_bodies(ctx: ImportContext) -> None:
    shapes = _shape_list(ctx)
    for i, node_json in enumerate(ctx.json.get("nodes", [])):
        body = (node_json.get("extensions") or {}).get(EXTENSION_NAME)
        if body is None:
            continue
        node = ctx.handle("nodes", i)
        ext = node.create_extension(ctx.graph, OmiPhysicsBody)
        ext.write(ctx.graph, PhysicsBodyWeight.from_json(body))
        if "collider" in body:
            ext.set_collider(ctx.graph, _shape_at(shapes, body["collider"], i))
        if "trigger" in body:
            ext.set_trigger(ctx.graph, _shape_at(shapes, body["trigger"], i))


def export_bodies(ctx: ExportContext) -> None:
    shapes = _shape_list(ctx)
    nodes_json = ctx.json.get("nodes", [])
    for i, node in enumerate(ctx.doc.nodes(ctx.graph)):
        ext = node.get_extension(ctx.graph, OmiPhysicsBody)
        if ext is None:
            continue
        out: Dict[str, Any] = {}
        motion = ext.read(ctx.graph).motion_json()
        if motion is not None:
            out["motion"] = motion
        for key, shape in (
            ("collider", ext.collider(ctx.graph)),
            ("trigger", ext.trigger(ctx.graph)),
        ):
            if shape is None:
                continue
            if shape not in shapes:
                _log.warning(
                    "node %d %s shape is not in the %s list; omitted",
                    i,
                    key,
                    OmiPhysicsShape.name,
                )
                continue
            out[key] = {"shape": shapes.index(shape)}
        if not out:
            continue
        nodes_json[i].setdefault("extensions", {})[EXTENSION_NAME] = out
        ctx.mark_used(EXTENSION_NAME)


descriptor = ExtensionDescriptor(
    name=EXTENSION_NAME,
    property_type=OmiPhysicsBody,
    import_hook=import_bodies,
    export_hook=export_bodies,
)
