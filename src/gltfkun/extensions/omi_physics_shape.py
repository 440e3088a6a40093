"""OMI_physics_shape: document-level list of collision shapes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..errors import E_EXTENSION, ExtensionError
from ..graph import Graph, Mesh, OtherEdge
from .base import (
    ExportContext,
    ExtensionDescriptor,
    ExtensionPayload,
    ExtensionProperty,
    ImportContext,
)

__all__ = [
    "EXTENSION_NAME",
    "SHAPE_TYPES",
    "PhysicsShapeWeight",
    "PhysicsShape",
    "OmiPhysicsShape",
    "descriptor",
]

EXTENSION_NAME = "OMI_physics_shape"

SHAPE_TYPES = ("box", "sphere", "capsule", "cylinder", "convex", "trimesh")

_SHAPE_EDGE = OtherEdge(f"{EXTENSION_NAME}/shape")
_MESH_EDGE = OtherEdge(f"{EXTENSION_NAME}/mesh")

_DEFAULT_SIZE = [1.0, 1.0, 1.0]
_DEFAULT_RADIUS = 0.5
_DEFAULT_HEIGHT = 2.0


@dataclass
class PhysicsShapeWeight(ExtensionPayload):
    type: str = "box"
    # None means the format default for the shape type
    size: Optional[List[float]] = None
    radius: Optional[float] = None
    height: Optional[float] = None

    def to_json(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {}
        if self.type == "box":
            if self.size is not None and list(self.size) != _DEFAULT_SIZE:
                params["size"] = [float(v) for v in self.size]
        if self.type in ("sphere", "capsule", "cylinder"):
            if self.radius is not None and self.radius != _DEFAULT_RADIUS:
                params["radius"] = float(self.radius)
        if self.type in ("capsule", "cylinder"):
            if self.height is not None and self.height != _DEFAULT_HEIGHT:
                params["height"] = float(self.height)
        return params

    @classmethod
    def from_json(cls, shape: Dict[str, Any]) -> "PhysicsShapeWeight":
        typ = shape.get("type")
        if typ not in SHAPE_TYPES:
            raise ExtensionError(
                code=E_EXTENSION,
                message=f"unknown physics shape type {typ!r}",
                context={"type": typ},
            )
        params = shape.get(typ) or {}
        size = params.get("size")
        return cls(
            type=typ,
            size=[float(v) for v in size] if size is not None else None,
            radius=params.get("radius"),
            height=params.get("height"),
        )


class PhysicsShape(ExtensionProperty):
    name = EXTENSION_NAME
    payload_type = PhysicsShapeWeight

    def mesh(self, graph: Graph) -> Optional[Mesh]:
        return self.find_edge_target(graph, _MESH_EDGE, Mesh)

    def set_mesh(self, graph: Graph, mesh: Optional[Mesh]) -> None:
        self.set_edge_target(graph, _MESH_EDGE, mesh)


@dataclass
class ShapeListWeight(ExtensionPayload):
    pass


class OmiPhysicsShape(ExtensionProperty):
    """Root extension owning the ordered shape list."""

    name = EXTENSION_NAME
    payload_type = ShapeListWeight

    def shapes(self, graph: Graph) -> List[PhysicsShape]:
        return self.edge_targets(graph, _SHAPE_EDGE, PhysicsShape)

    def create_shape(
        self, graph: Graph, weight: Optional[PhysicsShapeWeight] = None
    ) -> PhysicsShape:
        shape = PhysicsShape.new(graph)
        if weight is not None:
            shape.write(graph, weight)
        self.add_edge_target(graph, _SHAPE_EDGE, shape)
        return shape

    def remove_shape(self, graph: Graph, shape: PhysicsShape) -> None:
        self.remove_edge_target(graph, _SHAPE_EDGE, shape)


def import_shapes(ctx: ImportContext) -> None:
    root = ctx.root_extension(EXTENSION_NAME)
    if root is None:
        return
    ext = ctx.doc.create_extension(ctx.graph, OmiPhysicsShape)
    for shape_json in root.get("shapes", []):
        weight = PhysicsShapeWeight.from_json(shape_json)
        shape = ext.create_shape(ctx.graph, weight)
        mesh_index = (shape_json.get(weight.type) or {}).get("mesh")
        if weight.type in ("convex", "trimesh") and mesh_index is not None:
            shape.set_mesh(ctx.graph, ctx.handle("meshes", mesh_index))


def export_shapes(ctx: ExportContext) -> None:
    ext = ctx.doc.get_extension(ctx.graph, OmiPhysicsShape)
    if ext is None:
        return
    shapes = ext.shapes(ctx.graph)
    if not shapes:
        return
    out = []
    for shape in shapes:
        weight = shape.read(ctx.graph)
        params = weight.to_json()
        mesh = shape.mesh(ctx.graph)
        if mesh is not None and ctx.index_of(mesh) is not None:
            params["mesh"] = ctx.index_of(mesh)
        out.append({"type": weight.type, weight.type: params})
    ctx.json.setdefault("extensions", {})[EXTENSION_NAME] = {"shapes": out}
    ctx.mark_used(EXTENSION_NAME)


descriptor = ExtensionDescriptor(
    name=EXTENSION_NAME,
    property_type=OmiPhysicsShape,
    import_hook=import_shapes,
    export_hook=export_shapes,
)
