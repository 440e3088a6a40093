"""Document graph -> single-file GLB container."""

from __future__ import annotations

from typing import Any, Dict, Optional

from ..config import IoConfig
from ..errors import E_MULTIPLE_BUFFERS, GltfExportError
from ..extensions import ExtensionRegistry
from ..graph import Document, Graph
from ..logging import get_logger
from ..reporting import task
from .format import GlbFormat, GltfFormat
from .gltf_export import _ordered, export_gltf
from .resolver import decode_data_uri, is_data_uri

__all__ = ["export_glb"]

_log = get_logger("export")


def _embed_images(
    root: Dict[str, Any], resources: Dict[str, bytes], binary: bytearray
) -> int:
    """Move URI-referenced images into ``binary`` as new buffer views."""
    views = root.setdefault("bufferViews", [])
    embedded = 0
    for i, image in enumerate(root.get("images", [])):
        uri = image.get("uri")
        if uri is None:
            continue
        if "mimeType" not in image:
            _log.warning("images[%d] has no mimeType; left external as %s", i, uri)
            continue
        data = decode_data_uri(uri) if is_data_uri(uri) else resources.get(uri)
        if data is None:
            continue
        binary.extend(b"\x00" * ((-len(binary)) % 4))
        views.append(
            {"buffer": 0, "byteOffset": len(binary), "byteLength": len(data)}
        )
        binary.extend(data)
        del image["uri"]
        image["bufferView"] = len(views) - 1
        embedded += 1
    still_used = {img["uri"] for img in root.get("images", []) if "uri" in img}
    for uri in [u for u in resources if u not in still_used]:
        del resources[uri]
    if not views:
        del root["bufferViews"]
    return embedded


def export_glb(
    graph: Graph,
    doc: Document,
    registry: ExtensionRegistry,
    config: Optional[IoConfig] = None,
) -> GlbFormat:
    """Export to GLB. Fails before producing output if the document owns
    more than one buffer.
    """
    config = config or IoConfig()
    buffers = doc.buffers(graph)
    if len(buffers) > 1:
        raise GltfExportError(
            code=E_MULTIPLE_BUFFERS,
            message=(
                "GLB holds one binary chunk but the document has "
                f"{len(buffers)} buffers"
            ),
            context={"buffers": len(buffers)},
        )

    gltf = export_gltf(graph, doc, registry, config)
    with task("export.glb", "Pack GLB") as stats:
        root = gltf.json
        resources = dict(gltf.resources)
        binary = bytearray(buffers[0].get(graph).data) if buffers else bytearray()
        if buffers:
            uri = root["buffers"][0].pop("uri", None)
            if uri is not None:
                resources.pop(uri, None)
        if config.embed_images:
            stats["embedded_images"] = _embed_images(root, resources, binary)
        if binary and not root.get("buffers"):
            root["buffers"] = [{"byteLength": 0}]
        if root.get("buffers"):
            root["buffers"][0]["byteLength"] = len(binary)
        stats["bytes"] = len(binary)
        glb = GlbFormat.pack(
            GltfFormat(json=_ordered(root), resources=resources),
            bytes(binary) if root.get("buffers") else None,
        )
    return glb
