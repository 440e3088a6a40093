"""High-level entry points: import from bytes or files, export, write."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union
from urllib.parse import unquote

from .config import IoConfig, registry_for
from .errors import E_RESOLVE, GltfExportError
from .extensions import ExtensionRegistry
from .graph import Document, Graph
from .io.format import GLB_MAGIC, GlbFormat, GltfFormat
from .io.glb_export import export_glb
from .io.gltf_export import export_gltf
from .io.gltf_import import import_gltf
from .io.resolver import FileResolver, Resolver
from .logging import get_logger
from .reporting import get_reporter
from .utils.paths import safe_file_path

__all__ = [
    "import_slice",
    "import_file",
    "export",
    "write_file",
    "is_glb",
]

_GLB_PREFIX = GLB_MAGIC.to_bytes(4, "little")


def is_glb(data: bytes) -> bool:
    return bytes(data[:4]) == _GLB_PREFIX


async def import_slice(
    graph: Graph,
    data: bytes,
    *,
    resolver: Optional[Resolver] = None,
    registry: Optional[ExtensionRegistry] = None,
    config: Optional[IoConfig] = None,
) -> Document:
    """Import a glTF JSON document or GLB container held in memory.

    The container is detected from the leading ``glTF`` magic. On failure
    the graph is left exactly as it was.
    """
    if registry is None:
        registry = registry_for(config)
    if is_glb(data):
        fmt = GlbFormat(data=bytes(data)).unpack()
    else:
        fmt = GltfFormat.from_slice(data)
    return await import_gltf(graph, fmt, resolver, registry)


async def import_file(
    graph: Graph,
    path: Union[str, Path],
    *,
    resolver: Optional[Resolver] = None,
    registry: Optional[ExtensionRegistry] = None,
    config: Optional[IoConfig] = None,
) -> Document:
    """Import ``path``; relative URIs resolve beside it unless a resolver
    is given."""
    p = Path(path)
    get_logger("api").info("importing %s", p)
    data = p.read_bytes()
    if resolver is None:
        resolver = FileResolver(p.parent)
    return await import_slice(
        graph, data, resolver=resolver, registry=registry, config=config
    )


def export(
    graph: Graph,
    doc: Document,
    *,
    glb: Optional[bool] = None,
    registry: Optional[ExtensionRegistry] = None,
    config: Optional[IoConfig] = None,
) -> Union[GltfFormat, GlbFormat]:
    config = config or IoConfig()
    if registry is None:
        registry = registry_for(config)
    if glb is None:
        glb = config.glb
    if glb:
        return export_glb(graph, doc, registry, config)
    return export_gltf(graph, doc, registry, config)


def write_file(
    graph: Graph,
    doc: Document,
    path: Union[str, Path],
    *,
    registry: Optional[ExtensionRegistry] = None,
    config: Optional[IoConfig] = None,
) -> Path:
    """Export ``doc`` to ``path`` and write its resources beside it.

    ``.glb`` selects the binary container, anything else writes JSON.
    Nothing is written if the export fails.
    """
    p = Path(path)
    out = export(
        graph,
        doc,
        glb=p.suffix.lower() == ".glb",
        registry=registry,
        config=config,
    )
    base = p.parent
    targets = {}
    for uri, data in out.resources.items():
        try:
            targets[safe_file_path(base, unquote(uri))] = data
        except ValueError:
            raise GltfExportError(
                code=E_RESOLVE,
                message=f"resource {uri} would be written outside {base}",
                context={"uri": uri},
            ) from None

    base.mkdir(parents=True, exist_ok=True)
    if isinstance(out, GlbFormat):
        p.write_bytes(out.data)
    else:
        p.write_bytes(out.to_json_bytes())
    rep = get_reporter()
    for target, data in targets.items():
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        rep.verbose(f"wrote {target.name} ({len(data)} bytes)")
    rep.status(f"Wrote {p.name} ({len(targets)} resource file(s))")
    return p
