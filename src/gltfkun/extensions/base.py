"""Extension storage, hook contexts and the runtime registry.

Extension data lives in :class:`BytesWeight` vertices attached to their
owner through an ``ExtensionEdge(name)``. Each extension defines a payload
dataclass that converts to and from those bytes, plus a pair of hooks that
translate between the graph and the JSON extension objects.
"""

from __future__ import annotations

import copy
import json
from dataclasses import asdict, dataclass, field, fields
from typing import (
    Any,
    Callable,
    ClassVar,
    Dict,
    Iterator,
    List,
    Optional,
    Sequence,
    Type,
    TypeVar,
)

from ..errors import E_EXTENSION, E_INVALID_REFERENCE, ExtensionError
from ..graph import BytesWeight, Document, Graph, Property
from ..logging import get_logger

__all__ = [
    "ExtensionPayload",
    "ExtensionProperty",
    "ImportContext",
    "ExportContext",
    "ExtensionDescriptor",
    "ExtensionRegistry",
    "run_import_hooks",
    "run_export_hooks",
]

T = TypeVar("T", bound="ExtensionPayload")

_log = get_logger("extensions")


class ExtensionPayload:
    """Mixin for payload dataclasses stored as compact JSON bytes."""

    def to_bytes(self) -> bytes:
        return json.dumps(
            asdict(self), sort_keys=True, separators=(",", ":")
        ).encode("utf-8")

    @classmethod
    def from_bytes(cls: Type[T], data: bytes) -> T:
        if not data:
            return cls()
        values = json.loads(data.decode("utf-8"))
        known = {f.name for f in fields(cls)}  # type: ignore[arg-type]
        return cls(**{k: v for k, v in values.items() if k in known})


class ExtensionProperty(Property):
    """Handle to a vertex holding one extension's serialized payload."""

    weight_type = BytesWeight
    name: ClassVar[str] = ""
    payload_type: ClassVar[Type[ExtensionPayload]] = ExtensionPayload

    def read(self, graph: Graph) -> Any:
        return self.payload_type.from_bytes(self.get(graph).data)

    def write(self, graph: Graph, payload: ExtensionPayload) -> None:
        self.get(graph).data = payload.to_bytes()


@dataclass
class ImportContext:
    graph: Graph
    doc: Document
    json: Dict[str, Any]
    # JSON array name ("nodes", "meshes", ...) -> handles in array order
    handles: Dict[str, List[Property]] = field(default_factory=dict)

    def handle(self, array: str, index: Any) -> Property:
        items = self.handles.get(array, [])
        if not isinstance(index, int) or not 0 <= index < len(items):
            raise ExtensionError(
                code=E_INVALID_REFERENCE,
                message=f"{array}[{index}] does not exist",
                context={"array": array, "index": index},
            )
        return items[index]

    def root_extension(self, name: str) -> Optional[Dict[str, Any]]:
        return self.json.get("extensions", {}).get(name)


@dataclass
class ExportContext:
    graph: Graph
    doc: Document
    json: Dict[str, Any]
    # vertex id -> index in its JSON array
    indices: Dict[int, int] = field(default_factory=dict)

    def index_of(self, handle: Property) -> Optional[int]:
        return self.indices.get(handle.index)

    def mark_used(self, name: str) -> None:
        used = self.json.setdefault("extensionsUsed", [])
        if name not in used:
            used.append(name)


ImportHook = Callable[[ImportContext], None]
ExportHook = Callable[[ExportContext], None]


@dataclass(frozen=True)
class ExtensionDescriptor:
    name: str
    property_type: Type[ExtensionProperty]
    import_hook: ImportHook
    export_hook: ExportHook


class ExtensionRegistry:
    """Ordered set of extension descriptors; hooks run in registration order."""

    def __init__(self, descriptors: Sequence[ExtensionDescriptor] = ()) -> None:
        self._items: Dict[str, ExtensionDescriptor] = {}
        for desc in descriptors:
            self.register(desc)

    def register(self, desc: ExtensionDescriptor) -> None:
        if desc.name in self._items:
            raise ExtensionError(
                code=E_EXTENSION,
                message=f"extension {desc.name} registered twice",
            )
        self._items[desc.name] = desc

    def get(self, name: str) -> Optional[ExtensionDescriptor]:
        return self._items.get(name)

    def names(self) -> List[str]:
        return list(self._items)

    def subset(self, names: Sequence[str]) -> "ExtensionRegistry":
        return ExtensionRegistry([d for d in self if d.name in names])

    def __contains__(self, name: object) -> bool:
        return name in self._items

    def __iter__(self) -> Iterator[ExtensionDescriptor]:
        return iter(list(self._items.values()))

    def __len__(self) -> int:
        return len(self._items)


def run_import_hooks(registry: ExtensionRegistry, ctx: ImportContext) -> None:
    for name in ctx.json.get("extensionsUsed", []):
        if name not in registry:
            _log.warning("dropping unsupported extension %s", name)
    for name in ctx.json.get("extensionsRequired", []):
        if name not in registry:
            _log.warning("required extension %s is not supported", name)
    for desc in registry:
        mark = ctx.graph.checkpoint()
        try:
            desc.import_hook(ctx)
        except Exception as exc:
            ctx.graph.rollback(mark)
            _log.warning("extension %s skipped on import: %s", desc.name, exc)


def run_export_hooks(registry: ExtensionRegistry, ctx: ExportContext) -> None:
    for desc in registry:
        snapshot = copy.deepcopy(ctx.json)
        try:
            desc.export_hook(ctx)
        except Exception as exc:
            ctx.json.clear()
            ctx.json.update(snapshot)
            _log.warning("extension %s skipped on export: %s", desc.name, exc)
