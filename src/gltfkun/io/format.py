"""In-memory forms of the two on-disk containers.

``GltfFormat`` is the JSON root plus named binary resources; ``GlbFormat``
is the single-file binary container: a 12-byte header, a JSON chunk and an
optional BIN chunk, every chunk padded to 4 bytes.
"""

from __future__ import annotations

import json
import struct
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ..errors import (
    E_GLB_CHUNK,
    E_GLB_HEADER,
    E_JSON,
    GlbFormatError,
    GltfImportError,
)

__all__ = [
    "GLB_MAGIC",
    "GLB_VERSION",
    "CHUNK_JSON",
    "CHUNK_BIN",
    "GLB_RESOURCE_KEY",
    "GltfFormat",
    "GlbFormat",
    "dump_json",
]

GLB_MAGIC = 0x46546C67  # "glTF"
GLB_VERSION = 2
CHUNK_JSON = 0x4E4F534A  # "JSON"
CHUNK_BIN = 0x004E4942  # "BIN\0"

# Resource key the GLB binary chunk is bound to
GLB_RESOURCE_KEY = "bin"

_HEADER = struct.Struct("<III")
_CHUNK = struct.Struct("<II")


def dump_json(root: Dict[str, Any]) -> bytes:
    return json.dumps(root, separators=(",", ":"), ensure_ascii=False).encode(
        "utf-8"
    )


def _pad(data: bytes, fill: bytes) -> bytes:
    return data + fill * ((-len(data)) % 4)


@dataclass(slots=True)
class GltfFormat:
    json: Dict[str, Any]
    resources: Dict[str, bytes] = field(default_factory=dict)

    @classmethod
    def from_slice(cls, data: bytes) -> "GltfFormat":
        try:
            root = json.loads(bytes(data).decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise GltfImportError(
                code=E_JSON,
                message=f"document is not valid JSON: {exc}",
            ) from exc
        if not isinstance(root, dict):
            raise GltfImportError(
                code=E_JSON, message="document root must be a JSON object"
            )
        return cls(json=root)

    def to_json_bytes(self) -> bytes:
        return dump_json(self.json)


@dataclass(slots=True)
class GlbFormat:
    data: bytes
    # External resources still referenced by URI (images not embedded)
    resources: Dict[str, bytes] = field(default_factory=dict)

    @classmethod
    def pack(cls, gltf: GltfFormat, binary: Optional[bytes]) -> "GlbFormat":
        json_chunk = _pad(gltf.to_json_bytes(), b" ")
        chunks = _CHUNK.pack(len(json_chunk), CHUNK_JSON) + json_chunk
        if binary is not None:
            bin_chunk = _pad(binary, b"\x00")
            chunks += _CHUNK.pack(len(bin_chunk), CHUNK_BIN) + bin_chunk
        header = _HEADER.pack(GLB_MAGIC, GLB_VERSION, _HEADER.size + len(chunks))
        return cls(data=header + chunks, resources=dict(gltf.resources))

    def unpack(self) -> GltfFormat:
        """Split the container into the JSON root and the ``bin`` resource."""
        data = self.data
        if len(data) < _HEADER.size:
            raise GlbFormatError(
                code=E_GLB_HEADER,
                message=f"GLB needs a 12-byte header, got {len(data)} bytes",
            )
        magic, version, length = _HEADER.unpack_from(data, 0)
        if magic != GLB_MAGIC:
            raise GlbFormatError(
                code=E_GLB_HEADER,
                message=f"bad GLB magic 0x{magic:08X}",
                context={"magic": magic},
            )
        if version != GLB_VERSION:
            raise GlbFormatError(
                code=E_GLB_HEADER,
                message=f"unsupported GLB version {version}",
                context={"version": version},
            )
        if length > len(data):
            raise GlbFormatError(
                code=E_GLB_HEADER,
                message=f"GLB declares {length} bytes but holds {len(data)}",
                context={"length": length, "actual": len(data)},
            )

        offset = _HEADER.size
        root: Optional[GltfFormat] = None
        binary: Optional[bytes] = None
        while offset < length:
            if offset + _CHUNK.size > length:
                raise GlbFormatError(
                    code=E_GLB_CHUNK,
                    message="truncated chunk header",
                    context={"offset": offset},
                )
            chunk_length, chunk_type = _CHUNK.unpack_from(data, offset)
            start = offset + _CHUNK.size
            end = start + chunk_length
            if end > length:
                raise GlbFormatError(
                    code=E_GLB_CHUNK,
                    message=f"chunk at {offset} overruns the container",
                    context={"offset": offset, "length": chunk_length},
                )
            if root is None:
                if chunk_type != CHUNK_JSON:
                    raise GlbFormatError(
                        code=E_GLB_CHUNK,
                        message="first GLB chunk must be JSON",
                        context={"type": chunk_type},
                    )
                root = GltfFormat.from_slice(data[start:end])
            elif chunk_type == CHUNK_BIN and binary is None:
                binary = bytes(data[start:end])
            offset = end

        if root is None:
            raise GlbFormatError(
                code=E_GLB_CHUNK, message="GLB has no JSON chunk"
            )
        if binary is not None:
            root.resources[GLB_RESOURCE_KEY] = binary
        return root
