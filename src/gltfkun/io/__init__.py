from .format import (
    CHUNK_BIN,
    CHUNK_JSON,
    GLB_MAGIC,
    GLB_RESOURCE_KEY,
    GLB_VERSION,
    GlbFormat,
    GltfFormat,
    dump_json,
)
from .resolver import (
    CallbackResolver,
    DataUriResolver,
    FileResolver,
    Resolver,
    decode_data_uri,
    encode_data_uri,
    is_data_uri,
)
from .gltf_import import import_gltf, resolve_resources
from .gltf_export import GENERATOR, export_gltf
from .glb_export import export_glb

__all__ = [
    "CHUNK_BIN",
    "CHUNK_JSON",
    "GLB_MAGIC",
    "GLB_RESOURCE_KEY",
    "GLB_VERSION",
    "GlbFormat",
    "GltfFormat",
    "dump_json",
    "CallbackResolver",
    "DataUriResolver",
    "FileResolver",
    "Resolver",
    "decode_data_uri",
    "encode_data_uri",
    "is_data_uri",
    "import_gltf",
    "resolve_resources",
    "GENERATOR",
    "export_gltf",
    "export_glb",
]
