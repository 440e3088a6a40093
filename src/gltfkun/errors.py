"""Error types raised by import, export, decoding and resolution.

Every error carries a stable ``code`` (one of the ``E_*`` constants) and a
``context`` dict naming the offending array index, vertex or URI.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional

E_JSON = "E_JSON"
E_GLB_HEADER = "E_GLB_HEADER"
E_GLB_CHUNK = "E_GLB_CHUNK"
E_DATA_URI = "E_DATA_URI"
E_RESOLVE = "E_RESOLVE"
E_NO_RESOLVER = "E_NO_RESOLVER"
E_BUFFER_LENGTH = "E_BUFFER_LENGTH"
E_BUFFER_VIEW_RANGE = "E_BUFFER_VIEW_RANGE"
E_ACCESSOR_RANGE = "E_ACCESSOR_RANGE"
E_ACCESSOR_TYPE = "E_ACCESSOR_TYPE"
E_MISSING_BUFFER = "E_MISSING_BUFFER"
E_MULTIPLE_BUFFERS = "E_MULTIPLE_BUFFERS"
E_INVALID_REFERENCE = "E_INVALID_REFERENCE"
E_HANDLE_KIND = "E_HANDLE_KIND"
E_STALE_HANDLE = "E_STALE_HANDLE"
E_EXTENSION = "E_EXTENSION"
E_INTERNAL = "E_INTERNAL"


@dataclass
class GltfError(Exception):
    code: str
    message: str
    context: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        return f"{self.code}: {self.message}" + (
            f" | ctx={self.context}" if self.context else ""
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context or {},
        }


class GltfImportError(GltfError):
    pass


class GltfExportError(GltfError):
    pass


class GlbFormatError(GltfError):
    pass


class ResolverError(GltfError):
    pass


class AccessorIterCreateError(GltfError):
    pass


class ExtensionError(GltfError):
    pass


class HandleError(GltfError):
    """Raised on programmer errors: wrong handle kind or removed vertex."""


def import_error(
    code: str, message: str, context: Optional[Dict[str, Any]] = None
) -> GltfImportError:
    return GltfImportError(code=code, message=message, context=context)


def internal_error(
    message: str, context: Optional[Dict[str, Any]] = None
) -> GltfError:
    return GltfError(code=E_INTERNAL, message=message, context=context)


__all__ = [
    "GltfError",
    "GltfImportError",
    "GltfExportError",
    "GlbFormatError",
    "ResolverError",
    "AccessorIterCreateError",
    "ExtensionError",
    "HandleError",
    "import_error",
    "internal_error",
    "E_JSON",
    "E_GLB_HEADER",
    "E_GLB_CHUNK",
    "E_DATA_URI",
    "E_RESOLVE",
    "E_NO_RESOLVER",
    "E_BUFFER_LENGTH",
    "E_BUFFER_VIEW_RANGE",
    "E_ACCESSOR_RANGE",
    "E_ACCESSOR_TYPE",
    "E_MISSING_BUFFER",
    "E_MULTIPLE_BUFFERS",
    "E_INVALID_REFERENCE",
    "E_HANDLE_KIND",
    "E_STALE_HANDLE",
    "E_EXTENSION",
    "E_INTERNAL",
]
