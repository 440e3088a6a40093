"""glTF 2.0 / GLB document graph with async import and export."""

from .api import export, import_file, import_slice, write_file
from .config import IoConfig, load_config
from .errors import GltfError
from .graph import Document, Graph

__version__ = "0.1.0"

__all__ = [
    "export",
    "import_file",
    "import_slice",
    "write_file",
    "IoConfig",
    "load_config",
    "GltfError",
    "Document",
    "Graph",
]
