"""I/O configuration (JSON/YAML) for gltfkun."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, List, Optional

import yaml

from .extensions import ExtensionRegistry, default_registry
from .logging import get_logger

__all__ = ["IoConfig", "load_config", "registry_for"]


def _default_extensions() -> List[str]:
    return default_registry().names()


@dataclass(slots=True)
class IoConfig:
    # Extension names whose hooks run on import and export
    extensions: List[str] = field(default_factory=_default_extensions)
    # Export container when the output path does not decide it
    glb: bool = False
    # GLB export moves external and data-URI images into the binary chunk
    embed_images: bool = True
    # Written to asset.generator when the document carries none
    generator: Optional[str] = None
    buffer_name_template: str = "buffer_{index}.bin"
    image_name_template: str = "image_{index}{ext}"


def load_config(path: str | Path) -> IoConfig:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)
    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in {".yaml", ".yml"}:
        data: Any = yaml.safe_load(text)
    else:
        data = json.loads(text)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError("Root of configuration must be an object")
    known = {f.name for f in fields(IoConfig)}
    for key in sorted(set(data) - known):
        get_logger().warning("ignoring unknown config key %s", key)
    cfg = IoConfig(**{k: v for k, v in data.items() if k in known})
    if not isinstance(cfg.extensions, list):
        raise ValueError("'extensions' must be a list of extension names")
    return cfg


def registry_for(config: Optional[IoConfig]) -> ExtensionRegistry:
    registry = default_registry()
    if config is None:
        return registry
    for name in config.extensions:
        if name not in registry:
            get_logger().warning("config enables unknown extension %s", name)
    return registry.subset(config.extensions)
