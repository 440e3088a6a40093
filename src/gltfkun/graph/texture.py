"""Images, samplers, textures and materials."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath
from typing import Optional, Tuple

from .buffer import BufferView
from .property import Property
from .store import Graph
from .weights import NamedWeight

__all__ = [
    "mime_type_for",
    "extension_for_mime",
    "ImageEdge",
    "ImageWeight",
    "Image",
    "SamplerWeight",
    "Sampler",
    "TextureEdge",
    "TextureWeight",
    "Texture",
    "MaterialEdge",
    "MaterialWeight",
    "Material",
]

_MIME_BY_SUFFIX = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
    ".gif": "image/gif",
    ".ktx2": "image/ktx2",
}

_SUFFIX_BY_MIME = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/webp": ".webp",
    "image/gif": ".gif",
    "image/ktx2": ".ktx2",
}


def mime_type_for(path: str) -> Optional[str]:
    return _MIME_BY_SUFFIX.get(PurePosixPath(path).suffix.lower())


def extension_for_mime(mime_type: Optional[str]) -> str:
    if mime_type is None:
        return ""
    return _SUFFIX_BY_MIME.get(mime_type, "")


class ImageEdge(Enum):
    BUFFER_VIEW = "image/bufferView"


@dataclass(slots=True)
class ImageWeight(NamedWeight):
    mime_type: Optional[str] = None
    uri: Optional[str] = None
    # Encoded bytes when the image is not stored in a buffer view
    data: bytes = b""


class Image(Property):
    weight_type = ImageWeight

    def buffer_view(self, graph: Graph) -> Optional[BufferView]:
        return self.find_edge_target(graph, ImageEdge.BUFFER_VIEW, BufferView)

    def set_buffer_view(
        self, graph: Graph, view: Optional[BufferView]
    ) -> None:
        self.set_edge_target(graph, ImageEdge.BUFFER_VIEW, view)

    def read(self, graph: Graph) -> bytes:
        view = self.buffer_view(graph)
        if view is not None:
            return view.read(graph) or b""
        return self.get(graph).data


@dataclass(slots=True)
class SamplerWeight(NamedWeight):
    mag_filter: Optional[int] = None
    min_filter: Optional[int] = None
    wrap_s: int = 10497
    wrap_t: int = 10497


class Sampler(Property):
    weight_type = SamplerWeight


class TextureEdge(Enum):
    IMAGE = "texture/image"
    SAMPLER = "texture/sampler"


@dataclass(slots=True)
class TextureWeight(NamedWeight):
    pass


class Texture(Property):
    weight_type = TextureWeight

    def image(self, graph: Graph) -> Optional[Image]:
        return self.find_edge_target(graph, TextureEdge.IMAGE, Image)

    def set_image(self, graph: Graph, image: Optional[Image]) -> None:
        self.set_edge_target(graph, TextureEdge.IMAGE, image)

    def sampler(self, graph: Graph) -> Optional[Sampler]:
        return self.find_edge_target(graph, TextureEdge.SAMPLER, Sampler)

    def set_sampler(self, graph: Graph, sampler: Optional[Sampler]) -> None:
        self.set_edge_target(graph, TextureEdge.SAMPLER, sampler)


class MaterialEdge(Enum):
    BASE_COLOR_TEXTURE = "material/baseColorTexture"
    METALLIC_ROUGHNESS_TEXTURE = "material/metallicRoughnessTexture"
    NORMAL_TEXTURE = "material/normalTexture"
    OCCLUSION_TEXTURE = "material/occlusionTexture"
    EMISSIVE_TEXTURE = "material/emissiveTexture"


@dataclass(slots=True)
class MaterialWeight(NamedWeight):
    base_color_factor: Tuple[float, float, float, float] = (1.0, 1.0, 1.0, 1.0)
    metallic_factor: float = 1.0
    roughness_factor: float = 1.0
    emissive_factor: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    alpha_mode: str = "OPAQUE"
    alpha_cutoff: float = 0.5
    double_sided: bool = False
    base_color_tex_coord: int = 0
    metallic_roughness_tex_coord: int = 0
    normal_tex_coord: int = 0
    normal_scale: float = 1.0
    occlusion_tex_coord: int = 0
    occlusion_strength: float = 1.0
    emissive_tex_coord: int = 0


class Material(Property):
    weight_type = MaterialWeight

    def texture(self, graph: Graph, slot: MaterialEdge) -> Optional[Texture]:
        return self.find_edge_target(graph, slot, Texture)

    def set_texture(
        self, graph: Graph, slot: MaterialEdge, texture: Optional[Texture]
    ) -> None:
        self.set_edge_target(graph, slot, texture)
